"""Folio - incremental content catalog for git-hosted Markdown."""

__version__ = "0.4.0"

"""Folio CLI entry point."""

# folio:service=cli

from __future__ import annotations

import json
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING

import click

from folio import __version__
from folio.errors import FolioError

if TYPE_CHECKING:
    from folio.catalog.changes import ChangeSet


def _setup_logging(*, verbose: bool, quiet: bool) -> None:
    from rich.console import Console
    from rich.logging import RichHandler

    level = logging.WARNING
    if verbose:
        level = logging.INFO
    if quiet:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Folio - incremental content catalog for git-hosted Markdown."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    _setup_logging(verbose=verbose, quiet=quiet)


_project_option = click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Repository root (default: current directory).",
)


# folio:domain=pipeline
@main.command()
@_project_option
@click.option(
    "--dry-run",
    "dry_run",
    type=click.IntRange(0, 2),
    default=None,
    help="0: publish + build, 1: no publish/build, 2: also skip metadata lookups.",
)
@click.option("--no-build", is_flag=True, default=False, help="Publish without triggering a build.")
@click.option(
    "--full",
    is_flag=True,
    default=False,
    help="Rebuild index.json from scratch instead of from its anchor revision.",
)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON.")
def generate(
    *,
    project: Path | None,
    dry_run: int | None,
    no_build: bool,
    full: bool,
    output_json: bool,
) -> None:
    """Regenerate patch.json and index.json, then publish and trigger a build.

    Exit code 1 if any document failed or the run aborted.
    """
    from folio.config import load_config
    from folio.pipeline import run

    project_root = project or Path.cwd()
    try:
        config = load_config(
            project_root,
            dry_run=dry_run,
            full=full or None,
            trigger_build=False if no_build else None,
        )
        result = run(config)
    except (FolioError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    outcome = result.reconcile
    if output_json:
        payload = {
            "head": result.head,
            "previous_anchor": result.previous_anchor,
            "unchanged": outcome.unchanged,
            "created": outcome.created,
            "updated": outcome.updated,
            "removed": outcome.removed,
            "documents": len(outcome.snapshot.documents),
            "patch": result.patch.to_dict(),
            "persisted": result.persisted,
            "published": result.published,
            "triggered": result.triggered,
            "errors": [
                {"path": e.path, "kind": e.kind, "reason": e.reason} for e in result.errors
            ],
        }
        click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        if result.nothing_changed:
            click.echo("No changes detected. Index is up to date.")
        else:
            click.echo(f"Anchor:    {result.previous_anchor[:7]} -> {result.head[:7]}")
            click.echo(f"Created:   {outcome.created}")
            click.echo(f"Updated:   {outcome.updated}")
            click.echo(f"Removed:   {outcome.removed}")
        click.echo(f"Documents: {len(outcome.snapshot.documents)}")
        click.echo(f"Patch:     {len(result.patch.update)} update, {len(result.patch.remove)} remove")
        if result.published:
            click.echo("Published generated artifacts.")
        if result.triggered:
            click.echo("Build triggered.")
        if result.errors:
            click.echo("")
            for err in result.errors:
                click.echo(f"  [ERR] {err.path}: {err.reason}")
        for warn in result.warnings:
            click.echo(f"  [warn] {warn}")

    if result.errors:
        sys.exit(1)


def _render_changes(changes: ChangeSet, since: str) -> None:
    from rich.console import Console
    from rich.table import Table

    console = Console()
    if changes.is_empty:
        console.print(f"No content changes since [bold]{since}[/bold].")
        return

    table = Table(title=f"Content changes since {since}")
    table.add_column("Change")
    table.add_column("Path")
    for path in changes.updated:
        table.add_row("[green]update[/green]", path)
    for path in changes.removed:
        table.add_row("[red]remove[/red]", path)
    console.print(table)


# folio:domain=catalog
@main.command("diff")
@click.option("--since", required=True, help="Revision to diff from.")
@click.option("--json", "as_json", is_flag=True, help="JSON output.")
@_project_option
def diff_cmd(*, since: str, as_json: bool, project: Path | None) -> None:
    """Show content added, modified, or removed since a revision."""
    from folio.catalog.changes import compute_change_set
    from folio.config import load_config
    from folio.infrastructure.git_history import history_diff

    project_root = project or Path.cwd()
    try:
        config = load_config(project_root)
        changes = compute_change_set(
            lambda rev: history_diff(
                project_root, rev, pathspec=config.managed_root, timeout=config.timeout
            ),
            since,
            config.managed_root,
        )
    except (FolioError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(
            json.dumps(
                {"updated": changes.updated, "removed": changes.removed},
                ensure_ascii=False,
                indent=2,
            )
        )
    else:
        _render_changes(changes, since)


# folio:domain=catalog
@main.command()
@click.option("--json", "as_json", is_flag=True, help="JSON output.")
@_project_option
def status(*, as_json: bool, project: Path | None) -> None:
    """Show the snapshot anchor, HEAD, and documents per language."""
    from folio.catalog.records import load_snapshot
    from folio.config import load_config
    from folio.infrastructure.git_history import EMPTY_TREE, head_revision

    project_root = project or Path.cwd()
    try:
        config = load_config(project_root)
        snapshot = load_snapshot(config.index_path, initial_anchor=EMPTY_TREE)
        head = head_revision(project_root, timeout=config.timeout)
    except (FolioError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    per_lang = Counter(doc.lang for doc in snapshot.documents)
    up_to_date = snapshot.commit == head

    if as_json:
        payload = {
            "anchor": snapshot.commit,
            "head": head,
            "up_to_date": up_to_date,
            "documents": len(snapshot.documents),
            "languages": dict(sorted(per_lang.items())),
        }
        click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    click.echo(f"Anchor:    {snapshot.commit[:7]}")
    click.echo(f"HEAD:      {head[:7]}")
    click.echo(f"Status:    {'up to date' if up_to_date else 'behind HEAD'}")
    click.echo(f"Documents: {len(snapshot.documents)}")
    for lang, count in sorted(per_lang.items()):
        click.echo(f"  {lang + ':':8s}{count}")

"""Single-flight guard around a reconcile-and-publish run."""

# folio:domain=infrastructure

from __future__ import annotations

import contextlib
import os
from typing import TYPE_CHECKING

from folio.errors import RunLockedError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@contextlib.contextmanager
def single_flight(lock_path: Path) -> Iterator[None]:
    """Hold an exclusive lock file for the duration of the block.

    The lock file is created with ``O_EXCL`` and holds the owner's pid. A
    stale lock left by a crashed run must be removed by hand.

    Raises
    ------
    RunLockedError
        If the lock file already exists.
    """
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        fd = os.open(str(lock_path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    except FileExistsError:
        owner = lock_path.read_text(encoding="utf-8").strip() if lock_path.exists() else "?"
        msg = f"Another run holds {lock_path} (pid {owner})"
        raise RunLockedError(msg) from None

    try:
        os.write(fd, str(os.getpid()).encode())
    finally:
        os.close(fd)

    try:
        yield
    finally:
        lock_path.unlink(missing_ok=True)

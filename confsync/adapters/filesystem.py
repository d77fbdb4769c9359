"""
Filesystem adapter — the reconciler's only window onto the disk.

Unlike a best-effort batch tool, every failure here is fatal to the
run: each ``OSError`` is re-raised as ``FilesystemError`` naming the
operation and the path, and the caller aborts.

Writes are atomic (temp file in the same directory, fsync, rename), so
a destination is always either its old content or its new content.
"""

from __future__ import annotations

import logging
import os
import tempfile
import time
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)

BACKUP_MARKER = ".backup."


class FilesystemError(Exception):
    """Raised when a filesystem operation fails. Always fatal."""

    def __init__(self, operation: str, path: Path, reason: str):
        self.operation = operation
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot {operation} {self.path}: {reason}")


class Filesystem:
    """Local filesystem operations used by the reconciler.

    ``clock`` returns the timestamp used in backup names and exists so
    tests can pin it.
    """

    def __init__(self, clock: Callable[[], str] | None = None):
        self._clock = clock or (lambda: time.strftime("%Y%m%dT%H%M%S"))

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def read_bytes(self, path: Path) -> bytes:
        try:
            return Path(path).read_bytes()
        except OSError as e:
            raise FilesystemError("read", path, e.strerror or str(e)) from e

    def ensure_dir(self, path: Path) -> None:
        """Create ``path`` and its parents if missing."""
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError("create directory", path, e.strerror or str(e)) from e

    def write_atomic(self, path: Path, data: bytes) -> None:
        """Write ``data`` to ``path`` via temp file + fsync + rename."""
        path = Path(path)
        self.ensure_dir(path.parent)

        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
            )
        except OSError as e:
            raise FilesystemError("write", path, e.strerror or str(e)) from e

        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise FilesystemError("write", path, e.strerror or str(e)) from e

        logger.debug("Wrote %d bytes to %s", len(data), path)

    def backup_path_for(self, path: Path) -> Path:
        """Pick a free ``NAME.backup.TIMESTAMP[.N]`` path beside ``path``."""
        path = Path(path)
        base = path.with_name(f"{path.name}{BACKUP_MARKER}{self._clock()}")
        candidate = base
        n = 0
        while candidate.exists():
            n += 1
            candidate = base.with_name(f"{base.name}.{n}")
        return candidate

    def backup(self, path: Path) -> Path:
        """Copy ``path`` to a fresh backup path and return it.

        The copy is durable (fsynced and renamed into place) before this
        returns; a read failure aborts before anything is written.
        """
        content = self.read_bytes(path)
        dest = self.backup_path_for(path)
        self.write_atomic(dest, content)
        logger.info("Backed up %s → %s", path, dest)
        return dest

"""Safe file I/O utilities.

Whole-file reads and writes with file locking (``fcntl``) and ``fsync``
so a concurrent reader never sees a half-written stream.
"""

from __future__ import annotations

import fcntl
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def safe_read_bytes(path: Path) -> bytes:
    """Read a whole file under a shared lock.

    Raises ``OSError`` (``FileNotFoundError`` included) unchanged.
    """
    with open(path, "rb") as f:
        fcntl.flock(f.fileno(), fcntl.LOCK_SH)
        try:
            return f.read()
        finally:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)


def safe_write_bytes(path: Path, data: bytes) -> None:
    """Replace a file's contents atomically.

    * The payload goes to a temporary file in the same directory, is
      flushed and ``fsync``-ed, then moved over ``path`` with
      ``os.replace``, so readers see either the old or the new bytes.
    * Writers serialise on an exclusive ``flock`` of a sibling
      ``.lock`` file.
    * Parent directories are created as needed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    lock_path = path.with_name(path.name + ".lock")
    with open(lock_path, "a") as lock:
        fcntl.flock(lock.fileno(), fcntl.LOCK_EX)
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        finally:
            fcntl.flock(lock.fileno(), fcntl.LOCK_UN)
    logger.debug("Wrote %d bytes to %s", len(data), path)

"""Flat storage backends.

* ``FileStorage`` -- local file system, used by the manager and CLI.
* ``MemoryStorage`` -- dict-backed, for tests.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from .errors import StorageError
from .file_io import safe_read_bytes, safe_write_bytes

logger = logging.getLogger(__name__)


class FileStorage:
    """Local file system implementation of ``IFlatStorage``."""

    def read(self, path: Path) -> bytes:
        try:
            return safe_read_bytes(Path(path))
        except FileNotFoundError as exc:
            raise StorageError(path, "file does not exist") from exc
        except OSError as exc:
            raise StorageError(path, exc.strerror or str(exc)) from exc

    def write(self, path: Path, data: bytes) -> None:
        try:
            safe_write_bytes(Path(path), data)
        except OSError as exc:
            raise StorageError(path, exc.strerror or str(exc)) from exc

    def exists(self, path: Path) -> bool:
        return Path(path).is_file()


class MemoryStorage:
    """In-memory implementation -- no persistence."""

    def __init__(self, files: dict[Path, bytes] | None = None) -> None:
        self._files: dict[Path, bytes] = {
            Path(k): v for k, v in (files or {}).items()
        }
        self._lock = threading.Lock()
        self.reads = 0
        self.writes = 0

    def read(self, path: Path) -> bytes:
        with self._lock:
            self.reads += 1
            try:
                return self._files[Path(path)]
            except KeyError as exc:
                raise StorageError(path, "file does not exist") from exc

    def write(self, path: Path, data: bytes) -> None:
        with self._lock:
            self.writes += 1
            self._files[Path(path)] = bytes(data)

    def exists(self, path: Path) -> bool:
        with self._lock:
            return Path(path) in self._files

    # -- helpers for tests --------------------------------------------------

    @property
    def files(self) -> dict[Path, bytes]:
        with self._lock:
            return dict(self._files)

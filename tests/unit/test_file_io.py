"""Unit tests for core.file_io and core.storage: whole-file reads and writes."""

from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest

from sketchware_customs.core.errors import StorageError
from sketchware_customs.core.file_io import safe_read_bytes, safe_write_bytes
from sketchware_customs.core.interfaces import IFlatStorage
from sketchware_customs.core.storage import FileStorage, MemoryStorage


class TestSafeWriteBytes:
    """Tests for safe_write_bytes utility."""

    def test_writes_new_file(self, tmp_path: Path) -> None:
        path = tmp_path / "events.json"
        safe_write_bytes(path, b"[]")
        assert path.read_bytes() == b"[]"

    def test_replaces_existing_content(self, tmp_path: Path) -> None:
        path = tmp_path / "events.json"
        path.write_bytes(b'[{"name": "old"}, {"name": "longer old content"}]')
        safe_write_bytes(path, b"[]")
        assert path.read_bytes() == b"[]"

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        path = tmp_path / "resources" / "block" / "Menu Block" / "block.json"
        safe_write_bytes(path, b"[]")
        assert path.exists()

    def test_leaves_no_temporary_files(self, tmp_path: Path) -> None:
        path = tmp_path / "menus.json"
        safe_write_bytes(path, b"[]")
        safe_write_bytes(path, b"[1]")
        leftovers = [p.name for p in tmp_path.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []

    def test_concurrent_writes_never_interleave(self, tmp_path: Path) -> None:
        """20 threads replacing the same file; the result is always one whole payload."""
        path = tmp_path / "listeners.json"
        payloads = [
            json.dumps([{"name": f"writer-{i}", "code": "x" * 2000}]).encode()
            for i in range(20)
        ]

        threads = [
            threading.Thread(target=safe_write_bytes, args=(path, payload))
            for payload in payloads
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert path.read_bytes() in payloads

    def test_read_back(self, tmp_path: Path) -> None:
        path = tmp_path / "events.json"
        safe_write_bytes(path, "[\"é\"]".encode())
        assert safe_read_bytes(path).decode() == "[\"é\"]"


class TestFileStorage:
    def test_implements_protocol(self):
        assert isinstance(FileStorage(), IFlatStorage)

    def test_missing_file_raises_storage_error(self, tmp_path: Path) -> None:
        with pytest.raises(StorageError, match="does not exist") as exc_info:
            FileStorage().read(tmp_path / "nope.json")
        assert isinstance(exc_info.value, OSError)
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_directory_in_place_of_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(StorageError):
            FileStorage().read(tmp_path)

    def test_round_trip(self, tmp_path: Path) -> None:
        storage = FileStorage()
        path = tmp_path / "a" / "b.json"
        storage.write(path, b"[]")
        assert storage.exists(path)
        assert storage.read(path) == b"[]"


class TestMemoryStorage:
    def test_implements_protocol(self):
        assert isinstance(MemoryStorage(), IFlatStorage)

    def test_counts_reads_and_writes(self):
        storage = MemoryStorage()
        storage.write(Path("x"), b"1")
        storage.read(Path("x"))
        assert (storage.reads, storage.writes) == (1, 1)
        assert storage.files == {Path("x"): b"1"}

"""Shared fixtures for the sketchware-customs test suite."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from sketchware_customs.core.errors import StorageError
from sketchware_customs.core.storage import MemoryStorage
from sketchware_customs.customs.listeners import CustomListenersStore
from sketchware_customs.customs.menus import CustomMenusStore
from sketchware_customs.customs.models import CustomMenu

ROOT = Path("/sketchware")
EVENTS_PATH = ROOT / "data/system/events.json"
LISTENERS_PATH = ROOT / "data/system/listeners.json"
MENUS_PATH = ROOT / "resources/block/Menu Block/block.json"


# ---------------------------------------------------------------------------
# Raw streams
# ---------------------------------------------------------------------------

LISTENER_RECORDS = [
    {"name": "OnSwipe", "code": "swipe();", "s": "false", "imports": "import a.Swipe;"},
    {"name": "OnShake", "code": "", "s": "true", "imports": ""},
]

EVENT_RECORDS = [
    {
        "headerSpec": "when %m.view swiped %s.direction",
        "icon": "7",
        "var": "swiper",
        "description": "Swipe detected",
        "parameters": "View v, String direction",
        "name": "onSwipe",
        "code": "handle(v);",
        "listener": "OnSwipe",
    },
    {
        "headerSpec": "on resume",
        "icon": "",
        "var": "",
        "description": "",
        "parameters": "",
        "name": "onResume",
        "code": "",
        "listener": "",
    },
    {
        "headerSpec": "when shaken",
        "icon": "3",
        "var": "shaker",
        "description": "",
        "parameters": "",
        "name": "onShake",
        "code": "shake();",
        "listener": "OnShake",
    },
]

MENU_RECORDS = [
    {"name": "colors", "title": "Color", "data": "red|green|blue"},
    {"name": "sizes", "title": "Size", "data": "s|m|l"},
    {"name": "units", "title": "Unit", "data": "dp|sp"},
]


def encode(records: list[dict[str, str]]) -> bytes:
    return json.dumps(records).encode("utf-8")


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

class FlakyStorage(MemoryStorage):
    """Memory storage whose reads or writes can be made to fail."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.fail_reads = False
        self.fail_writes_to: set[Path] = set()
        self.fail_all_writes = False

    def read(self, path: Path) -> bytes:
        if self.fail_reads:
            raise StorageError(path, "disk unplugged")
        return super().read(path)

    def write(self, path: Path, data: bytes) -> None:
        if self.fail_all_writes or Path(path) in self.fail_writes_to:
            raise StorageError(path, "read-only file system")
        super().write(path, data)


@pytest.fixture
def storage() -> FlakyStorage:
    return FlakyStorage({
        EVENTS_PATH: encode(EVENT_RECORDS),
        LISTENERS_PATH: encode(LISTENER_RECORDS),
        MENUS_PATH: encode(MENU_RECORDS),
    })


@pytest.fixture
def empty_storage() -> FlakyStorage:
    return FlakyStorage()


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------

@pytest.fixture
def menus_store(storage):
    store = CustomMenusStore(MENUS_PATH, storage=storage)
    yield store
    store.close()


@pytest.fixture
def listeners_store(storage):
    store = CustomListenersStore(EVENTS_PATH, LISTENERS_PATH, storage=storage)
    yield store
    store.close()


@pytest.fixture
def make_menu():
    def _make(menu_id: str, title: str = "", data: str = "") -> CustomMenu:
        return CustomMenu(id=menu_id, title=title, data=data)

    return _make


@pytest.fixture
def events_path() -> Path:
    return EVENTS_PATH


@pytest.fixture
def listeners_path() -> Path:
    return LISTENERS_PATH


@pytest.fixture
def menus_path() -> Path:
    return MENUS_PATH

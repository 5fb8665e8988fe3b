"""Tests for CustomsManager: store wiring against a real Sketchware folder."""

from __future__ import annotations

import json

import pytest

from sketchware_customs.core.config import Settings
from sketchware_customs.customs.models import CustomListenerGroup, CustomMenu
from sketchware_customs.manager import CustomsManager


@pytest.fixture
def settings(tmp_path):
    return Settings(sketchware_dir=tmp_path)


@pytest.fixture
def manager(settings):
    with CustomsManager(settings) as m:
        yield m


class TestStoreWiring:
    def test_stores_opened_lazily_and_cached(self, manager):
        assert manager.open_stores == []
        menus = manager.menus
        assert manager.menus is menus
        assert manager.open_stores == [menus]

    def test_missing_folder_gives_empty_collections(self, manager):
        assert manager.menus.entities == []
        assert [g.name for g in manager.listeners.entities] == [""]

    def test_settings_flow_into_stores(self, tmp_path, settings):
        settings.write_through = True
        with CustomsManager(settings) as manager:
            manager.menus.add(CustomMenu(id="colors"))
        assert json.loads(settings.menus_path.read_text()) == [
            {"name": "colors", "title": "", "data": ""},
        ]


class TestSyncAll:
    @pytest.mark.asyncio
    async def test_save_all_writes_layout_files(self, manager, settings):
        manager.menus.add(CustomMenu(id="colors", title="Color"))
        manager.listeners.add(CustomListenerGroup(name="OnSwipe"))

        written = await manager.save_all()

        assert written == {"listeners": ["listeners"], "menus": ["menus"]}
        assert settings.menus_path.exists()
        assert json.loads(settings.listeners_path.read_text())[0]["name"] == "OnSwipe"
        assert not settings.events_path.exists()

    @pytest.mark.asyncio
    async def test_fetch_all_reloads_every_store(self, manager, settings):
        manager.menus.add(CustomMenu(id="unsaved"))
        manager.listeners.add(CustomListenerGroup(name="Unsaved"))
        await manager.fetch_all()
        assert manager.menus.entities == []
        assert "Unsaved" not in manager.listeners

    @pytest.mark.asyncio
    async def test_save_all_without_open_stores(self, manager):
        assert await manager.save_all() == {}

"""Custom menus store (Menu Block ``block.json``)."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from sketchware_customs.codec.records import RecordSchema
from sketchware_customs.core.interfaces import Record

from .models import CustomMenu
from .store import DefinitionsStore

MENUS = RecordSchema("menus", ("name", "title", "data"))


class CustomMenusStore(DefinitionsStore[CustomMenu]):
    """Custom menus keyed by id, one record per menu."""

    collection = "menus"
    entity_type = CustomMenu

    def __init__(self, menus_path: str | Path, **kwargs: Any) -> None:
        super().__init__({"menus": menus_path}, **kwargs)

    def key_of(self, entity: CustomMenu) -> str:
        return entity.id

    def renamed(self, entity: CustomMenu, key: str) -> CustomMenu:
        return entity.model_copy(update={"id": key})

    def _compose(self, flat: Mapping[str, str]) -> list[CustomMenu]:
        return [
            CustomMenu(id=r["name"], title=r["title"], data=r["data"])
            for r in (MENUS.normalize(raw) for raw in self._codec.decode(flat["menus"]))
        ]

    def _flatten(self, entities: list[CustomMenu]) -> dict[str, list[Record]]:
        return {
            "menus": [
                MENUS.build(name=menu.id, title=menu.title, data=menu.data)
                for menu in entities
                if menu.id != ""
            ],
        }

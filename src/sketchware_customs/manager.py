"""Entry point tying every customs store to one Sketchware folder."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from sketchware_customs.core.config import Settings
from sketchware_customs.core.interfaces import IFlatStorage
from sketchware_customs.customs.listeners import CustomListenersStore
from sketchware_customs.customs.menus import CustomMenusStore
from sketchware_customs.customs.store import DefinitionsStore

logger = logging.getLogger(__name__)


class CustomsManager:
    """Lazily opens the customs stores of a Sketchware folder.

    All stores share one bounded I/O executor sized by
    ``settings.io_workers``; :meth:`close` shuts it down.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        storage: IFlatStorage | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._storage = storage
        self._executor = ThreadPoolExecutor(
            max_workers=self._settings.io_workers,
            thread_name_prefix="customs-io",
        )
        self._listeners: CustomListenersStore | None = None
        self._menus: CustomMenusStore | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def listeners(self) -> CustomListenersStore:
        if self._listeners is None:
            self._listeners = CustomListenersStore(
                self._settings.events_path,
                self._settings.listeners_path,
                **self._store_options(),
            )
        return self._listeners

    @property
    def menus(self) -> CustomMenusStore:
        if self._menus is None:
            self._menus = CustomMenusStore(
                self._settings.menus_path, **self._store_options(),
            )
        return self._menus

    @property
    def open_stores(self) -> list[DefinitionsStore]:
        return [s for s in (self._listeners, self._menus) if s is not None]

    async def fetch_all(self) -> None:
        """Re-read every open store from storage."""
        await asyncio.gather(*(s.fetch() for s in self.open_stores))

    async def save_all(self) -> dict[str, list[str]]:
        """Save every open store.  Returns written streams per collection."""
        stores = self.open_stores
        results = await asyncio.gather(*(s.save() for s in stores))
        return {s.collection: written for s, written in zip(stores, results)}

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        logger.debug("CustomsManager closed (%s)", self._settings.sketchware_dir)

    def __enter__(self) -> CustomsManager:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _store_options(self) -> dict[str, Any]:
        return {
            "storage": self._storage,
            "executor": self._executor,
            "write_through": self._settings.write_through,
            "missing_ok": self._settings.missing_ok,
        }

"""Definitions store -- typed CRUD over flat, file-backed record streams.

A store owns the flat text of one or more record streams and a
:class:`MaterializedView` that composes typed entities from them.
Every mutation is a read-modify-write of the whole collection:

    view -> copies -> mutate -> flatten -> encode -> commit -> invalidate

All state (flat values, last persisted values, the view) is guarded by
one reentrant lock per instance, held for the full extent of CRUD,
fetch, save, import and export.  Storage-touching operations come in
three forms:

* ``fetch_sync()`` etc. -- blocking;
* ``await fetch()`` etc. -- run on the store's I/O executor;
* ``launch_fetch(callback)`` etc. -- fire and forget, returns a
  ``concurrent.futures.Future`` and calls ``callback()`` on success.
"""

from __future__ import annotations

import asyncio
import contextvars
import functools
import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, ClassVar, Generic, Iterator, Mapping, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from sketchware_customs.codec.records import JsonRecordCodec
from sketchware_customs.core.errors import (
    ConflictResolutionError,
    DecodeError,
    NotFoundError,
)
from sketchware_customs.core.interfaces import (
    ActionFinishListener,
    ConflictResolver,
    IFlatStorage,
    IRecordCodec,
    Record,
)
from sketchware_customs.core.storage import FileStorage

from .cache import MaterializedView

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_IO_WORKERS = 4


class DefinitionsStore(ABC, Generic[T]):
    """Base class for a file-backed collection of named definitions.

    Subclasses describe how entities are composed from and flattened to
    records; the base class owns locking, caching, persistence, import
    and export.

    Parameters
    ----------
    streams:
        Stream name to backing file path.
    storage:
        Byte storage.  Defaults to :class:`FileStorage`.
    codec:
        Record stream codec.  Defaults to :class:`JsonRecordCodec`.
    executor:
        Executor for background I/O.  When omitted the store creates a
        bounded pool of ``io_workers`` threads and shuts it down on
        :meth:`close`.
    write_through:
        When ``True`` every mutation writes the changed streams to
        storage before returning.
    missing_ok:
        When ``True`` a missing stream file reads as an empty collection.
    autoload:
        Fetch from storage during construction.
    """

    collection: ClassVar[str] = "definitions"
    entity_type: ClassVar[type[BaseModel]]

    def __init__(
        self,
        streams: Mapping[str, str | Path],
        *,
        storage: IFlatStorage | None = None,
        codec: IRecordCodec | None = None,
        executor: ThreadPoolExecutor | None = None,
        io_workers: int = DEFAULT_IO_WORKERS,
        write_through: bool = False,
        missing_ok: bool = False,
        autoload: bool = True,
    ) -> None:
        self._streams: dict[str, Path] = {
            name: Path(path) for name, path in streams.items()
        }
        self._storage = storage or FileStorage()
        self._codec = codec or JsonRecordCodec()
        self._write_through = write_through
        self._missing_ok = missing_ok

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=io_workers,
            thread_name_prefix=f"{self.collection}-io",
        )

        self._lock = threading.RLock()
        empty = self._codec.encode([])
        self._flat: dict[str, str] = {name: empty for name in self._streams}
        self._persisted: dict[str, str | None] = {
            name: None for name in self._streams
        }
        self._view: MaterializedView[T] = MaterializedView(
            lambda: self._compose(self._flat), self._lock, name=self.collection,
        )
        self._adapter: TypeAdapter[list[Any]] = TypeAdapter(list[self.entity_type])

        if autoload:
            self.fetch_sync()

    # ------------------------------------------------------------------
    # Collection-specific hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _compose(self, flat: Mapping[str, str]) -> list[T]:
        """Build entities from the flat text of every stream."""

    @abstractmethod
    def _flatten(self, entities: list[T]) -> dict[str, list[Record]]:
        """Turn entities into records, keyed by stream name."""

    @abstractmethod
    def key_of(self, entity: T) -> str:
        """Name/id identifying ``entity`` within the collection."""

    @abstractmethod
    def renamed(self, entity: T, key: str) -> T:
        """Copy of ``entity`` carrying ``key`` as its name/id."""

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def entities(self) -> list[T]:
        """Copies of the materialized entities, in stream order."""
        with self._lock:
            return self._snapshot()

    def keys(self) -> list[str]:
        with self._lock:
            return [self.key_of(e) for e in self._view.get()]

    def find(self, key: str) -> T | None:
        """Copy of the first entity named ``key``, or ``None``."""
        with self._lock:
            items = self._view.get()
            index = self._find_index(items, key)
            if index is None:
                return None
            return items[index].model_copy(deep=True)

    def get(self, key: str) -> T:
        """Copy of the first entity named ``key``.

        Raises :class:`NotFoundError` when absent.
        """
        entity = self.find(key)
        if entity is None:
            raise NotFoundError(key, self.collection)
        return entity

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.find(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._view.get())

    def __iter__(self) -> Iterator[T]:
        return iter(self.entities)

    @property
    def view(self) -> MaterializedView[T]:
        return self._view

    @property
    def dirty_streams(self) -> list[str]:
        """Streams whose in-memory value differs from storage."""
        with self._lock:
            return [
                name for name in self._streams
                if self._flat[name] != self._persisted[name]
            ]

    @property
    def is_dirty(self) -> bool:
        return bool(self.dirty_streams)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def add(self, entity: T) -> None:
        """Append ``entity`` to the collection."""
        with self._lock:
            items = self._snapshot()
            items.append(entity.model_copy(deep=True))
            self._commit(items)
        logger.debug("Added %r to %s", self.key_of(entity), self.collection)

    def remove(self, key: str) -> bool:
        """Remove every entity named ``key``.

        Returns ``True`` if anything was removed.  Removing an absent
        name leaves memory and storage untouched.
        """
        with self._lock:
            items = self._snapshot()
            kept = [e for e in items if self.key_of(e) != key]
            if len(kept) == len(items):
                return False
            self._commit(kept)
        logger.debug("Removed %r from %s", key, self.collection)
        return True

    def edit(self, key: str, mutator: Callable[[T], T | None]) -> T:
        """Apply ``mutator`` to the first entity named ``key``.

        The mutator receives a private copy and may either change it in
        place and return ``None`` or return a replacement.  The result
        keeps the original position.  Returns a copy of the result.
        """
        with self._lock:
            items = self._snapshot()
            index = self._require_index(items, key)
            draft = items[index]
            result = mutator(draft)
            items[index] = result if result is not None else draft
            self._commit(items)
            updated = items[index].model_copy(deep=True)
        logger.debug("Edited %r in %s", key, self.collection)
        return updated

    def replace(self, key: str, entity: T) -> None:
        """Put ``entity`` in place of the first entity named ``key``."""
        replacement = entity.model_copy(deep=True)
        self.edit(key, lambda _: replacement)

    # ------------------------------------------------------------------
    # Fetch / save
    # ------------------------------------------------------------------

    def fetch_sync(self) -> None:
        """Re-read every stream from storage.

        All streams are read and composed before anything is swapped
        in, so a read or decode failure leaves the store unchanged.
        """
        with self._lock:
            loaded = {
                name: self._read_stream(path)
                for name, path in self._streams.items()
            }
            self._compose(loaded)
            self._flat = loaded
            self._persisted = dict(loaded)
            self._view.invalidate()
        logger.info(
            "Fetched %s from %s",
            self.collection, ", ".join(str(p) for p in self._streams.values()),
        )

    def save_sync(self) -> list[str]:
        """Write every dirty stream.  Returns the names written."""
        with self._lock:
            written = self._write_dirty()
        if written:
            logger.info("Saved %s streams: %s", self.collection, ", ".join(written))
        else:
            logger.debug("Nothing to save for %s", self.collection)
        return written

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def import_entities(
        self,
        incoming: list[T],
        resolver: ConflictResolver | None = None,
    ) -> None:
        """Merge ``incoming`` into the collection.

        For each incoming entity, the first existing entity with the
        same name decides:

        * none, or structurally equal -> incoming is appended as is;
        * different, no resolver -> the existing one is dropped;
        * different, with resolver -> incoming is renamed to
          ``resolver(name)``.  Returning the same name drops the
          existing one.  Returning an empty name, or one already used
          by another existing or incoming entity, raises
          :class:`ConflictResolutionError` and nothing changes.

        An entity with an empty name (the listeners activity group) is
        never passed to the resolver; a conflicting one replaces the
        existing one.
        """
        with self._lock:
            working = self._snapshot()
            arrivals = [e.model_copy(deep=True) for e in incoming]
            for i, entity in enumerate(arrivals):
                key = self.key_of(entity)
                index = self._find_index(working, key)
                if index is None or working[index] == entity:
                    continue
                resolved = resolver(key) if resolver is not None and key else key
                if resolved == key:
                    del working[index]
                    continue
                self._check_resolved(key, resolved, working, arrivals, i)
                arrivals[i] = self.renamed(entity, resolved)
            self._commit(working + arrivals)
        logger.info(
            "Imported %d entities into %s (now %d)",
            len(arrivals), self.collection, len(self),
        )

    def import_file_sync(
        self,
        source: str | Path,
        resolver: ConflictResolver | None = None,
    ) -> None:
        """Decode an exported collection from ``source`` and merge it."""
        with self._lock:
            text = self._decode_bytes(self._storage.read(Path(source)), source)
            self.import_entities(self.decode_entities(text), resolver)

    def export_sync(self, destination: str | Path) -> None:
        """Write the materialized collection to ``destination``."""
        with self._lock:
            payload = self._adapter.dump_json(self._view.get())
            self._storage.write(Path(destination), payload)
        logger.info("Exported %s to %s", self.collection, destination)

    def decode_entities(self, text: str) -> list[T]:
        """Parse an exported collection."""
        if not text.strip():
            return []
        try:
            return self._adapter.validate_json(text)
        except ValidationError as exc:
            raise DecodeError(
                f"Invalid {self.collection} export: {exc}"
            ) from exc

    def encode_entities(self, entities: list[T], *, indent: int | None = None) -> str:
        return self._adapter.dump_json(entities, indent=indent).decode("utf-8")

    # ------------------------------------------------------------------
    # Async API
    # ------------------------------------------------------------------

    async def fetch(self) -> None:
        await self._run_in_executor(self.fetch_sync)

    async def save(self) -> list[str]:
        return await self._run_in_executor(self.save_sync)

    async def import_file(
        self,
        source: str | Path,
        resolver: ConflictResolver | None = None,
    ) -> None:
        await self._run_in_executor(self.import_file_sync, source, resolver)

    async def export(self, destination: str | Path) -> None:
        await self._run_in_executor(self.export_sync, destination)

    def launch_fetch(self, callback: ActionFinishListener | None = None) -> Future:
        return self._launch(self.fetch_sync, callback=callback)

    def launch_save(self, callback: ActionFinishListener | None = None) -> Future:
        return self._launch(self.save_sync, callback=callback)

    def launch_import(
        self,
        source: str | Path,
        resolver: ConflictResolver | None = None,
        callback: ActionFinishListener | None = None,
    ) -> Future:
        return self._launch(self.import_file_sync, source, resolver, callback=callback)

    def launch_export(
        self,
        destination: str | Path,
        callback: ActionFinishListener | None = None,
    ) -> Future:
        return self._launch(self.export_sync, destination, callback=callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Shut down the executor if this store created it."""
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def __enter__(self) -> DefinitionsStore[T]:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _snapshot(self) -> list[T]:
        """Deep copies of the view.  Caller holds ``_lock``."""
        return [e.model_copy(deep=True) for e in self._view.get()]

    def _find_index(self, items: list[T], key: str) -> int | None:
        for i, entity in enumerate(items):
            if self.key_of(entity) == key:
                return i
        return None

    def _require_index(self, items: list[T], key: str) -> int:
        index = self._find_index(items, key)
        if index is None:
            raise NotFoundError(key, self.collection)
        return index

    def _check_resolved(
        self,
        conflict: str,
        resolved: str,
        working: list[T],
        arrivals: list[T],
        position: int,
    ) -> None:
        if resolved == "":
            raise ConflictResolutionError(conflict, resolved, "empty name")
        if self._find_index(working, resolved) is not None:
            raise ConflictResolutionError(
                conflict, resolved, "name already used by an existing entity",
            )
        for j, other in enumerate(arrivals):
            if j != position and self.key_of(other) == resolved:
                raise ConflictResolutionError(
                    conflict, resolved, "name already used by an imported entity",
                )

    def _commit(self, entities: list[T]) -> None:
        """Replace flat values with the flattening of ``entities``.

        Caller holds ``_lock``.  In write-through mode the changed
        streams are written before returning; if a write fails the
        previous flat values are restored and the error propagates.
        """
        records = self._flatten(entities)
        previous = self._flat
        self._flat = {
            name: self._encode_stream(previous[name], records[name])
            for name in self._streams
        }
        self._view.invalidate()
        if not self._write_through:
            return
        try:
            self._write_dirty()
        except Exception:
            self._flat = previous
            self._view.invalidate()
            raise

    def _encode_stream(self, current: str, records: list[Record]) -> str:
        """Encode ``records``, keeping ``current`` if it already holds them."""
        text = self._codec.encode(records)
        if text != current and self._codec.decode(current) == records:
            return current
        return text

    def _write_dirty(self) -> list[str]:
        written: list[str] = []
        for name, path in self._streams.items():
            text = self._flat[name]
            if text == self._persisted[name]:
                continue
            self._storage.write(path, text.encode("utf-8"))
            self._persisted[name] = text
            written.append(name)
        return written

    def _read_stream(self, path: Path) -> str:
        if self._missing_ok and not self._storage.exists(path):
            logger.debug("%s missing, treating as empty", path)
            return self._codec.encode([])
        text = self._decode_bytes(self._storage.read(path), path)
        self._codec.decode(text)
        return text

    @staticmethod
    def _decode_bytes(data: bytes, source: str | Path) -> str:
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"{source} is not UTF-8 text: {exc}") from exc

    async def _run_in_executor(self, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        ctx = contextvars.copy_context()
        return await loop.run_in_executor(
            self._executor, functools.partial(ctx.run, fn, *args),
        )

    def _launch(
        self,
        fn: Callable[..., Any],
        *args: Any,
        callback: ActionFinishListener | None = None,
    ) -> Future:
        def task() -> Any:
            result = fn(*args)
            if callback is not None:
                callback()
            return result

        # Run under the caller's context so bound log fields follow.
        future = self._executor.submit(contextvars.copy_context().run, task)
        future.add_done_callback(
            functools.partial(self._log_failure, fn.__name__),
        )
        return future

    def _log_failure(self, operation: str, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error(
                "Background %s failed for %s: %s",
                operation, self.collection, exc,
                exc_info=(type(exc), exc, exc.__traceback__),
            )

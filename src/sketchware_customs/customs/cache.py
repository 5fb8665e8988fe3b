"""Lazily materialized, invalidatable view over flat values."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MaterializedView(Generic[T]):
    """Caches the result of an expensive composition until invalidated.

    Parameters
    ----------
    compose:
        Builds the collection from the owner's current flat values.
        Must be deterministic.
    lock:
        Lock shared with the owner's mutation path.  Reentrant, since
        the owner already holds it when it reads through the view.
    name:
        Used in log messages only.
    """

    def __init__(
        self,
        compose: Callable[[], list[T]],
        lock: threading.RLock,
        *,
        name: str = "",
    ) -> None:
        self._compose = compose
        self._lock = lock
        self._name = name
        self._value: list[T] | None = None
        self._computations = 0

    def get(self) -> list[T]:
        """Return the cached collection, composing it if needed."""
        with self._lock:
            if self._value is None:
                self._value = self._compose()
                self._computations += 1
                logger.debug(
                    "Materialized %s (%d entities, computation #%d)",
                    self._name or "view", len(self._value), self._computations,
                )
            return self._value

    def invalidate(self) -> None:
        """Discard the cached collection."""
        with self._lock:
            self._value = None

    reset = invalidate

    @property
    def is_materialized(self) -> bool:
        with self._lock:
            return self._value is not None

    @property
    def computations(self) -> int:
        """How many times ``compose`` has run."""
        return self._computations

"""Protocol interfaces for the customs manager.

The definitions stores only talk to storage and codecs through these
protocols, so file system, in-memory and test doubles are interchangeable.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Protocol, runtime_checkable

Record = dict[str, str]
"""One persisted record: field name to string value."""

ActionFinishListener = Callable[[], None]
"""Completion signal invoked after a background operation finishes."""

ConflictResolver = Callable[[str], str]
"""Maps a conflicting existing name to the name for the incoming entity."""


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

@runtime_checkable
class IFlatStorage(Protocol):
    """Whole-file byte storage."""

    def read(self, path: Path) -> bytes: ...

    def write(self, path: Path, data: bytes) -> None: ...

    def exists(self, path: Path) -> bool: ...


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------

@runtime_checkable
class IRecordCodec(Protocol):
    """Converts a record stream between text and a list of records."""

    def encode(self, records: list[Record]) -> str: ...

    def decode(self, text: str) -> list[Record]: ...

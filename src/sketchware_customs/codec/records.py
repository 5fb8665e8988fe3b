"""Record stream codec.

Sketchware keeps every custom definition stream as a JSON array of flat
objects whose values are strings.  ``JsonRecordCodec`` converts such a
stream to ``list[Record]`` and back; ``RecordSchema`` pins the field
names of one stream and fills absent fields with ``""``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping

from sketchware_customs.core.errors import DecodeError
from sketchware_customs.core.interfaces import Record


def _to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    raise DecodeError(f"Unsupported record value: {value!r}")


class JsonRecordCodec:
    """JSON implementation of ``IRecordCodec``.

    ``decode(encode(records)) == records`` for any list of string maps.
    Empty or whitespace-only text decodes to an empty list.
    """

    def encode(self, records: list[Record]) -> str:
        return json.dumps(records, ensure_ascii=False)

    def decode(self, text: str) -> list[Record]:
        if not text.strip():
            return []
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DecodeError(f"Stream is not valid JSON: {exc}") from exc
        if not isinstance(data, list):
            raise DecodeError(
                f"Stream must be a JSON array, got {type(data).__name__}"
            )
        records: list[Record] = []
        for i, item in enumerate(data):
            if not isinstance(item, dict):
                raise DecodeError(
                    f"Record {i} must be an object, got {type(item).__name__}"
                )
            records.append({str(k): _to_str(v) for k, v in item.items()})
        return records


@dataclass(frozen=True)
class RecordSchema:
    """Fixed field layout of one record stream."""

    name: str
    fields: tuple[str, ...]

    def normalize(self, record: Mapping[str, str]) -> Record:
        """Return ``record`` restricted to the schema, defaults filled in."""
        return {f: record.get(f, "") for f in self.fields}

    def build(self, **values: str) -> Record:
        """Build a record from keyword values, in schema field order."""
        unknown = set(values) - set(self.fields)
        if unknown:
            raise ValueError(
                f"Unknown fields for {self.name}: {sorted(unknown)}"
            )
        return {f: values.get(f, "") for f in self.fields}

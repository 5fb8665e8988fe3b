"""Record stream and block spec codecs."""

from .records import JsonRecordCodec, RecordSchema
from .spec_fields import SpecField, SpecFieldKind, format_spec, parse_spec

__all__ = [
    "JsonRecordCodec",
    "RecordSchema",
    "SpecField",
    "SpecFieldKind",
    "format_spec",
    "parse_spec",
]

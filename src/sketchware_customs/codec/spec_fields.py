"""Block header spec parsing.

A Sketchware block spec is a space separated sentence in which
parameters are written as ``%s`` (string), ``%b`` (boolean), ``%d``
(number) or ``%m.<menu>`` (dropdown), e.g.
``"when %m.view clicked with %s.label"``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class SpecFieldKind(str, Enum):
    TEXT = "text"
    PARAMETER = "parameter"


class SpecField(BaseModel):
    """One token of a block spec."""

    kind: SpecFieldKind = SpecFieldKind.TEXT
    value: str = ""  # Literal text, or the parameter type ("s", "b", "d", "m")
    name: str = ""  # Parameter suffix after the first dot, e.g. "view"

    @property
    def is_parameter(self) -> bool:
        return self.kind == SpecFieldKind.PARAMETER

    def to_token(self) -> str:
        if not self.is_parameter:
            return self.value
        if self.name:
            return f"%{self.value}.{self.name}"
        return f"%{self.value}"


def parse_spec(spec: str) -> list[SpecField]:
    """Split a spec string into fields.

    Splits on single spaces so that ``format_spec(parse_spec(s)) == s``
    for every string, including ones with repeated spaces.
    """
    if spec == "":
        return []
    fields: list[SpecField] = []
    for token in spec.split(" "):
        if len(token) > 1 and token.startswith("%"):
            param_type, sep, name = token[1:].partition(".")
            if param_type and (name or not sep):
                fields.append(SpecField(
                    kind=SpecFieldKind.PARAMETER, value=param_type, name=name,
                ))
                continue
        fields.append(SpecField(value=token))
    return fields


def format_spec(fields: list[SpecField]) -> str:
    """Join fields back into a spec string."""
    return " ".join(f.to_token() for f in fields)

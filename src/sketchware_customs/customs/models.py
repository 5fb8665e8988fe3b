"""Domain models for custom definitions.

These are the typed entities callers work with.  Each one is composed
from one or more flat records by its store and flattened back on every
mutation.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from sketchware_customs.codec.spec_fields import SpecField


# ---------------------------------------------------------------------------
# Listeners
# ---------------------------------------------------------------------------

class CustomEvent(BaseModel):
    """A custom event block attached to a listener group.

    Fields
    ------
    spec : list[SpecField]
        Parsed header spec of the event block.
    icon_id : int
        Resource id of the block icon.
    id : str
        Variable (``var``) the event is bound to.
    description : str
        Human readable description shown in the block palette.
    parameters : str
        Raw parameter declaration of the generated method.
    name : str
        Event name.
    code : str
        Java code generated for the event.
    """

    spec: list[SpecField] = Field(default_factory=list)
    icon_id: int = 0
    id: str = ""
    description: str = ""
    parameters: str = ""
    name: str = ""
    code: str = ""


class CustomListenerGroup(BaseModel):
    """A named group of custom events sharing one listener.

    The group with an empty name is the activity group: it collects the
    events that are not bound to any listener and is never written to
    the listeners stream itself.
    """

    name: str
    independent: bool = True  # "s" flag in the listeners stream
    custom_import: str = ""
    code: str = ""
    events: list[CustomEvent] = Field(default_factory=list)

    @property
    def is_activity_group(self) -> bool:
        return self.name == ""


# ---------------------------------------------------------------------------
# Menus
# ---------------------------------------------------------------------------

class CustomMenu(BaseModel):
    """A custom dropdown menu usable as a ``%m.<id>`` block parameter."""

    id: str
    title: str = ""
    data: str = ""

"""Custom listener groups store (``events.json`` + ``listeners.json``)."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from sketchware_customs.codec.records import RecordSchema
from sketchware_customs.codec.spec_fields import format_spec, parse_spec
from sketchware_customs.core.errors import DecodeError
from sketchware_customs.core.interfaces import Record

from .models import CustomEvent, CustomListenerGroup
from .store import DefinitionsStore

EVENTS = RecordSchema(
    "events",
    ("headerSpec", "icon", "var", "description", "parameters", "name", "code", "listener"),
)
LISTENERS = RecordSchema("listeners", ("name", "code", "s", "imports"))

# Always present; holds events that are not bound to a listener.
ACTIVITY_GROUP: Record = {"name": "", "code": "", "s": "true", "imports": ""}


def event_from_record(record: Record) -> CustomEvent:
    icon = record["icon"].strip()
    try:
        icon_id = int(icon) if icon else 0
    except ValueError as exc:
        raise DecodeError(
            f"Event {record['name']!r} has a non-numeric icon {record['icon']!r}"
        ) from exc
    return CustomEvent(
        spec=parse_spec(record["headerSpec"]),
        icon_id=icon_id,
        id=record["var"],
        description=record["description"],
        parameters=record["parameters"],
        name=record["name"],
        code=record["code"],
    )


def event_to_record(event: CustomEvent, listener: str) -> Record:
    return EVENTS.build(
        headerSpec=format_spec(event.spec),
        icon=str(event.icon_id),
        var=event.id,
        description=event.description,
        parameters=event.parameters,
        name=event.name,
        code=event.code,
        listener=listener,
    )


class CustomListenersStore(DefinitionsStore[CustomListenerGroup]):
    """Listener groups composed from a listeners stream and an events stream.

    Each listener record becomes a group holding, in stream order, the
    event records whose ``listener`` field equals its name.  The activity
    group (empty name) is appended last and owns the unbound events.
    When several groups share a name only the first one receives the
    events, and only the first one's events are written back.  Events
    held by a later namesake are dropped on flatten.
    """

    collection = "listeners"
    entity_type = CustomListenerGroup

    def __init__(
        self,
        events_path: str | Path,
        listeners_path: str | Path,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            {"events": events_path, "listeners": listeners_path}, **kwargs,
        )

    def key_of(self, entity: CustomListenerGroup) -> str:
        return entity.name

    def renamed(self, entity: CustomListenerGroup, key: str) -> CustomListenerGroup:
        return entity.model_copy(update={"name": key}, deep=True)

    @property
    def activity_group(self) -> CustomListenerGroup:
        return self.get("")

    def _compose(self, flat: Mapping[str, str]) -> list[CustomListenerGroup]:
        events = [EVENTS.normalize(r) for r in self._codec.decode(flat["events"])]
        listeners = [
            LISTENERS.normalize(r) for r in self._codec.decode(flat["listeners"])
        ]
        listeners = [r for r in listeners if r["name"] != ""]
        listeners.append(dict(ACTIVITY_GROUP))

        groups: list[CustomListenerGroup] = []
        claimed: set[str] = set()
        for record in listeners:
            name = record["name"]
            owned = [] if name in claimed else [
                event_from_record(e) for e in events if e["listener"] == name
            ]
            claimed.add(name)
            groups.append(CustomListenerGroup(
                name=name,
                independent=record["s"].strip().lower() == "true",
                custom_import=record["imports"],
                code=record["code"],
                events=owned,
            ))
        return groups

    def _flatten(self, entities: list[CustomListenerGroup]) -> dict[str, list[Record]]:
        listeners = [
            LISTENERS.build(
                name=group.name,
                code=group.code,
                s="true" if group.independent else "false",
                imports=group.custom_import,
            )
            for group in entities
            if group.name != ""
        ]
        # Events are tagged by name only, so only the first group of a name
        # can own them.
        events: list[Record] = []
        seen: set[str] = set()
        for group in entities:
            if group.name in seen:
                continue
            seen.add(group.name)
            events.extend(event_to_record(event, group.name) for event in group.events)
        return {"events": events, "listeners": listeners}

"""File-backed stores for Sketchware custom listeners and menus."""

from .customs import (
    CustomEvent,
    CustomListenerGroup,
    CustomListenersStore,
    CustomMenu,
    CustomMenusStore,
    DefinitionsStore,
)
from .manager import CustomsManager

__version__ = "0.1.0"

__all__ = [
    "CustomEvent",
    "CustomListenerGroup",
    "CustomListenersStore",
    "CustomMenu",
    "CustomMenusStore",
    "CustomsManager",
    "DefinitionsStore",
]

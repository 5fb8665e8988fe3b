"""Custom definitions stores."""

from .cache import MaterializedView
from .listeners import CustomListenersStore
from .menus import CustomMenusStore
from .models import CustomEvent, CustomListenerGroup, CustomMenu
from .store import DefinitionsStore

__all__ = [
    "CustomEvent",
    "CustomListenerGroup",
    "CustomListenersStore",
    "CustomMenu",
    "CustomMenusStore",
    "DefinitionsStore",
    "MaterializedView",
]

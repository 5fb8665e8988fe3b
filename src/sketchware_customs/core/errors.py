"""Custom exception hierarchy for the customs manager."""


class CustomsError(Exception):
    """Base exception for all customs manager errors."""


# --- Configuration ---
class ConfigError(CustomsError):
    """Invalid or missing configuration."""


# --- Storage ---
class StorageError(CustomsError, OSError):
    """Backing file could not be read or written."""

    def __init__(self, path: object, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Storage failure on {path}: {reason}")


# --- Codec ---
class DecodeError(CustomsError, ValueError):
    """Flat text does not match the expected record schema."""


# --- Definitions ---
class NotFoundError(CustomsError, KeyError):
    """No definition with the requested name/id."""

    def __init__(self, key: str, collection: str = ""):
        self.key = key
        self.collection = collection
        where = f" in {collection}" if collection else ""
        super().__init__(f"No definition named {key!r}{where}")

    def __str__(self) -> str:
        return self.args[0]


class ConflictResolutionError(CustomsError):
    """Conflict resolver produced a name that cannot be used."""

    def __init__(self, conflict: str, resolved: str, reason: str):
        self.conflict = conflict
        self.resolved = resolved
        self.reason = reason
        super().__init__(
            f"Resolver mapped {conflict!r} to {resolved!r}: {reason}"
        )

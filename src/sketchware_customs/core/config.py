"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class LayoutConfig(BaseModel):
    """File layout below the Sketchware folder (all paths relative)."""

    listeners_dir: str = "data/system"
    events_file: str = "events.json"
    listeners_file: str = "listeners.json"
    menus_file: str = "resources/block/Menu Block/block.json"


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "console"  # "json" or "console"


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level application settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    sketchware_dir: Path = Field(
        default_factory=lambda: Path.home() / ".sketchware"
    )
    io_workers: int = Field(default=4, ge=1)  # Background I/O threads
    write_through: bool = False  # Persist on every mutation
    missing_ok: bool = True  # Missing stream file reads as empty

    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "SKETCHWARE_", "env_nested_delimiter": "__"}

    @property
    def events_path(self) -> Path:
        return self.sketchware_dir / self.layout.listeners_dir / self.layout.events_file

    @property
    def listeners_path(self) -> Path:
        return self.sketchware_dir / self.layout.listeners_dir / self.layout.listeners_file

    @property
    def menus_path(self) -> Path:
        return self.sketchware_dir / self.layout.menus_file


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            from .errors import ConfigError

            try:
                with open(path, "rb") as f:
                    data = tomli.load(f)
            except tomli.TOMLDecodeError as exc:
                raise ConfigError(f"Malformed config file {path}: {exc}") from exc

    if overrides:
        data.update(overrides)

    return Settings(**data)

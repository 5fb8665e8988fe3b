"""CLI entry point for the customs manager."""

from __future__ import annotations

from pathlib import Path

import click

from .core.config import load_settings
from .core.errors import CustomsError
from .customs.models import CustomMenu
from .customs.store import DefinitionsStore
from .manager import CustomsManager
from .observability.logger import bind_sketchware_dir, setup_logging


def _suffix_resolver(suffix: str | None):
    if not suffix:
        return None
    return lambda name: f"{name}{suffix}"


@click.group()
@click.option("--config", default=None, help="Config file path (TOML)")
@click.option("--sketchware-dir", default=None, help="Sketchware folder override")
@click.pass_context
def main(ctx: click.Context, config: str | None, sketchware_dir: str | None) -> None:
    """Manage Sketchware custom listeners and menus."""
    overrides: dict = {}
    if sketchware_dir:
        overrides["sketchware_dir"] = sketchware_dir
    try:
        settings = load_settings(config_path=config, overrides=overrides)
    except CustomsError as exc:
        raise click.ClickException(str(exc)) from exc

    setup_logging(
        level=settings.observability.log_level,
        format=settings.observability.log_format,
    )
    bind_sketchware_dir(str(settings.sketchware_dir))
    ctx.obj = ctx.with_resource(CustomsManager(settings))


def _run(action):
    try:
        return action()
    except CustomsError as exc:
        raise click.ClickException(str(exc)) from exc


def _list(store: DefinitionsStore) -> None:
    click.echo(_run(lambda: store.encode_entities(store.entities, indent=2)))


def _remove(store: DefinitionsStore, key: str) -> None:
    def action() -> bool:
        removed = store.remove(key)
        store.save_sync()
        return removed

    if _run(action):
        click.echo(f"Removed {key!r}")
    else:
        click.echo(f"{key!r} not found, nothing removed")


def _import(store: DefinitionsStore, source: Path, rename_suffix: str | None) -> None:
    def action() -> None:
        store.import_file_sync(source, _suffix_resolver(rename_suffix))
        store.save_sync()

    _run(action)
    click.echo(f"Imported {source} ({len(store)} {store.collection})")


def _export(store: DefinitionsStore, destination: Path) -> None:
    _run(lambda: store.export_sync(destination))
    click.echo(f"Exported {len(store)} {store.collection} to {destination}")


# ---------------------------------------------------------------------------
# listeners
# ---------------------------------------------------------------------------

@main.group()
def listeners() -> None:
    """Custom listener groups."""


@listeners.command("list")
@click.pass_obj
def listeners_list(manager: CustomsManager) -> None:
    """Print every listener group as JSON."""
    _list(_run(lambda: manager.listeners))


@listeners.command("remove")
@click.argument("name")
@click.pass_obj
def listeners_remove(manager: CustomsManager, name: str) -> None:
    """Remove a listener group and its events."""
    _remove(_run(lambda: manager.listeners), name)


@listeners.command("import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--rename-suffix", default=None, help="Rename conflicting imports with this suffix")
@click.pass_obj
def listeners_import(manager: CustomsManager, source: Path, rename_suffix: str | None) -> None:
    """Merge exported listener groups into the collection."""
    _import(_run(lambda: manager.listeners), source, rename_suffix)


@listeners.command("export")
@click.argument("destination", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def listeners_export(manager: CustomsManager, destination: Path) -> None:
    """Write every listener group to a file."""
    _export(_run(lambda: manager.listeners), destination)


# ---------------------------------------------------------------------------
# menus
# ---------------------------------------------------------------------------

@main.group()
def menus() -> None:
    """Custom menus."""


@menus.command("list")
@click.pass_obj
def menus_list(manager: CustomsManager) -> None:
    """Print every menu as JSON."""
    _list(_run(lambda: manager.menus))


@menus.command("add")
@click.argument("menu_id")
@click.option("--title", default="", help="Menu title")
@click.option("--data", default="", help="Menu entries")
@click.pass_obj
def menus_add(manager: CustomsManager, menu_id: str, title: str, data: str) -> None:
    """Add a custom menu."""
    store = _run(lambda: manager.menus)

    def action() -> None:
        store.add(CustomMenu(id=menu_id, title=title, data=data))
        store.save_sync()

    _run(action)
    click.echo(f"Added {menu_id!r}")


@menus.command("remove")
@click.argument("menu_id")
@click.pass_obj
def menus_remove(manager: CustomsManager, menu_id: str) -> None:
    """Remove a custom menu by id."""
    _remove(_run(lambda: manager.menus), menu_id)


@menus.command("import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--rename-suffix", default=None, help="Rename conflicting imports with this suffix")
@click.pass_obj
def menus_import(manager: CustomsManager, source: Path, rename_suffix: str | None) -> None:
    """Merge exported menus into the collection."""
    _import(_run(lambda: manager.menus), source, rename_suffix)


@menus.command("export")
@click.argument("destination", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def menus_export(manager: CustomsManager, destination: Path) -> None:
    """Write every menu to a file."""
    _export(_run(lambda: manager.menus), destination)

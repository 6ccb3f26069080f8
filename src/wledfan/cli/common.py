from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import typer

from wledfan.config import (
    Settings,
    data_dir_from_settings,
    get_settings,
    resolve_config_path,
)
from wledfan.core import CommandDispatcher, DeviceRegistry
from wledfan.storage import Database

T = TypeVar("T")


def load_settings_or_exit() -> Settings:
    try:
        return get_settings()
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


def resolve_config_path_or_exit(allow_missing: bool = False) -> tuple[Path, bool]:
    try:
        return resolve_config_path(allow_missing=allow_missing)
    except FileNotFoundError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


def build_database(settings: Settings, data_dir: Path | None = None) -> Database:
    path = data_dir or data_dir_from_settings(settings)
    return Database(path)


def build_registry(settings: Settings) -> DeviceRegistry:
    registry = DeviceRegistry(build_database(settings), settings.controller)
    registry.load()
    return registry


def require_selection(registry: DeviceRegistry) -> None:
    if registry.selected is None:
        typer.echo(
            "No device selected. Use 'wledfan devices select' first.", err=True
        )
        raise typer.Exit(1)


def run_with_dispatcher(
    settings: Settings,
    action: Callable[[CommandDispatcher], Awaitable[T]],
) -> T:
    """Run ``action`` against the selected device and close the dispatcher."""
    registry = build_registry(settings)
    require_selection(registry)

    async def _run() -> T:
        dispatcher = CommandDispatcher(registry, settings.controller)
        try:
            return await action(dispatcher)
        finally:
            await dispatcher.close()

    return asyncio.run(_run())

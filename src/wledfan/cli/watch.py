from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from wledfan.config import Settings
from wledfan.core import CommandDispatcher, ControlSession

from .common import build_registry, load_settings_or_exit, require_selection


async def watch_session(
    settings: Settings, console: Console, duration: float | None
) -> None:
    registry = build_registry(settings)
    dispatcher = CommandDispatcher(registry, settings.controller)
    session = ControlSession(dispatcher, settings.session)

    def _report(changed: frozenset[str]) -> None:
        if "brightness" in changed or "light_on" in changed:
            power = "on" if session.light_on else "off"
            console.print(f"Light {power}, brightness {session.brightness}%")
        if "active_preset" in changed:
            active = session.active_preset
            console.print(f"Active preset: {'none' if active is None else active}")

    session.subscribe(_report)
    await session.refresh_presets()
    for preset in session.presets:
        console.print(f"  preset {preset.id}: {preset.name}")

    session.start()
    try:
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)
    finally:
        await session.stop()
        await dispatcher.close()


def register(app: typer.Typer) -> None:
    @app.command()
    def watch(
        duration: float | None = typer.Option(
            None, "--duration", "-d", help="Stop after this many seconds"
        ),
    ) -> None:
        """Poll the selected controller and print state changes."""
        settings = load_settings_or_exit()
        require_selection(build_registry(settings))
        console = Console()
        console.print("Watching controller state. Press Ctrl+C to stop.\n")
        try:
            asyncio.run(watch_session(settings, console, duration))
        except KeyboardInterrupt:
            console.print("\n[green]Stopped.[/green]")

from __future__ import annotations

import typer
from rich.console import Console

from .common import (
    build_database,
    build_registry,
    load_settings_or_exit,
    resolve_config_path_or_exit,
)


def register(app: typer.Typer) -> None:
    @app.command()
    def info() -> None:
        """Show data directory, configuration and registry stats."""
        settings = load_settings_or_exit()
        db = build_database(settings)
        registry = build_registry(settings)

        config_path, config_exists = resolve_config_path_or_exit(allow_missing=True)

        console = Console()

        console.print("[bold]wledfan Info[/bold]\n")
        console.print(f"Data directory: {db.path}")
        console.print(f"Config file: {config_path if config_exists else 'defaults'}")

        console.print("\n[bold]Configuration[/bold]")
        console.print(f"Service type: {settings.discovery.service_type}")
        console.print(f"Discovery interval: {settings.discovery.interval}s")
        console.print(f"Realtime UDP port: {settings.controller.realtime_port}")
        fallback = settings.controller.fallback_address or "disabled"
        console.print(f"AP-mode address: {fallback}")

        console.print("\n[bold]Registry[/bold]")
        console.print(f"Saved devices: {len(registry)}")
        selected = registry.selected
        if selected is not None:
            console.print(f"Selected: {selected.name} ({selected.address})")
        else:
            console.print("Selected: none")

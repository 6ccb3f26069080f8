from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console
from rich.table import Table

from wledfan.config import DiscoveryConfig
from wledfan.core import DeviceRegistry, DiscoveryEngine
from wledfan.models import Device
from wledfan.utils.redaction import Redactor

from .common import build_registry, load_settings_or_exit

logger = logging.getLogger(__name__)


async def run_discovery(
    registry: DeviceRegistry, config: DiscoveryConfig
) -> tuple[list[Device], str | None]:
    """Run a single scan and return the new devices plus any discovery error."""
    engine = DiscoveryEngine(registry, config)
    try:
        await engine.start_scan()
        await engine.wait_idle()
        return engine.discovered, engine.error_message
    finally:
        await engine.stop()


def register(app: typer.Typer) -> None:
    @app.command()
    def discover(
        add: bool = typer.Option(
            False, "--add", help="Save every discovered device to the registry"
        ),
        redact: bool = typer.Option(
            False, "--redact", help="Redact names and addresses in output"
        ),
    ) -> None:
        """Find WLED controllers on the local network via mDNS."""
        console = Console()
        settings = load_settings_or_exit()
        registry = build_registry(settings)

        console.print("Searching for WLED devices...")
        logger.info(
            "Discovery settings: service=%s, browse=%.1fs, resolve_timeout=%.1fs",
            settings.discovery.service_type,
            settings.discovery.browse_duration,
            settings.discovery.resolve_timeout,
        )
        devices, error = asyncio.run(run_discovery(registry, settings.discovery))

        if error:
            console.print(f"[red]{error}[/red]")
            raise typer.Exit(1)

        if not devices:
            console.print("No new WLED devices found.")
            return

        redactor = Redactor(enabled=redact)
        table = Table()
        table.add_column("Name", style="cyan")
        table.add_column("Address", style="green")
        for device in devices:
            table.add_row(
                redactor.redact_name(device.name),
                redactor.redact_address(device.address),
            )
        console.print(table)
        console.print(f"\n[green]Found {len(devices)} new device(s)[/green]")

        if add:
            for device in devices:
                registry.add(device)
            if registry.selected is None:
                registry.select(devices[0])
            console.print(f"[green]✓[/green] Saved {len(devices)} device(s)")

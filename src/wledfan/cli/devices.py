from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from wledfan.models import Device

from .common import build_registry, load_settings_or_exit

app = typer.Typer(no_args_is_help=True, help="Manage saved controllers.")


@app.command("list")
def list_devices() -> None:
    """List saved controllers."""
    settings = load_settings_or_exit()
    registry = build_registry(settings)
    console = Console()

    selected = registry.selected
    if selected is not None and selected not in registry:
        console.print(f"Selected: {selected.name} ({selected.address})")

    if not len(registry):
        console.print("No devices saved.")
        console.print("Use 'wledfan discover --add' or 'wledfan devices add'.")
        return

    table = Table()
    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Address", style="green")
    table.add_column("Web UI")
    table.add_column("Selected", justify="center")

    port = settings.controller.http_port
    for index, device in enumerate(registry.devices):
        mark = "✓" if device == selected else ""
        table.add_row(
            str(index), device.name, device.address, device.base_url(port), mark
        )

    console.print(table)


@app.command("add")
def add_device(
    name: str = typer.Argument(..., help="Display name"),
    address: str = typer.Argument(..., help="IP address or hostname"),
    select: bool = typer.Option(False, "--select", help="Also select the device"),
) -> None:
    """Save a controller by address."""
    settings = load_settings_or_exit()
    registry = build_registry(settings)
    device = Device(name=name, address=address)
    console = Console()

    if registry.add(device):
        console.print(f"[green]✓[/green] Added '{name}' → {address}")
    else:
        console.print(f"[yellow]![/yellow] A device at {address} is already saved")

    if select:
        registry.select(device)
        console.print(f"[green]✓[/green] Selected {address}")


@app.command("remove")
def remove_device(
    indices: list[int] = typer.Argument(..., help="Row numbers from 'devices list'"),
) -> None:
    """Remove saved controllers by row number."""
    settings = load_settings_or_exit()
    registry = build_registry(settings)
    console = Console()

    invalid = [i for i in indices if not 0 <= i < len(registry)]
    if invalid:
        console.print(f"[yellow]![/yellow] No device at row(s) {invalid}")
        raise typer.Exit(1)

    had_selection = registry.selected is not None
    registry.remove(indices)
    console.print(f"[green]✓[/green] Removed {len(set(indices))} device(s)")
    if had_selection and registry.selected is None:
        console.print("Selection cleared; pick another with 'wledfan devices select'.")


@app.command("select")
def select_device(
    address: Annotated[
        str | None, typer.Argument(help="Address of a saved device")
    ] = None,
    ap: Annotated[
        bool, typer.Option("--ap", help="Select the direct-connect AP-mode device")
    ] = False,
) -> None:
    """Choose which controller commands are sent to."""
    settings = load_settings_or_exit()
    registry = build_registry(settings)
    console = Console()

    if ap:
        device = registry.fallback
        if device is None:
            console.print("[yellow]![/yellow] No AP-mode address configured")
            raise typer.Exit(1)
    elif address is None:
        console.print("Give an address or --ap.")
        raise typer.Exit(1)
    else:
        device = registry.find(address)
        if device is None:
            console.print(f"[yellow]![/yellow] No saved device at {address}")
            raise typer.Exit(1)

    registry.select(device)
    console.print(f"[green]✓[/green] Selected {device.name} ({device.address})")

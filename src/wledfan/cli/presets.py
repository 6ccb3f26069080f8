from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from wledfan.core import CommandDispatcher
from wledfan.models import ControllerState, Preset

from .common import load_settings_or_exit, run_with_dispatcher
from .control import print_state

app = typer.Typer(no_args_is_help=True, help="List and apply controller presets.")


@app.command("list")
def list_presets() -> None:
    """List presets stored on the selected controller."""
    settings = load_settings_or_exit()

    async def _fetch(
        dispatcher: CommandDispatcher,
    ) -> tuple[list[Preset], ControllerState | None]:
        return await dispatcher.fetch_presets(), await dispatcher.fetch_state()

    presets, state = run_with_dispatcher(settings, _fetch)
    console = Console()

    if not presets:
        console.print("No presets found.")
        return

    active = state.preset if state is not None else -1
    table = Table()
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Name")
    table.add_column("Active", justify="center")
    for preset in presets:
        table.add_row(str(preset.id), preset.name, "✓" if preset.id == active else "")
    console.print(table)


@app.command("apply")
def apply_preset(
    preset_id: int = typer.Argument(..., min=1, help="Preset id from 'presets list'"),
) -> None:
    """Activate a preset and show the resulting state."""
    settings = load_settings_or_exit()

    async def _apply(dispatcher: CommandDispatcher) -> ControllerState | None:
        return await dispatcher.apply_preset(preset_id)

    state = run_with_dispatcher(settings, _apply)
    console = Console()
    if state is None:
        console.print(f"Requested preset {preset_id}; controller state unavailable")
        return
    print_state(console, state)

from __future__ import annotations

from enum import Enum
from typing import Annotated

import typer
from rich.console import Console

from wledfan.core import CommandDispatcher
from wledfan.core.protocol import bri_to_ui
from wledfan.models import ControllerState, RGBColor

from .common import load_settings_or_exit, run_with_dispatcher


class Power(str, Enum):
    on = "on"
    off = "off"


def register(app: typer.Typer) -> None:
    @app.command()
    def fan(
        speed: Annotated[
            int, typer.Argument(min=0, max=100, help="Fan speed in percent")
        ],
    ) -> None:
        """Set and lock the PWM fan speed."""
        settings = load_settings_or_exit()

        async def _send(dispatcher: CommandDispatcher) -> None:
            await dispatcher.send_fan(speed)

        run_with_dispatcher(settings, _send)
        Console().print(f"Fan speed → {speed}%")

    @app.command()
    def light(
        power: Annotated[Power, typer.Argument(help="on or off")],
        brightness: Annotated[
            int,
            typer.Option("--brightness", "-b", min=0, max=100, help="Percent"),
        ] = 100,
    ) -> None:
        """Switch the light and set its brightness."""
        settings = load_settings_or_exit()
        on = power is Power.on

        async def _send(dispatcher: CommandDispatcher) -> None:
            await dispatcher.send_light_state(on, brightness)

        run_with_dispatcher(settings, _send)
        Console().print(f"Light {power.value}" + (f" at {brightness}%" if on else ""))

    @app.command()
    def color(
        value: Annotated[str, typer.Argument(help="Hex color, e.g. ffaa00")],
        brightness: Annotated[
            int,
            typer.Option("--brightness", "-b", min=0, max=100, help="Percent"),
        ] = 100,
    ) -> None:
        """Send one realtime color frame over UDP."""
        try:
            rgb = RGBColor.from_hex(value)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="VALUE") from exc
        settings = load_settings_or_exit()

        async def _send(dispatcher: CommandDispatcher) -> None:
            await dispatcher.send_color(rgb, brightness, on=True)

        run_with_dispatcher(settings, _send)
        Console().print(f"Color → {rgb.to_hex()} at {brightness}%")

    @app.command()
    def state() -> None:
        """Show the controller's current light state."""
        settings = load_settings_or_exit()

        async def _fetch(dispatcher: CommandDispatcher) -> ControllerState | None:
            return await dispatcher.fetch_state()

        result = run_with_dispatcher(settings, _fetch)
        console = Console()
        if result is None:
            console.print("[yellow]![/yellow] Could not read controller state")
            raise typer.Exit(1)
        print_state(console, result)


def print_state(console: Console, state: ControllerState) -> None:
    power = "unknown" if state.on is None else ("on" if state.on else "off")
    preset = state.preset if state.preset >= 0 else "none"
    console.print(f"Power: {power}")
    bri = state.brightness
    console.print(f"Brightness: {bri_to_ui(bri)}% (bri={bri})")
    console.print(f"Preset: {preset}")

from __future__ import annotations

from typing import Annotated

import typer

from wledfan.utils.logging import setup_logging

from . import config as config_cmd
from . import devices as devices_cmd
from . import presets as presets_cmd
from .control import register as register_control
from .discover import register as register_discover
from .info import register as register_info
from .mock import register as register_mock
from .watch import register as register_watch

app = typer.Typer(
    help="wledfan - control WLED fan and light controllers", no_args_is_help=True
)

app.add_typer(config_cmd.app, name="config")
app.add_typer(devices_cmd.app, name="devices")
app.add_typer(presets_cmd.app, name="presets")

register_info(app)
register_discover(app)
register_control(app)
register_watch(app)
register_mock(app)


@app.callback(invoke_without_command=True)
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", help="Show version and exit"),
    ] = False,
) -> None:
    """wledfan CLI."""
    setup_logging()

    if version:
        from importlib.metadata import version as get_version

        typer.echo(f"wledfan version {get_version('wledfan')}")
        raise typer.Exit()

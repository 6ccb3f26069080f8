from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from wledfan.config import REALTIME_UDP_PORT
from wledfan.core import run_mock_controller


def register(app: typer.Typer) -> None:
    @app.command()
    def mock(
        name: str = typer.Option("wled-mock", "--name", "-n", help="Instance name"),
        http_port: int = typer.Option(8080, "--http-port", "-p", help="HTTP port"),
        realtime_port: int = typer.Option(
            REALTIME_UDP_PORT, "--realtime-port", help="Realtime UDP port"
        ),
        advertise: bool = typer.Option(
            False, "--advertise/--no-advertise", help="Announce via mDNS"
        ),
    ) -> None:
        """Run a mock WLED controller for development."""
        console = Console()
        console.print(f"Starting mock controller '{name}' on port {http_port}...")
        console.print("Press Ctrl+C to stop.\n")

        try:
            asyncio.run(
                run_mock_controller(
                    name=name,
                    http_port=http_port,
                    realtime_port=realtime_port,
                    advertise=advertise,
                )
            )
        except KeyboardInterrupt:
            console.print("\n[green]Mock controller stopped.[/green]")

"""Tests for the public API."""

from __future__ import annotations

from typer.testing import CliRunner

import wledfan
from wledfan import __version__
from wledfan.cli.app import app

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"wledfan version {__version__}" in result.stdout


def test_top_level_exports():
    assert wledfan.DeviceRegistry is not None
    assert wledfan.DiscoveryEngine is not None
    assert wledfan.CommandDispatcher is not None
    assert wledfan.ControlSession is not None

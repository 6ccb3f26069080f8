from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

import wledfan.cli.discover as discover_cmd
from wledfan.cli.app import app
from wledfan.config import DiscoveryConfig
from wledfan.core import CommandDispatcher, DeviceRegistry
from wledfan.models import ControllerState, Device
from wledfan.storage import Database

runner = CliRunner()


def _saved(data_dir: Path) -> DeviceRegistry:
    registry = DeviceRegistry(Database(data_dir))
    registry.load()
    return registry


def test_devices_add_list_select_remove(config_env: Path):
    result = runner.invoke(app, ["devices", "add", "Desk", "192.168.1.50"])
    assert result.exit_code == 0
    assert "Added 'Desk'" in result.stdout

    result = runner.invoke(app, ["devices", "add", "Shelf", "192.168.1.51", "--select"])
    assert result.exit_code == 0

    result = runner.invoke(app, ["devices", "add", "Again", "192.168.1.50"])
    assert "already saved" in result.stdout

    result = runner.invoke(app, ["devices", "list"])
    assert result.exit_code == 0
    assert "Desk" in result.stdout
    assert "http://192.168.1.51" in result.stdout

    result = runner.invoke(app, ["devices", "select", "192.168.1.50"])
    assert result.exit_code == 0
    assert _saved(config_env).selected == Device(name="Desk", address="192.168.1.50")

    result = runner.invoke(app, ["devices", "remove", "0"])
    assert result.exit_code == 0
    assert "Selection cleared" in result.stdout

    registry = _saved(config_env)
    assert [d.address for d in registry.devices] == ["192.168.1.51"]
    assert registry.selected is None


def test_devices_select_unknown_address_fails(config_env: Path):
    result = runner.invoke(app, ["devices", "select", "10.0.0.99"])

    assert result.exit_code == 1
    assert "No saved device" in result.stdout


def test_devices_remove_out_of_range_fails(config_env: Path):
    runner.invoke(app, ["devices", "add", "Desk", "192.168.1.50"])

    result = runner.invoke(app, ["devices", "remove", "3"])

    assert result.exit_code == 1
    assert len(_saved(config_env)) == 1


def test_devices_select_ap_mode(config_env: Path):
    result = runner.invoke(app, ["devices", "select", "--ap"])

    assert result.exit_code == 0
    selected = _saved(config_env).selected
    assert selected is not None
    assert selected.address == "4.3.2.1"


def test_devices_select_needs_address_or_ap(config_env: Path):
    result = runner.invoke(app, ["devices", "select"])

    assert result.exit_code == 1
    assert "Give an address or --ap." in result.stdout
    assert _saved(config_env).selected is None


def test_discover_lists_and_saves_devices(config_env: Path, monkeypatch):
    found = [
        Device(name="desk-fan", address="192.168.1.40"),
        Device(name="shelf", address="192.168.1.41"),
    ]

    async def _fake_discovery(_registry: DeviceRegistry, _config: DiscoveryConfig):
        return found, None

    monkeypatch.setattr(discover_cmd, "run_discovery", _fake_discovery)

    result = runner.invoke(app, ["discover", "--add"])

    assert result.exit_code == 0
    assert "desk-fan" in result.stdout
    assert "Found 2 new device(s)" in result.stdout
    registry = _saved(config_env)
    assert [d.address for d in registry.devices] == ["192.168.1.40", "192.168.1.41"]
    assert registry.selected is not None
    assert registry.selected.address == "192.168.1.40"


def test_discover_redacts_output(config_env: Path, monkeypatch):
    async def _fake_discovery(_registry, _config):
        return [Device(name="desk-fan", address="192.168.1.40")], None

    monkeypatch.setattr(discover_cmd, "run_discovery", _fake_discovery)

    result = runner.invoke(app, ["discover", "--redact"])

    assert result.exit_code == 0
    assert "192.168.1.40" not in result.stdout
    assert len(_saved(config_env)) == 0


def test_discover_error_exits_nonzero(config_env: Path, monkeypatch):
    async def _fake_discovery(_registry, _config):
        return [], "Discovery failed: no multicast route"

    monkeypatch.setattr(discover_cmd, "run_discovery", _fake_discovery)

    result = runner.invoke(app, ["discover"])

    assert result.exit_code == 1
    assert "no multicast route" in result.stdout


def test_fan_requires_selection(config_env: Path):
    result = runner.invoke(app, ["fan", "40"])

    assert result.exit_code == 1


def test_fan_sends_to_selected_device(config_env: Path, monkeypatch):
    sent: list[float] = []

    async def _fake_send_fan(self: CommandDispatcher, speed: float) -> None:
        sent.append(speed)

    monkeypatch.setattr(CommandDispatcher, "send_fan", _fake_send_fan)
    runner.invoke(app, ["devices", "add", "Desk", "192.168.1.50", "--select"])

    result = runner.invoke(app, ["fan", "40"])

    assert result.exit_code == 0
    assert sent == [40]


def test_presets_apply_prints_state(config_env: Path, monkeypatch):
    async def _fake_apply(self: CommandDispatcher, preset_id: int):
        return ControllerState(on=True, bri=255, ps=preset_id)

    monkeypatch.setattr(CommandDispatcher, "apply_preset", _fake_apply)
    runner.invoke(app, ["devices", "add", "Desk", "192.168.1.50", "--select"])

    result = runner.invoke(app, ["presets", "apply", "2"])

    assert result.exit_code == 0
    assert "Brightness: 100%" in result.stdout
    assert "Preset: 2" in result.stdout


def test_color_rejects_bad_hex(config_env: Path):
    result = runner.invoke(app, ["color", "not-a-color"])

    assert result.exit_code == 2


def test_info_reports_paths_and_registry(config_env: Path):
    result = runner.invoke(app, ["info"])

    assert result.exit_code == 0
    assert "Saved devices: 0" in result.stdout
    assert "_wled._tcp.local." in result.stdout
    assert "4.3.2.1" in result.stdout

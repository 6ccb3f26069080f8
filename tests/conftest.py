from __future__ import annotations

from pathlib import Path

import pytest

from wledfan.config import DatabaseConfig, Settings, get_settings, write_settings


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("WLEDFAN_CONFIG", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def config_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI at a throwaway config and data directory."""
    data_dir = tmp_path / "data"
    config_path = tmp_path / "config.toml"
    write_settings(Settings(database=DatabaseConfig(path=str(data_dir))), config_path)
    monkeypatch.setenv("WLEDFAN_CONFIG", str(config_path))
    get_settings.cache_clear()
    return data_dir

from __future__ import annotations

import json
import os
import tomllib
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .paths import default_config_path, default_data_dir, expand_path

CONFIG_ENV_VAR = "WLEDFAN_CONFIG"

WLED_SERVICE_TYPE = "_wled._tcp.local."
REALTIME_UDP_PORT = 21324
AP_MODE_ADDRESS = "4.3.2.1"
AP_MODE_NAME = "AP Mode"


class DatabaseConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    path: str = Field(default_factory=lambda: str(default_data_dir()))


class DiscoveryConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    service_type: str = WLED_SERVICE_TYPE
    interval: float = Field(default=15.0, gt=0)
    browse_duration: float = Field(default=5.0, gt=0)
    resolve_timeout: float = Field(default=5.0, gt=0)


class ControllerConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    http_port: int = Field(default=80, ge=1, le=65535)
    http_timeout: float = Field(default=5.0, gt=0)
    realtime_port: int = Field(default=REALTIME_UDP_PORT, ge=1, le=65535)
    fallback_name: str = AP_MODE_NAME
    # Empty string disables the AP-mode fallback device.
    fallback_address: str = AP_MODE_ADDRESS


class SessionConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    poll_interval: float = Field(default=1.0, gt=0)
    debounce: float = Field(default=0.15, ge=0)


class Settings(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    controller: ControllerConfig = Field(default_factory=ControllerConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)


def resolve_config_path(allow_missing: bool = False) -> tuple[Path, bool]:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = expand_path(env_path)
        if not allow_missing and not path.exists():
            raise FileNotFoundError(f"{CONFIG_ENV_VAR} points to missing file: {path}")
        return path, path.exists()

    path = default_config_path()
    return path, path.exists()


def load_settings(path: Path) -> Settings:
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in config file: {path}\n{exc}") from exc

    try:
        return Settings.model_validate(data or {})
    except ValidationError as exc:
        raise ValueError(f"Invalid config file: {path}\n{exc}") from exc


@lru_cache
def get_settings() -> Settings:
    path, exists = resolve_config_path(allow_missing=False)
    if exists:
        return load_settings(path)
    return Settings()


def data_dir_from_settings(settings: Settings) -> Path:
    return expand_path(settings.database.path)


def _toml_string(value: str) -> str:
    return json.dumps(value)


def render_settings_toml(settings: Settings) -> str:
    discovery = settings.discovery
    controller = settings.controller
    session = settings.session
    lines = [
        "# wledfan configuration",
        "",
        "[database]",
        f"path = {_toml_string(settings.database.path)}",
        "",
        "[discovery]",
        f"service_type = {_toml_string(discovery.service_type)}",
        f"interval = {discovery.interval}",
        f"browse_duration = {discovery.browse_duration}",
        f"resolve_timeout = {discovery.resolve_timeout}",
        "",
        "[controller]",
        f"http_port = {controller.http_port}",
        f"http_timeout = {controller.http_timeout}",
        f"realtime_port = {controller.realtime_port}",
        f"fallback_name = {_toml_string(controller.fallback_name)}",
        f"fallback_address = {_toml_string(controller.fallback_address)}",
        "",
        "[session]",
        f"poll_interval = {session.poll_interval}",
        f"debounce = {session.debounce}",
        "",
    ]
    return "\n".join(lines)


def write_settings(settings: Settings, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_settings_toml(settings))

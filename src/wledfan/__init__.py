"""wledfan - discover and control WLED fan/light controllers on the local network."""

from __future__ import annotations

from importlib.metadata import version

from .config import ControllerConfig, DiscoveryConfig, Settings, get_settings
from .core import CommandDispatcher, ControlSession, DeviceRegistry, DiscoveryEngine
from .models import ControllerState, Device, Preset, RGBColor
from .storage import Database, MemoryStore

__all__ = [
    "CommandDispatcher",
    "ControlSession",
    "ControllerConfig",
    "ControllerState",
    "Database",
    "Device",
    "DeviceRegistry",
    "DiscoveryConfig",
    "DiscoveryEngine",
    "MemoryStore",
    "Preset",
    "RGBColor",
    "Settings",
    "__version__",
    "get_settings",
]

__version__ = version("wledfan")

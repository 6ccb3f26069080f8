"""Data models for wledfan."""

from wledfan.models.color import RGBColor
from wledfan.models.devices import ControllerState, Device, Preset, format_host

__all__ = [
    "ControllerState",
    "Device",
    "Preset",
    "RGBColor",
    "format_host",
]

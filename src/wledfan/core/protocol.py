"""Request shapes and conversions for the WLED JSON and realtime UDP APIs.

Brightness uses round-half-up in both directions. With a 0-100 UI range and a
0-255 controller range, ``bri_to_ui(ui_to_bri(x)) == x`` for every UI value.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from wledfan.models import ControllerState, Preset, RGBColor

logger = logging.getLogger(__name__)

JSON_PATH = "/json"
STATE_PATH = "/json/state"
PRESETS_PATH = "/presets.json"

FAN_USERMOD = "PWM-fan"


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def ui_to_bri(value: float) -> int:
    return _clamp(_round_half_up(value * 255 / 100), 0, 255)


def bri_to_ui(value: int) -> int:
    return _clamp(_round_half_up(value * 100 / 255), 0, 100)


def fan_payload(speed: float) -> dict[str, Any]:
    # "lock" stops the usermod from overriding the speed we set.
    return {FAN_USERMOD: {"speed": _clamp(int(speed), 0, 100), "lock": True}}


def light_payload(on: bool, brightness: float) -> dict[str, Any]:
    return {"on": on, "bri": ui_to_bri(brightness) if on else 0}


def preset_payload(preset_id: int) -> dict[str, Any]:
    return {"ps": preset_id}


def realtime_frame(color: RGBColor, brightness: float) -> bytes:
    bri = ui_to_bri(brightness)
    return bytes(channel * bri // 255 for channel in color.channels())


def decode_presets(data: Any) -> list[Preset]:
    if not isinstance(data, dict):
        logger.debug("Unexpected presets payload type: %s", type(data).__name__)
        return []

    presets: list[Preset] = []
    for key, value in data.items():
        try:
            preset_id = int(key)
        except (TypeError, ValueError):
            logger.debug("Skipping preset with non-numeric id %r", key)
            continue
        name = value.get("n") if isinstance(value, dict) else None
        if not isinstance(name, str):
            logger.debug("Skipping preset %d without a name", preset_id)
            continue
        presets.append(Preset(id=preset_id, name=name))

    presets.sort(key=lambda preset: preset.id)
    return presets


def decode_state(data: Any) -> ControllerState | None:
    if not isinstance(data, dict):
        return None
    try:
        return ControllerState.model_validate(data)
    except ValidationError as exc:
        logger.debug("Unreadable controller state: %s", exc)
        return None

"""Tests for controller payloads and conversions."""

from __future__ import annotations

from wledfan.core.protocol import (
    bri_to_ui,
    decode_presets,
    decode_state,
    fan_payload,
    light_payload,
    realtime_frame,
    ui_to_bri,
)
from wledfan.models import Preset, RGBColor


def test_decode_presets_skips_bad_keys_and_sorts():
    data = {"3": {"n": "Sunset"}, "x": {"n": "Bad"}, "1": {"n": "Calm"}}

    assert decode_presets(data) == [
        Preset(id=1, name="Calm"),
        Preset(id=3, name="Sunset"),
    ]


def test_decode_presets_skips_entries_without_name():
    data = {"0": {}, "2": {"n": 5}, "4": "junk", "5": {"n": "Night", "bri": 10}}

    assert decode_presets(data) == [Preset(id=5, name="Night")]


def test_decode_presets_non_mapping_is_empty():
    assert decode_presets(["a", "b"]) == []


def test_brightness_scaling():
    assert ui_to_bri(50) == 128
    assert ui_to_bri(0) == 0
    assert ui_to_bri(100) == 255
    assert ui_to_bri(150) == 255
    assert bri_to_ui(255) == 100
    assert bri_to_ui(0) == 0


def test_brightness_roundtrip_is_identity_for_ui_values():
    assert all(bri_to_ui(ui_to_bri(value)) == value for value in range(101))


def test_light_off_forces_zero_brightness():
    assert light_payload(False, 80) == {"on": False, "bri": 0}
    assert light_payload(True, 50) == {"on": True, "bri": 128}


def test_fan_payload_locks_and_clamps():
    assert fan_payload(42) == {"PWM-fan": {"speed": 42, "lock": True}}
    assert fan_payload(140)["PWM-fan"]["speed"] == 100


def test_realtime_frame_scales_channels():
    color = RGBColor(red=255, green=128, blue=0)

    assert realtime_frame(color, 100) == bytes([255, 128, 0])
    assert realtime_frame(color, 50) == bytes([128, 64, 0])
    assert realtime_frame(color, 0) == bytes([0, 0, 0])


def test_decode_state_reads_aliases():
    state = decode_state({"on": True, "bri": 200, "ps": 4, "seg": []})

    assert state is not None
    assert state.on is True
    assert state.brightness == 200
    assert state.preset == 4


def test_decode_state_rejects_garbage():
    assert decode_state({"bri": "bright"}) is None
    assert decode_state("nope") is None


def test_color_from_hex():
    assert RGBColor.from_hex("#FF8800").channels() == (255, 136, 0)
    assert RGBColor.from_hex("00ff00").to_hex() == "#00ff00"

from __future__ import annotations

import asyncio

from wledfan.config import SessionConfig
from wledfan.core import ControlSession
from wledfan.models import ControllerState, Preset, RGBColor


class FakeDispatcher:
    def __init__(self, state: ControllerState | None = None) -> None:
        self.state = state
        self.fan: list[int] = []
        self.light: list[tuple[bool, int]] = []
        self.colors: list[tuple[RGBColor, int, bool]] = []
        self.fetches = 0
        self.applied: list[int] = []

    async def send_fan(self, speed: int) -> None:
        self.fan.append(speed)

    async def send_light_state(self, on: bool, brightness: int) -> None:
        self.light.append((on, brightness))

    async def send_color(self, color: RGBColor, brightness: int, on: bool) -> None:
        self.colors.append((color, brightness, on))

    async def fetch_state(self) -> ControllerState | None:
        self.fetches += 1
        return self.state

    async def fetch_presets(self) -> list[Preset]:
        return [Preset(id=1, name="Calm")]

    async def apply_preset(self, preset_id: int) -> ControllerState | None:
        self.applied.append(preset_id)
        return ControllerState(on=True, bri=10, ps=preset_id)


def _session(dispatcher: FakeDispatcher, **config) -> ControlSession:
    settings = SessionConfig(**{"poll_interval": 60.0, "debounce": 0.03, **config})
    return ControlSession(dispatcher, settings)


def test_rapid_brightness_changes_send_once():
    dispatcher = FakeDispatcher()

    async def scenario() -> None:
        session = _session(dispatcher)
        session.start()
        session.set_light_on(True)
        for value in (10, 25, 40, 55):
            session.set_brightness(value)
            await asyncio.sleep(0.005)
        await session.drain()
        await session.stop()

    asyncio.run(scenario())

    assert dispatcher.light == [(True, 55)]


def test_light_changes_are_not_sent_when_stopped():
    dispatcher = FakeDispatcher()

    async def scenario() -> None:
        session = _session(dispatcher)
        session.set_brightness(30)
        session.start()
        await session.stop()
        session.set_brightness(70)
        await asyncio.sleep(0.06)

    asyncio.run(scenario())

    assert dispatcher.light == []


def test_stop_sends_pending_light_change():
    dispatcher = FakeDispatcher()

    async def scenario() -> None:
        session = _session(dispatcher, debounce=10.0)
        session.start()
        session.set_brightness(20)
        session.set_brightness(35)
        await session.stop()

    asyncio.run(scenario())

    assert dispatcher.light == [(False, 35)]


def test_poll_skipped_while_adjusting():
    dispatcher = FakeDispatcher(ControllerState(on=True, bri=255, ps=2))

    async def scenario() -> ControlSession:
        session = _session(dispatcher)
        session.begin_adjust()
        await session.poll()
        assert dispatcher.fetches == 0
        assert session.brightness == 50
        session.end_adjust()
        await session.poll()
        return session

    session = asyncio.run(scenario())

    assert dispatcher.fetches == 1
    assert session.brightness == 100
    assert session.light_on is True
    assert session.active_preset == 2


def test_poll_timer_updates_brightness():
    dispatcher = FakeDispatcher(ControllerState(on=False, bri=26, ps=-1))
    events: list[frozenset[str]] = []

    async def scenario() -> ControlSession:
        session = _session(dispatcher, poll_interval=0.01)
        session.subscribe(events.append)
        session.start()
        await asyncio.sleep(0.05)
        await session.stop()
        return session

    session = asyncio.run(scenario())

    assert dispatcher.fetches >= 2
    assert session.brightness == 10
    assert session.active_preset is None
    assert events == [frozenset({"brightness"})]


def test_fan_toggle_rules():
    dispatcher = FakeDispatcher()

    async def scenario() -> ControlSession:
        session = _session(dispatcher)
        session.set_fan_speed(30)
        session.set_fan_on(True)
        session.set_fan_speed(70)
        session.set_fan_on(False)
        session.set_fan_on(True)
        await session.drain()
        return session

    session = asyncio.run(scenario())

    assert dispatcher.fan == [70, 0, 50]
    assert session.fan_speed == 50


def test_color_change_sends_realtime_frame():
    dispatcher = FakeDispatcher()
    red = RGBColor(red=255, green=0, blue=0)

    async def scenario() -> None:
        session = _session(dispatcher)
        session.set_color(red)
        session.light_on = True
        session.set_color(red)
        await session.drain()

    asyncio.run(scenario())

    assert dispatcher.colors == [(red, 50, False), (red, 50, True)]


def test_presets_refresh_and_apply():
    dispatcher = FakeDispatcher()

    async def scenario() -> ControlSession:
        session = _session(dispatcher)
        await session.refresh_presets()
        await session.apply_preset(1)
        return session

    session = asyncio.run(scenario())

    assert session.presets == [Preset(id=1, name="Calm")]
    assert dispatcher.applied == [1]
    assert session.active_preset == 1
    # Applying a preset only moves the indicator; brightness waits for the poll.
    assert session.brightness == 50

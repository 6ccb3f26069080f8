from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from wledfan.config import SessionConfig
from wledfan.models import ControllerState, Preset, RGBColor

from .dispatcher import CommandDispatcher
from .observable import Observable
from .protocol import bri_to_ui
from .scheduler import Debouncer, PeriodicTimer

logger = logging.getLogger(__name__)

DEFAULT_FAN_SPEED = 50


class ControlSession(Observable):
    """Fan and light controls for the selected controller.

    Owns the brightness poll and the debounced light send; both only run
    between ``start()`` and ``stop()``.
    """

    def __init__(
        self, dispatcher: CommandDispatcher, config: SessionConfig | None = None
    ) -> None:
        super().__init__()
        self._dispatcher = dispatcher
        self._config = config or SessionConfig()
        self._poll_timer: PeriodicTimer | None = None
        self._light_debouncer: Debouncer | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

        self.fan_on = False
        self.fan_speed = DEFAULT_FAN_SPEED
        self.light_on = False
        self.brightness = 50
        self.color = RGBColor()
        self.adjusting = False
        self.presets: list[Preset] = []
        self.active_preset: int | None = None

    @property
    def active(self) -> bool:
        return self._poll_timer is not None

    def start(self) -> None:
        if self.active:
            return
        self._poll_timer = PeriodicTimer(
            self._config.poll_interval, self.poll, name="brightness-poll"
        )
        self._light_debouncer = Debouncer(
            self._config.debounce, self._send_light_state, name="light-state"
        )
        self._poll_timer.start()

    async def stop(self) -> None:
        timer, self._poll_timer = self._poll_timer, None
        debouncer, self._light_debouncer = self._light_debouncer, None
        if timer is not None:
            await timer.stop()
        if debouncer is not None:
            # The last slider value still goes out.
            await debouncer.flush()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def drain(self) -> None:
        """Wait for pending light sends and background commands."""
        if self._light_debouncer is not None:
            await self._light_debouncer.wait()
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # Fan

    def set_fan_on(self, on: bool) -> None:
        self.fan_on = on
        if not on:
            self.fan_speed = 0
            self._publish("fan_on", "fan_speed")
            self._spawn(self._dispatcher.send_fan(0))
            return
        if self.fan_speed == 0:
            self.fan_speed = DEFAULT_FAN_SPEED
            self._publish("fan_on", "fan_speed")
            self._spawn(self._dispatcher.send_fan(self.fan_speed))
            return
        self._publish("fan_on")

    def set_fan_speed(self, speed: int) -> None:
        self.fan_speed = max(0, min(100, int(speed)))
        self._publish("fan_speed")
        if self.fan_on:
            self._spawn(self._dispatcher.send_fan(self.fan_speed))

    # Light

    def set_light_on(self, on: bool) -> None:
        self.light_on = on
        self._publish("light_on")
        self._schedule_light_send()

    def set_brightness(self, value: int) -> None:
        self.brightness = max(0, min(100, int(value)))
        self._publish("brightness")
        self._schedule_light_send()

    def begin_adjust(self) -> None:
        self.adjusting = True

    def end_adjust(self) -> None:
        self.adjusting = False

    def set_color(self, color: RGBColor) -> None:
        self.color = color
        self._publish("color")
        self._spawn(
            self._dispatcher.send_color(self.color, self.brightness, self.light_on)
        )

    def _schedule_light_send(self) -> None:
        if self._light_debouncer is None:
            logger.debug("Session not started; light change not sent")
            return
        self._light_debouncer.trigger()

    async def _send_light_state(self) -> None:
        await self._dispatcher.send_light_state(self.light_on, self.brightness)

    # Presets and polling

    async def refresh_presets(self) -> list[Preset]:
        self.presets = await self._dispatcher.fetch_presets()
        self._publish("presets")
        return self.presets

    async def apply_preset(self, preset_id: int) -> None:
        state = await self._dispatcher.apply_preset(preset_id)
        if state is not None:
            self._apply_state(state, include_light=False)

    def _user_busy(self) -> bool:
        debouncer = self._light_debouncer
        return self.adjusting or (debouncer is not None and debouncer.pending)

    async def poll(self) -> None:
        if self._user_busy():
            logger.debug("Skipping poll while brightness is being adjusted")
            return
        state = await self._dispatcher.fetch_state()
        if state is None:
            return
        # The user may have grabbed the slider while the request was out.
        self._apply_state(state, include_light=not self._user_busy())

    def _apply_state(self, state: ControllerState, include_light: bool) -> None:
        changed: list[str] = []
        active = state.preset if state.preset >= 0 else None
        if active != self.active_preset:
            self.active_preset = active
            changed.append("active_preset")
        if include_light:
            brightness = bri_to_ui(state.brightness)
            if brightness != self.brightness:
                self.brightness = brightness
                changed.append("brightness")
            if state.on is not None and state.on != self.light_on:
                self.light_on = state.on
                changed.append("light_on")
        if changed:
            self._publish(*changed)

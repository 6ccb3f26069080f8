from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from wledfan.config import ControllerConfig
from wledfan.models import ControllerState, Device, Preset, RGBColor

from . import protocol
from .registry import DeviceRegistry

logger = logging.getLogger(__name__)

NETWORK_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, TimeoutError, OSError)


class RealtimeChannel:
    """One UDP socket to the realtime port of a single controller."""

    def __init__(self, port: int) -> None:
        self.port = port
        self._transport: asyncio.DatagramTransport | None = None
        self._address: str | None = None
        self._lock = asyncio.Lock()

    @property
    def address(self) -> str | None:
        return self._address

    def close(self) -> None:
        transport, self._transport = self._transport, None
        if transport is not None:
            transport.close()
            logger.debug("Closed realtime channel to %s", self._address)
        self._address = None

    async def send(self, address: str, payload: bytes) -> bool:
        async with self._lock:
            if self._transport is None or self._address != address:
                self.close()
                loop = asyncio.get_running_loop()
                try:
                    transport, _ = await loop.create_datagram_endpoint(
                        asyncio.DatagramProtocol,
                        remote_addr=(address, self.port),
                    )
                except OSError as exc:
                    logger.warning(
                        "Could not open realtime channel to %s: %s", address, exc
                    )
                    return False
                self._transport = transport
                self._address = address
                logger.debug("Opened realtime channel to %s:%d", address, self.port)
            self._transport.sendto(payload)
            return True


class CommandDispatcher:
    """Best-effort commands for the registry's selected controller.

    Nothing is sent when no device is selected. Network failures are logged
    and dropped; the next command or poll supersedes them.
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        config: ControllerConfig | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._registry = registry
        self._config = config or ControllerConfig()
        self._session = session
        self._owns_session = session is None
        self._realtime = RealtimeChannel(self._config.realtime_port)
        self._last_selected = registry.selected
        self._unsubscribe = registry.subscribe(self._on_registry_change)

    @property
    def realtime(self) -> RealtimeChannel:
        return self._realtime

    async def close(self) -> None:
        self._unsubscribe()
        self._realtime.close()
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def _on_registry_change(self, changed: frozenset[str]) -> None:
        if "selected" not in changed:
            return
        selected = self._registry.selected
        previous, self._last_selected = self._last_selected, selected
        if previous != selected:
            self._realtime.close()

    def _target(self) -> Device | None:
        device = self._registry.selected
        if device is None:
            logger.debug("No device selected; command skipped")
        return device

    def _url(self, device: Device, path: str) -> str:
        return device.base_url(self._config.http_port) + path

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.http_timeout)
            )
            self._owns_session = True
        return self._session

    async def _post(self, device: Device, path: str, payload: dict[str, Any]) -> bool:
        url = self._url(device, path)
        try:
            async with self._get_session().post(url, json=payload) as response:
                logger.debug("POST %s -> %d", url, response.status)
                return response.status < 400
        except NETWORK_ERRORS as exc:
            logger.warning("POST %s failed: %s", url, exc)
            return False

    async def _get_json(self, device: Device, path: str) -> Any | None:
        url = self._url(device, path)
        try:
            async with self._get_session().get(url) as response:
                if response.status >= 400:
                    logger.warning("GET %s -> %d", url, response.status)
                    return None
                return await response.json(content_type=None)
        except NETWORK_ERRORS as exc:
            logger.warning("GET %s failed: %s", url, exc)
            return None
        except ValueError as exc:
            logger.warning("GET %s returned invalid JSON: %s", url, exc)
            return None

    async def send_fan(self, speed: float) -> None:
        device = self._target()
        if device is None:
            return
        await self._post(device, protocol.JSON_PATH, protocol.fan_payload(speed))

    async def send_light_state(self, on: bool, brightness: float) -> None:
        device = self._target()
        if device is None:
            return
        await self._post(
            device, protocol.STATE_PATH, protocol.light_payload(on, brightness)
        )

    async def send_color(self, color: RGBColor, brightness: float, on: bool) -> None:
        if not on:
            return
        device = self._target()
        if device is None:
            return
        frame = protocol.realtime_frame(color, brightness)
        await self._realtime.send(device.address, frame)

    async def apply_preset(self, preset_id: int) -> ControllerState | None:
        device = self._target()
        if device is None:
            return None
        payload = protocol.preset_payload(preset_id)
        await self._post(device, protocol.STATE_PATH, payload)
        return await self.fetch_state()

    async def fetch_presets(self) -> list[Preset]:
        device = self._target()
        if device is None:
            return []
        data = await self._get_json(device, protocol.PRESETS_PATH)
        if data is None:
            return []
        return protocol.decode_presets(data)

    async def fetch_state(self) -> ControllerState | None:
        device = self._target()
        if device is None:
            return None
        data = await self._get_json(device, protocol.STATE_PATH)
        if data is None:
            return None
        return protocol.decode_state(data)

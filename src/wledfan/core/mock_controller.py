from __future__ import annotations

import asyncio
import logging
import socket
from dataclasses import dataclass, field
from typing import Any

from aiohttp import web
from zeroconf import ServiceInfo
from zeroconf.asyncio import AsyncZeroconf

from wledfan.config import REALTIME_UDP_PORT, WLED_SERVICE_TYPE

logger = logging.getLogger(__name__)


def _default_presets() -> dict[str, dict[str, Any]]:
    return {
        "0": {},
        "1": {"n": "Calm", "on": True, "bri": 64},
        "2": {"n": "Party", "on": True, "bri": 255},
        "3": {"n": "Sunset", "on": True, "bri": 128},
    }


class _RealtimeProtocol(asyncio.DatagramProtocol):
    def __init__(self, controller: MockController) -> None:
        self._controller = controller

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        self._controller.frames.append(data)
        logger.debug("Realtime frame from %s: %s", addr[0], data.hex())


@dataclass
class MockController:
    """Small stand-in for a WLED controller running the PWM fan usermod."""

    name: str = "wled-mock"
    host: str = "0.0.0.0"
    http_port: int = 8080
    realtime_port: int = REALTIME_UDP_PORT
    advertise: bool = False

    on: bool = False
    brightness: int = 128
    preset: int = -1
    fan_speed: int = 0
    fan_locked: bool = False
    presets: dict[str, dict[str, Any]] = field(default_factory=_default_presets)
    frames: list[bytes] = field(default_factory=list)
    requests: list[tuple[str, str, Any]] = field(default_factory=list)

    _runner: web.AppRunner | None = field(default=None, repr=False)
    _udp: asyncio.DatagramTransport | None = field(default=None, repr=False)
    _zeroconf: AsyncZeroconf | None = field(default=None, repr=False)
    _service: ServiceInfo | None = field(default=None, repr=False)

    def state(self) -> dict[str, Any]:
        return {"on": self.on, "bri": self.brightness, "ps": self.preset}

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/json/state", self._get_state)
        app.router.add_post("/json/state", self._post_state)
        app.router.add_post("/json", self._post_json)
        app.router.add_get("/presets.json", self._get_presets)
        return app

    async def start(self) -> None:
        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.http_port)
        await site.start()
        # Port 0 asks the OS for a free port; report the real one.
        self.http_port = self._runner.addresses[0][1]

        loop = asyncio.get_running_loop()
        transport, _ = await loop.create_datagram_endpoint(
            lambda: _RealtimeProtocol(self),
            local_addr=(self.host, self.realtime_port),
        )
        self._udp = transport
        self.realtime_port = transport.get_extra_info("sockname")[1]

        if self.advertise:
            await self._register_service()

        logger.info(
            "Mock controller '%s' on http port %d, realtime port %d",
            self.name,
            self.http_port,
            self.realtime_port,
        )

    async def stop(self) -> None:
        if self._zeroconf is not None:
            if self._service is not None:
                await self._zeroconf.async_unregister_service(self._service)
            await self._zeroconf.async_close()
            self._zeroconf = None
        if self._udp is not None:
            self._udp.close()
            self._udp = None
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("Mock controller '%s' stopped", self.name)

    async def run_forever(self) -> None:
        await self.start()
        try:
            await asyncio.Event().wait()
        finally:
            await self.stop()

    async def _register_service(self) -> None:
        address = _local_ip()
        self._service = ServiceInfo(
            WLED_SERVICE_TYPE,
            f"{self.name}.{WLED_SERVICE_TYPE}",
            addresses=[socket.inet_aton(address)],
            port=self.http_port,
            properties={"mac": "aabbccddeeff"},
            server=f"{self.name}.local.",
        )
        self._zeroconf = AsyncZeroconf()
        await self._zeroconf.async_register_service(self._service)
        logger.info("Advertising %s at %s", self._service.name, address)

    async def _read_json(self, request: web.Request) -> dict[str, Any]:
        try:
            body = await request.json()
        except ValueError as exc:
            raise web.HTTPBadRequest(text=f"invalid JSON: {exc}") from exc
        if not isinstance(body, dict):
            raise web.HTTPBadRequest(text="expected a JSON object")
        self.requests.append((request.method, request.path, body))
        return body

    async def _get_state(self, request: web.Request) -> web.Response:
        return web.json_response(self.state())

    async def _post_state(self, request: web.Request) -> web.Response:
        body = await self._read_json(request)
        if "ps" in body:
            preset = self.presets.get(str(body["ps"]))
            if preset:
                self.preset = int(body["ps"])
                self.on = bool(preset.get("on", self.on))
                self.brightness = int(preset.get("bri", self.brightness))
        if "on" in body:
            self.on = bool(body["on"])
        if "bri" in body:
            self.brightness = max(0, min(255, int(body["bri"])))
        return web.json_response({"success": True})

    async def _post_json(self, request: web.Request) -> web.Response:
        body = await self._read_json(request)
        fan = body.get("PWM-fan")
        if isinstance(fan, dict):
            self.fan_speed = max(0, min(100, int(fan.get("speed", self.fan_speed))))
            self.fan_locked = bool(fan.get("lock", self.fan_locked))
        return web.json_response({"success": True})

    async def _get_presets(self, request: web.Request) -> web.Response:
        return web.json_response(self.presets)


def _local_ip() -> str:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("8.8.8.8", 80))
            return str(sock.getsockname()[0])
    except OSError:
        return "127.0.0.1"


async def run_mock_controller(
    name: str = "wled-mock",
    http_port: int = 8080,
    realtime_port: int = REALTIME_UDP_PORT,
    advertise: bool = False,
) -> None:
    controller = MockController(
        name=name,
        http_port=http_port,
        realtime_port=realtime_port,
        advertise=advertise,
    )
    await controller.run_forever()

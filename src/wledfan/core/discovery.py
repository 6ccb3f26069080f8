from __future__ import annotations

import asyncio
import contextlib
import ipaddress
import logging

from zeroconf import Error as ZeroconfError
from zeroconf import ServiceStateChange, Zeroconf
from zeroconf.asyncio import AsyncServiceBrowser, AsyncServiceInfo, AsyncZeroconf

from wledfan.config import DiscoveryConfig
from wledfan.models import Device

from .observable import Observable
from .registry import DeviceRegistry
from .scheduler import PeriodicTimer

logger = logging.getLogger(__name__)


def pick_address(addresses: list[str]) -> str | None:
    """Return the first usable literal, preferring IPv4 over IPv6."""
    usable: list[str] = []
    for address in addresses:
        candidate = address.strip()
        if not candidate:
            continue
        try:
            parsed = ipaddress.ip_address(candidate.split("%", 1)[0])
        except ValueError:
            continue
        if parsed.is_loopback:
            continue
        usable.append(candidate)

    if not usable:
        return None
    for address in usable:
        if ":" not in address:
            return address
    return usable[0]


def strip_service_suffix(name: str, service_type: str) -> str:
    suffix = f".{service_type}"
    if name.endswith(suffix):
        return name[: -len(suffix)]
    return name.rstrip(".")


async def resolve_service_address(
    zc: Zeroconf, service_type: str, name: str, timeout: float
) -> str | None:
    try:
        info = AsyncServiceInfo(service_type, name)
        found = await asyncio.wait_for(
            info.async_request(zc, int(timeout * 1000)), timeout=timeout + 1
        )
    except (asyncio.TimeoutError, TimeoutError):
        logger.debug("Resolve timed out for %s", name)
        return None
    except (OSError, ZeroconfError) as exc:
        logger.debug("Resolve failed for %s: %s", name, exc)
        return None
    if not found:
        logger.debug("No answer while resolving %s", name)
        return None
    return pick_address(info.parsed_addresses())


class DiscoveryEngine(Observable):
    """Browse for WLED services and collect the ones not yet registered.

    A scan clears ``discovered``, browses for ``browse_duration`` seconds and
    resolves every found service in its own task. Resolves that finish after
    the browse window still count until the next scan starts; results from an
    older scan are dropped.
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        config: DiscoveryConfig | None = None,
        zeroconf: AsyncZeroconf | None = None,
    ) -> None:
        super().__init__()
        self._registry = registry
        self._config = config or DiscoveryConfig()
        self._aiozc = zeroconf
        self._owns_zeroconf = zeroconf is None
        self._browser: AsyncServiceBrowser | None = None
        self._finish_task: asyncio.Task[None] | None = None
        self._resolves: set[asyncio.Task[None]] = set()
        self._generation = 0
        self._scan_lock = asyncio.Lock()
        self._timer = PeriodicTimer(
            self._config.interval, self.start_scan, name="discovery", immediate=True
        )

        self._discovered: list[Device] = []
        self._searching = False
        self._error_message: str | None = None

    @property
    def discovered(self) -> list[Device]:
        return list(self._discovered)

    @property
    def searching(self) -> bool:
        return self._searching

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def pending_resolves(self) -> int:
        return len(self._resolves)

    def start(self) -> None:
        self._timer.start()

    async def stop(self) -> None:
        await self._timer.stop()
        async with self._scan_lock:
            await self._cancel_scan()
        if self._searching:
            self._searching = False
            self._publish("searching")
        if self._aiozc is not None and self._owns_zeroconf:
            await self._aiozc.async_close()
            self._aiozc = None

    async def start_scan(self) -> None:
        # Scans are exclusive: the previous browser must be gone before the
        # next one is created.
        async with self._scan_lock:
            await self._start_scan_locked()

    async def _start_scan_locked(self) -> None:
        logger.info("Starting WLED discovery")
        await self._cancel_scan()
        self._generation += 1
        generation = self._generation

        self._discovered = []
        self._error_message = None
        self._searching = True
        self._publish("discovered", "error_message", "searching")

        try:
            aiozc = self._ensure_zeroconf()
            self._browser = AsyncServiceBrowser(
                aiozc.zeroconf,
                self._config.service_type,
                handlers=[self._on_service_state_change],
            )
        except (OSError, ZeroconfError) as exc:
            logger.warning("Discovery failed: %s", exc)
            self._browser = None
            self._error_message = f"Discovery failed: {exc}"
            self._searching = False
            self._publish("error_message", "searching")
            return

        self._finish_task = asyncio.get_running_loop().create_task(
            self._finish_later(generation)
        )

    async def wait_idle(self) -> None:
        """Wait for the current browse window and its resolves to finish."""
        if self._finish_task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._finish_task
        while self._resolves:
            await asyncio.gather(*self._resolves, return_exceptions=True)

    def promote(self, device: Device) -> None:
        """Register a discovered device and make it the selection."""
        self._registry.add(device)
        self._registry.select(device)
        if device in self._discovered:
            self._discovered = [d for d in self._discovered if d != device]
            self._publish("discovered")

    def _ensure_zeroconf(self) -> AsyncZeroconf:
        if self._aiozc is None:
            self._aiozc = AsyncZeroconf()
            self._owns_zeroconf = True
        return self._aiozc

    async def _cancel_scan(self) -> None:
        finish, self._finish_task = self._finish_task, None
        if finish is not None and finish is not asyncio.current_task():
            finish.cancel()
        await self._stop_browser()

        stale = list(self._resolves)
        self._resolves.clear()
        for task in stale:
            task.cancel()
        if stale:
            logger.debug("Abandoned %d in-flight resolves", len(stale))

    async def _stop_browser(self) -> None:
        browser, self._browser = self._browser, None
        if browser is None:
            return
        try:
            await browser.async_cancel()
        except (OSError, ZeroconfError, RuntimeError) as exc:
            logger.debug("Error stopping browser: %s", exc)

    async def _finish_later(self, generation: int) -> None:
        await asyncio.sleep(self._config.browse_duration)
        if generation != self._generation:
            return
        self._finish_task = None
        await self._stop_browser()
        if generation != self._generation:
            return
        self._searching = False
        logger.info(
            "Discovery finished: %d new devices, %d resolves pending",
            len(self._discovered),
            len(self._resolves),
        )
        self._publish("searching")

    def _on_service_state_change(
        self,
        zeroconf: Zeroconf,
        service_type: str,
        name: str,
        state_change: ServiceStateChange,
    ) -> None:
        if state_change is not ServiceStateChange.Added:
            return
        logger.debug("Found service %s", name)
        task = asyncio.get_running_loop().create_task(
            self._resolve(zeroconf, service_type, name, self._generation)
        )
        self._resolves.add(task)
        task.add_done_callback(self._resolves.discard)

    async def _resolve(
        self, zeroconf: Zeroconf, service_type: str, name: str, generation: int
    ) -> None:
        address = await resolve_service_address(
            zeroconf, service_type, name, self._config.resolve_timeout
        )
        if address is None:
            logger.debug("Dropping %s: no usable address", name)
            return
        if generation != self._generation:
            logger.debug("Ignoring %s from an earlier scan", name)
            return
        self._accept(
            Device(name=strip_service_suffix(name, service_type), address=address)
        )

    def _accept(self, device: Device) -> bool:
        if device in self._registry or device in self._discovered:
            logger.debug("Already known: %s @ %s", device.name, device.address)
            return False
        logger.info("Discovered WLED device %s @ %s", device.name, device.address)
        self._discovered.append(device)
        self._publish("discovered")
        return True

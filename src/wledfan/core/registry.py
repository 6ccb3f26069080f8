from __future__ import annotations

import logging
from collections.abc import Iterable

from pydantic import TypeAdapter, ValidationError

from wledfan.config import ControllerConfig
from wledfan.models import Device
from wledfan.storage import KeyValueStore

from .observable import Observable

logger = logging.getLogger(__name__)

DEVICES_KEY = "wled_devices"
SELECTED_KEY = "selected_device_id"
FALLBACK_ID = "ap-mode"

_device_list = TypeAdapter(list[Device])


class DeviceRegistry(Observable):
    """Persisted list of known controllers plus the current selection.

    Every mutation is written through to ``store`` before it returns and then
    published once to subscribers.
    """

    def __init__(
        self, store: KeyValueStore, controller: ControllerConfig | None = None
    ) -> None:
        super().__init__()
        self._store = store
        self._controller = controller or ControllerConfig()
        self._devices: list[Device] = []
        self._selected: Device | None = None

    @property
    def devices(self) -> list[Device]:
        return list(self._devices)

    @property
    def selected(self) -> Device | None:
        return self._selected

    @property
    def fallback(self) -> Device | None:
        if not self._controller.fallback_address:
            return None
        return Device(
            id=FALLBACK_ID,
            name=self._controller.fallback_name,
            address=self._controller.fallback_address,
        )

    def __len__(self) -> int:
        return len(self._devices)

    def __contains__(self, device: object) -> bool:
        return device in self._devices

    def find(self, address: str) -> Device | None:
        for device in self._devices:
            if device.address == address:
                return device
        return None

    def load(self) -> None:
        devices: list[Device] = []
        raw = self._store.get(DEVICES_KEY)
        if raw:
            try:
                devices = _device_list.validate_json(raw)
            except ValidationError as exc:
                logger.warning("Ignoring unreadable device list: %s", exc)

        selected: Device | None = None
        raw_id = self._store.get(SELECTED_KEY)
        if raw_id:
            selected_id = raw_id.decode("utf-8", errors="replace").strip()
            fallback = self.fallback
            candidates = devices if fallback is None else [*devices, fallback]
            selected = next((d for d in candidates if d.id == selected_id), None)

        self._devices = devices
        self._selected = selected
        logger.debug(
            "Loaded %d devices (selected=%s)",
            len(devices),
            selected.address if selected else None,
        )
        self._publish("devices", "selected")

    def add(self, device: Device) -> bool:
        if device in self._devices:
            logger.debug("Device at %s already registered", device.address)
            return False
        self._devices.append(device)
        self._save()
        self._publish("devices")
        return True

    def remove(self, indices: Iterable[int]) -> None:
        doomed = {i for i in indices if 0 <= i < len(self._devices)}
        if not doomed:
            return
        removed = [d for i, d in enumerate(self._devices) if i in doomed]
        self._devices = [d for i, d in enumerate(self._devices) if i not in doomed]

        changed = ["devices"]
        if self._selected is not None and self._selected in removed:
            self._selected = None
            changed.append("selected")
        elif self._selected is not None and not self._devices and self.fallback is None:
            self._selected = None
            changed.append("selected")

        self._save()
        self._publish(*changed)

    def select(self, device: Device | None) -> None:
        if device is not None:
            # Keep the registered record so its id is what gets persisted.
            device = self.find(device.address) or device
        self._selected = device
        self._save()
        self._publish("selected")

    def select_fallback(self) -> None:
        fallback = self.fallback
        if fallback is None:
            logger.debug("No fallback device configured")
            return
        self.select(fallback)

    def _save(self) -> None:
        selected_id = self._selected.id if self._selected else ""
        try:
            self._store.set(DEVICES_KEY, _device_list.dump_json(self._devices))
            self._store.set(SELECTED_KEY, selected_id.encode("utf-8"))
        except OSError as exc:
            logger.error("Could not persist device registry: %s", exc)

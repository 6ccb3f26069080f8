from __future__ import annotations

from .discovery import DiscoveryEngine, pick_address, resolve_service_address
from .dispatcher import CommandDispatcher, RealtimeChannel
from .mock_controller import MockController, run_mock_controller
from .observable import Observable
from .registry import DeviceRegistry
from .scheduler import Debouncer, PeriodicTimer
from .session import ControlSession

__all__ = [
    "CommandDispatcher",
    "ControlSession",
    "Debouncer",
    "DeviceRegistry",
    "DiscoveryEngine",
    "MockController",
    "Observable",
    "PeriodicTimer",
    "RealtimeChannel",
    "pick_address",
    "resolve_service_address",
    "run_mock_controller",
]

from __future__ import annotations

import uuid

from pydantic import BaseModel, Field


def _new_id() -> str:
    return str(uuid.uuid4())


def format_host(address: str) -> str:
    if ":" in address and not address.startswith("["):
        return f"[{address}]"
    return address


class Device(BaseModel):
    """A WLED controller known by its network address.

    Two devices are the same device when their addresses match, whatever their
    ids or names say.
    """

    model_config = {"extra": "ignore"}

    id: str = Field(default_factory=_new_id)
    name: str
    address: str

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Device):
            return NotImplemented
        return self.address == other.address

    def __hash__(self) -> int:
        return hash(self.address)

    def base_url(self, port: int = 80) -> str:
        host = format_host(self.address)
        if port == 80:
            return f"http://{host}"
        return f"http://{host}:{port}"


class Preset(BaseModel):
    model_config = {"frozen": True}

    id: int
    name: str


class ControllerState(BaseModel):
    """Subset of ``GET /json/state`` the client cares about."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    on: bool | None = None
    brightness: int = Field(alias="bri", ge=0, le=255)
    preset: int = Field(default=-1, alias="ps")

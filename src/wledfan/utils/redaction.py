from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Redactor:
    """Masks addresses and instance names in shareable output."""

    enabled: bool = True
    _name_map: dict[str, int] = field(default_factory=dict)

    def redact_address(self, address: str) -> str:
        if not self.enabled:
            return address
        parts = address.split(".")
        if len(parts) == 4 and all(part.isdigit() for part in parts):
            return f"x.x.x.{parts[3]}"
        if ":" in address:
            groups = address.split(":")
            return ":".join(["xxxx"] * (len(groups) - 1) + [groups[-1]])
        return address

    def redact_name(self, name: str) -> str:
        if not self.enabled:
            return name
        counter = self._name_map.setdefault(name, len(self._name_map) + 1)
        return f"wled-{counter:02d}"

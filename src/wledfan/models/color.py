from __future__ import annotations

import string

from pydantic import BaseModel, Field


class RGBColor(BaseModel):
    """8-bit RGB color."""

    model_config = {"frozen": True}

    red: int = Field(default=255, ge=0, le=255)
    green: int = Field(default=255, ge=0, le=255)
    blue: int = Field(default=0, ge=0, le=255)

    @classmethod
    def from_hex(cls, value: str) -> RGBColor:
        cleaned = value.strip().lstrip("#")
        if len(cleaned) != 6 or not all(ch in string.hexdigits for ch in cleaned):
            raise ValueError(f"Invalid hex color: {value!r}")
        return cls(
            red=int(cleaned[0:2], 16),
            green=int(cleaned[2:4], 16),
            blue=int(cleaned[4:6], 16),
        )

    def to_hex(self) -> str:
        return f"#{self.red:02x}{self.green:02x}{self.blue:02x}"

    def channels(self) -> tuple[int, int, int]:
        return self.red, self.green, self.blue

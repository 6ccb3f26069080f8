from __future__ import annotations

from .database import Database, KeyValueStore, MemoryStore

__all__ = ["Database", "KeyValueStore", "MemoryStore"]

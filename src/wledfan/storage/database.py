from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes) -> None: ...


class Database:
    """File-backed key-value store, one file per key under ``data_dir``."""

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir

    @property
    def path(self) -> Path:
        return self._data_dir

    def key_path(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"

    def ensure_dirs(self) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> bytes | None:
        path = self.key_path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Could not read %s: %s", path, exc)
            return None

    def set(self, key: str, value: bytes) -> None:
        """Write ``value`` atomically and flush it to disk before returning."""
        self.ensure_dirs()
        path = self.key_path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self._data_dir, prefix=f".{key}.")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(value)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def init(self) -> bool:
        existed = self._data_dir.exists()
        self.ensure_dirs()
        return not existed


class MemoryStore:
    """In-process store; nothing survives the process."""

    def __init__(self, data: dict[str, bytes] | None = None) -> None:
        self.data: dict[str, bytes] = dict(data or {})

    def get(self, key: str) -> bytes | None:
        return self.data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self.data[key] = value

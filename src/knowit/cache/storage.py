"""Client-local key-value storage backing the answer cache."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, MutableMapping, Optional, Protocol

__all__ = [
    "StorageUnavailable",
    "StorageResult",
    "StoragePort",
    "MemoryStorage",
    "JsonFileStorage",
]

logger = logging.getLogger(__name__)


class StorageUnavailable(RuntimeError):
    """Raised by storage ports when the backend cannot be used."""


@dataclass(frozen=True)
class StorageResult:
    """Outcome of a cache write: ``ok`` or ``unavailable`` with a reason."""

    status: Literal["ok", "unavailable"]
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "StorageResult":
        return cls("ok")

    @classmethod
    def unavailable(cls, reason: str) -> "StorageResult":
        return cls("unavailable", reason)

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"


class StoragePort(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage port."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._data


class JsonFileStorage:
    """Store string values in one JSON object file.

    Every write replaces the file through a temporary sibling and
    ``os.replace`` so readers never observe a partially written file.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def _read(self) -> MutableMapping[str, object]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StorageUnavailable(
                f"Cannot read storage file {self._path}: {exc}"
            ) from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(
                "Storage file is corrupt; starting empty",
                extra={"event": "storage_corrupt", "path": self._path},
            )
            return {}
        if not isinstance(data, dict):
            logger.warning(
                "Storage file does not hold an object; starting empty",
                extra={"event": "storage_corrupt", "path": self._path},
            )
            return {}
        return data

    def _write(self, data: MutableMapping[str, object]) -> None:
        tmp_name: Optional[str] = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            handle = tempfile.NamedTemporaryFile(
                "w",
                delete=False,
                encoding="utf-8",
                dir=str(self._path.parent),
                prefix=".storage-",
                suffix=".tmp",
            )
            tmp_name = handle.name
            try:
                json.dump(data, handle, ensure_ascii=False)
                handle.flush()
                os.fsync(handle.fileno())
            finally:
                handle.close()
            os.replace(tmp_name, self._path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StorageUnavailable(
                f"Cannot write storage file {self._path}: {exc}"
            ) from exc
        try:
            self._path.chmod(0o600)
        except PermissionError:  # pragma: no cover - depends on filesystem
            pass

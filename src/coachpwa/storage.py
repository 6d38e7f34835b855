"""Persistent key/value storage for durable dismissal flags.

Mirrors the page's ``localStorage``: string keys, string values, and a
lifetime that outlives any single page load when backed by
:class:`JsonFileStorage`.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from coachpwa._constants import DISMISSED_VALUE
from coachpwa.exceptions import PwaError

_logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Storage that lives as long as the object (shared across simulated reloads)."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStorage:
    """Storage persisted as a JSON object on disk.

    Every write rewrites the file atomically (temp file + rename), so a
    crash mid-write never leaves a truncated document behind.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._items: dict[str, str] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise PwaError(f"Cannot read storage file {self._path}: {exc}") from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            _logger.warning("Storage file %s is corrupt; starting empty", self._path)
            return {}
        if not isinstance(data, dict):
            _logger.warning("Storage file %s does not hold an object; starting empty", self._path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._items, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = str(value)
        self._flush()

    def remove_item(self, key: str) -> None:
        if self._items.pop(key, None) is not None:
            self._flush()


class DismissalFlag:
    """A durable boolean recording that the user closed or declined a prompt.

    Any stored value counts as set, matching the truthiness check the web
    client applies to ``localStorage``.
    """

    def __init__(self, storage: KeyValueStorage, key: str) -> None:
        self._storage = storage
        self.key = key

    def __repr__(self) -> str:
        return f"<DismissalFlag {self.key}={self.is_set}>"

    @property
    def is_set(self) -> bool:
        return bool(self._storage.get_item(self.key))

    def set(self) -> None:
        self._storage.set_item(self.key, DISMISSED_VALUE)

    def clear(self) -> None:
        self._storage.remove_item(self.key)

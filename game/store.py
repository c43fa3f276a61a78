"""Durable key/value store used for the wallet and chapter progress.

Two implementations share the same small surface: :class:`MemoryStore` for
tests and throwaway sessions, and :class:`JsonFileStore` which keeps every
key in a single JSON object on disk.
"""
from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterable

from config import STORE_FILE

logger = logging.getLogger(__name__)

_MISSING = object()


class MemoryStore:
    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self._data: Dict[str, Any] = dict(data or {})
        self.save_count = 0
        # Shared by every component writing through this store.
        self.lock = threading.RLock()

    def has(self, key: str) -> bool:
        return key in self._data

    def get_int(self, key: str, default: int) -> int:
        value = self._data.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int):
            logger.warning("Stored value for %s is not an int; using %d", key, default)
            return default
        return value

    def set_int(self, key: str, value: int) -> None:
        self._data[key] = int(value)

    def get_str(self, key: str, default: str = "") -> str:
        value = self._data.get(key, default)
        if not isinstance(value, str):
            logger.warning("Stored value for %s is not a string; using default", key)
            return default
        return value

    def set_str(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def save(self) -> None:
        self.save_count += 1

    def commit(self, updates: Dict[str, Any], deletions: Iterable[str] = ()) -> bool:
        """Apply ``updates`` and ``deletions`` and save them together.

        If the save fails every touched key goes back to its previous value
        and False is returned; nothing is raised to the caller.
        """
        with self.lock:
            touched = list(updates) + [key for key in deletions if key not in updates]
            previous = {key: self._data.get(key, _MISSING) for key in touched}
            for key in touched:
                if key in updates:
                    self._data[key] = updates[key]
                else:
                    self._data.pop(key, None)
            try:
                self.save()
            except OSError as exc:
                logger.warning("Could not save %s (%s); changes rolled back", ", ".join(touched), exc)
                for key, value in previous.items():
                    if value is _MISSING:
                        self._data.pop(key, None)
                    else:
                        self._data[key] = value
                return False
            return True

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)


class JsonFileStore(MemoryStore):
    """Key/value store persisted as one JSON object.

    A missing, unreadable or malformed file loads as an empty store so the
    session can still start with default balances.
    """

    def __init__(self, path: Path = STORE_FILE) -> None:
        super().__init__(self._read(path))
        self.path = path

    @staticmethod
    def _read(path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            raw = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
            logger.warning("Store %s unreadable (%s); starting empty", path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Store %s does not hold an object; starting empty", path)
            return {}
        return raw

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data, indent=2, sort_keys=True))
        super().save()

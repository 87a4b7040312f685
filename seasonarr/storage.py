"""
Key-value storage media for the Seasonarr cache.

Both media mimic browser local storage: string keys to string values,
sized as UTF-16 (two bytes per character), with a hard quota.
"""

import os
import json
import logging
from typing import Dict, List, Optional

from .config import STORAGE_QUOTA_BYTES

logger = logging.getLogger('seasonarr')


class StorageQuotaExceeded(Exception):
    """Raised when a write would push the medium past its quota."""
    pass


def storage_size(key: str, value: str) -> int:
    """Bytes one entry occupies in the medium."""
    return 2 * (len(key) + len(value))


class MemoryStorage:
    """In-process storage medium with a byte quota."""

    def __init__(self, quota_bytes: int = STORAGE_QUOTA_BYTES):
        self.quota_bytes = quota_bytes
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        """
        Store a value, replacing any existing one.

        Raises:
            StorageQuotaExceeded: If the write would exceed the quota
        """
        current = self._items.get(key)
        freed = storage_size(key, current) if current is not None else 0
        if self.used_bytes() - freed + storage_size(key, value) > self.quota_bytes:
            raise StorageQuotaExceeded(f"Storage quota of {self.quota_bytes} bytes exceeded writing {key}")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._items.keys())

    def used_bytes(self) -> int:
        return sum(storage_size(k, v) for k, v in self._items.items())

    def __len__(self):
        return len(self._items)


class JsonFileStorage(MemoryStorage):
    """
    Storage medium persisted to a single JSON file.

    The file is read lazily on first access and rewritten after every
    mutation, so the cache survives between runs.
    """

    def __init__(self, path: str, quota_bytes: int = STORAGE_QUOTA_BYTES):
        super().__init__(quota_bytes)
        self.path = path
        self._loaded = False

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if isinstance(data, dict):
                self._items = {str(k): v for k, v in data.items() if isinstance(v, str)}
        except Exception as e:
            logger.warning(f"Could not read cache storage {self.path}, starting empty: {e}")
            self._items = {}

    def _flush(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(self._items, f, ensure_ascii=False)

    def get_item(self, key: str) -> Optional[str]:
        self._ensure_loaded()
        return super().get_item(key)

    def set_item(self, key: str, value: str) -> None:
        self._ensure_loaded()
        super().set_item(key, value)
        self._flush()

    def remove_item(self, key: str) -> None:
        self._ensure_loaded()
        if key in self._items:
            super().remove_item(key)
            self._flush()

    def keys(self) -> List[str]:
        self._ensure_loaded()
        return super().keys()

    def used_bytes(self) -> int:
        self._ensure_loaded()
        return super().used_bytes()

    def __len__(self):
        self._ensure_loaded()
        return super().__len__()

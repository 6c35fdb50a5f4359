"""
Memory Store Backend Module

This module implements an in-memory key-value store using a dictionary-based
storage with thread safety. Nothing survives the process; it backs tests and
ephemeral runs.
"""

import threading
from typing import Any, Dict, Optional

from entprep.common.logger import app_logger
from entprep.common.storage.base import KeyValueStore

# Module logger
logger = app_logger.getChild("storage.memory")


class MemoryKeyValueStore(KeyValueStore):
    """
    In-memory key-value store implementation.

    Features:
    - Thread-safe operations
    - Hit/miss statistics tracking
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None, name: str = "memory"):
        """
        Initialize the memory store.

        Args:
            initial: Optional initial content
            name: Name for this store backend (default: "memory")
        """
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.RLock()
        self._name = name

        # Statistics
        self._hits = 0
        self._misses = 0
        self._writes = 0

    @property
    def name(self) -> str:
        return self._name

    async def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._data.get(key)
            if value is None:
                self._misses += 1
                return None
            self._hits += 1
            return value

    async def set(self, key: str, value: str) -> bool:
        if not isinstance(value, str):
            logger.error(f"Refusing to store non-string value under {key}: {type(value).__name__}")
            return False
        with self._lock:
            self._data[key] = value
            self._writes += 1
            return True

    async def remove(self, key: str) -> bool:
        with self._lock:
            self._data.pop(key, None)
            return True

    async def clear(self) -> bool:
        """Remove every key from the store."""
        with self._lock:
            self._data.clear()
            return True

    async def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            hit_rate = self._hits / total if total > 0 else 0

            return {
                'backend': 'memory',
                'size': len(self._data),
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': hit_rate,
                'writes': self._writes
            }

    def __len__(self) -> int:
        """Return the number of keys in the store."""
        with self._lock:
            return len(self._data)

"""
Base Storage Module

This module defines the key-value store interface the local data source is
built on. Values are opaque strings (serialized JSON); a set fully overwrites
the previous value of a key and there are no transactions.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class KeyValueStore(ABC):
    """
    Abstract interface for durable key-value stores.

    Implementations never raise for backend failures: reads report absence
    and writes report failure, with the cause logged.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the name of this store backend."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Retrieve the value stored under a key.

        Args:
            key: The store key

        Returns:
            The stored string, or None if absent
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> bool:
        """
        Store a value, overwriting any previous value.

        Args:
            key: The store key
            value: The serialized value

        Returns:
            True on success, False otherwise
        """
        pass

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """
        Remove a key.

        Args:
            key: The store key

        Returns:
            True if the operation succeeded (removing an absent key succeeds)
        """
        pass

    async def has(self, key: str) -> bool:
        """Check whether a key currently holds a value."""
        return await self.get(key) is not None

    async def close(self) -> None:
        """Release any resources held by the backend."""
        return None

    @abstractmethod
    async def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the store.

        Returns:
            Dictionary containing store statistics
        """
        pass

"""
Key-Value Storage

This package provides the durable key-value stores behind the local data
source: an in-memory store, a directory-of-files store and a Redis store.
"""

from typing import Optional

from entprep.common.config import StorageConfig
from entprep.common.logger import app_logger
from entprep.common.storage.base import KeyValueStore
from entprep.common.storage.memory import MemoryKeyValueStore
from entprep.common.storage.file import FileKeyValueStore
from entprep.common.storage.key_builder import KeyBuilder

logger = app_logger.getChild("storage")


def create_store(config: Optional[StorageConfig] = None) -> KeyValueStore:
    """
    Create the store backend named by the configuration.

    Args:
        config: Storage configuration (defaults used when omitted)

    Returns:
        A key-value store instance
    """
    config = config or StorageConfig()

    if config.backend == "memory":
        store = MemoryKeyValueStore()
    elif config.backend == "redis":
        from entprep.common.storage.redis import RedisKeyValueStore
        store = RedisKeyValueStore(url=config.redis_url)
    else:
        store = FileKeyValueStore(config.file_directory)

    logger.info(f"Configured {store.name} key-value store")
    return store


__all__ = [
    'KeyValueStore',
    'MemoryKeyValueStore',
    'FileKeyValueStore',
    'KeyBuilder',
    'create_store',
]

"""
File Store Backend Module

This module implements a durable key-value store that keeps one file per key
inside a directory, the on-device persistence the app relies on when offline.
"""

import os
import asyncio
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

from entprep.common.logger import app_logger
from entprep.common.storage.base import KeyValueStore

# Module logger
logger = app_logger.getChild("storage.file")


class FileKeyValueStore(KeyValueStore):
    """
    Directory-backed key-value store.

    Each key maps to a file whose name is the percent-encoded key. Writes go
    to a temporary file that replaces the target, so a reader never sees a
    half-written value.
    """

    def __init__(self, directory: str, name: str = "file"):
        """
        Initialize the file store.

        Args:
            directory: Directory holding the value files (created if missing)
            name: Name for this store backend (default: "file")
        """
        self._directory = Path(directory)
        self._name = name
        self._reads = 0
        self._writes = 0
        self._errors = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, key: str) -> Path:
        return self._directory / f"{quote(key, safe='')}.json"

    def _read(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return None

    def _write(self, key: str, value: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(value)
            os.replace(tmp_path, self._path_for(key))
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def _delete(self, key: str) -> None:
        try:
            self._path_for(key).unlink()
        except FileNotFoundError:
            pass

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await asyncio.to_thread(self._read, key)
        except (OSError, UnicodeDecodeError) as e:
            self._errors += 1
            logger.error(f"File store error in get({key}): {e}")
            return None
        self._reads += 1
        return value

    async def set(self, key: str, value: str) -> bool:
        if not isinstance(value, str):
            logger.error(f"Refusing to store non-string value under {key}: {type(value).__name__}")
            return False
        try:
            await asyncio.to_thread(self._write, key, value)
        except OSError as e:
            self._errors += 1
            logger.error(f"File store error in set({key}): {e}")
            return False
        self._writes += 1
        return True

    async def remove(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self._delete, key)
        except OSError as e:
            self._errors += 1
            logger.error(f"File store error in remove({key}): {e}")
            return False
        return True

    async def get_stats(self) -> Dict[str, Any]:
        size = len(list(self._directory.glob("*.json"))) if self._directory.exists() else 0
        return {
            'backend': 'file',
            'directory': str(self._directory),
            'size': size,
            'reads': self._reads,
            'writes': self._writes,
            'errors': self._errors
        }

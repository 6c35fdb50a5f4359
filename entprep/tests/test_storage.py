import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from entprep.common.config import StorageConfig
from entprep.common.storage import create_store
from entprep.common.storage.file import FileKeyValueStore
from entprep.common.storage.key_builder import KeyBuilder
from entprep.common.storage.memory import MemoryKeyValueStore
from entprep.common.storage.redis import RedisKeyValueStore


class TestMemoryKeyValueStore(unittest.TestCase):
    """Test the MemoryKeyValueStore class."""

    def setUp(self):
        """Set up a MemoryKeyValueStore instance for testing."""
        self.store = MemoryKeyValueStore()
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)

    def tearDown(self):
        """Clean up the event loop."""
        self.loop.close()

    def test_get_set(self):
        """Test setting and getting a value."""
        success = self.loop.run_until_complete(self.store.set("key", '{"a": 1}'))
        self.assertTrue(success)

        value = self.loop.run_until_complete(self.store.get("key"))
        self.assertEqual(value, '{"a": 1}')

        # Get a non-existent key
        self.assertIsNone(self.loop.run_until_complete(self.store.get("missing")))

    def test_set_overwrites(self):
        """A set fully replaces the previous value."""
        self.loop.run_until_complete(self.store.set("key", "first"))
        self.loop.run_until_complete(self.store.set("key", "second"))
        self.assertEqual(self.loop.run_until_complete(self.store.get("key")), "second")

    def test_rejects_non_string(self):
        """Values are opaque strings."""
        success = self.loop.run_until_complete(self.store.set("key", {"a": 1}))
        self.assertFalse(success)
        self.assertFalse(self.loop.run_until_complete(self.store.has("key")))

    def test_remove(self):
        """Test removing a value."""
        self.loop.run_until_complete(self.store.set("key", "value"))
        self.assertTrue(self.loop.run_until_complete(self.store.remove("key")))
        self.assertFalse(self.loop.run_until_complete(self.store.has("key")))

        # Removing an absent key still succeeds
        self.assertTrue(self.loop.run_until_complete(self.store.remove("key")))

    def test_get_stats(self):
        """Test getting store statistics."""
        self.loop.run_until_complete(self.store.set("stat_key", "value"))
        self.loop.run_until_complete(self.store.get("stat_key"))
        self.loop.run_until_complete(self.store.get("nonexistent"))

        stats = self.loop.run_until_complete(self.store.get_stats())
        self.assertEqual(stats["backend"], "memory")
        self.assertEqual(stats["size"], 1)
        self.assertEqual(stats["hits"], 1)
        self.assertEqual(stats["misses"], 1)
        self.assertEqual(stats["hit_rate"], 0.5)


class TestFileKeyValueStore:
    """Test the FileKeyValueStore class."""

    @pytest.mark.asyncio
    async def test_round_trip_survives_new_instance(self, tmp_path):
        store = FileKeyValueStore(str(tmp_path / "data"))
        assert await store.set("entprep:tests:results", "[1, 2]")

        reopened = FileKeyValueStore(str(tmp_path / "data"))
        assert await reopened.get("entprep:tests:results") == "[1, 2]"

    @pytest.mark.asyncio
    async def test_missing_key_and_remove(self, tmp_path):
        store = FileKeyValueStore(str(tmp_path))
        assert await store.get("nope") is None

        await store.set("a:b", "value")
        assert await store.remove("a:b")
        assert await store.get("a:b") is None
        assert await store.remove("a:b")

    @pytest.mark.asyncio
    async def test_keys_with_separators_do_not_collide(self, tmp_path):
        store = FileKeyValueStore(str(tmp_path))
        await store.set("a/b", "slash")
        await store.set("a:b", "colon")

        assert await store.get("a/b") == "slash"
        assert await store.get("a:b") == "colon"
        stats = await store.get_stats()
        assert stats["size"] == 2
        assert stats["writes"] == 2


@pytest.mark.asyncio
class TestRedisKeyValueStore:
    """Test the RedisKeyValueStore class."""

    @pytest.fixture
    def mock_redis(self):
        """Create a mock asyncio Redis client."""
        mock = MagicMock()
        mock.get = AsyncMock(return_value=None)
        mock.set = AsyncMock(return_value=True)
        mock.delete = AsyncMock(return_value=1)
        mock.aclose = AsyncMock()
        return mock

    @pytest.fixture
    def store(self, mock_redis):
        return RedisKeyValueStore(redis_client=mock_redis, key_prefix="app:")

    async def test_get_set(self, store, mock_redis):
        assert await store.set("key", "value")
        mock_redis.set.assert_awaited_with("app:key", "value")

        mock_redis.get.return_value = "value"
        assert await store.get("key") == "value"
        mock_redis.get.assert_awaited_with("app:key")

    async def test_bytes_are_decoded(self, store, mock_redis):
        mock_redis.get.return_value = b'{"x": 1}'
        assert await store.get("key") == '{"x": 1}'

    async def test_errors_are_reported_not_raised(self, store, mock_redis):
        mock_redis.get.side_effect = RedisConnectionError("down")
        mock_redis.set.side_effect = RedisConnectionError("down")
        mock_redis.delete.side_effect = RedisConnectionError("down")

        assert await store.get("key") is None
        assert await store.set("key", "value") is False
        assert await store.remove("key") is False

        stats = await store.get_stats()
        assert stats["errors"] == 3

    async def test_close(self, store, mock_redis):
        await store.close()
        mock_redis.aclose.assert_awaited_once()


class TestKeyBuilder(unittest.TestCase):
    """Test the KeyBuilder class."""

    def test_build(self):
        self.assertEqual(KeyBuilder.build("tests", "catalog"), "tests:catalog")
        self.assertEqual(KeyBuilder.build("tests", "catalog", namespace="ns"), "ns:tests:catalog")

    def test_service_key(self):
        keys = KeyBuilder()
        self.assertEqual(keys.service_key("gateway", "routing"), "entprep:gateway:routing")
        self.assertEqual(KeyBuilder("other").service_key("auth", "users"), "other:auth:users")


class TestCreateStore(unittest.TestCase):

    def test_memory_backend(self):
        store = create_store(StorageConfig(backend="memory"))
        self.assertIsInstance(store, MemoryKeyValueStore)

    def test_file_backend(self):
        store = create_store(StorageConfig(backend="file", file_directory="/tmp/entprep-test-store"))
        self.assertIsInstance(store, FileKeyValueStore)
        self.assertEqual(store.name, "file")


class TestMemoryKeyValueStoreSeeding(unittest.TestCase):

    def test_initial_values_and_clear(self):
        store = MemoryKeyValueStore(initial={"a": "1", "b": "2"})
        loop = asyncio.new_event_loop()
        try:
            self.assertEqual(len(store), 2)
            self.assertEqual(loop.run_until_complete(store.get("b")), "2")
            self.assertTrue(loop.run_until_complete(store.clear()))
            self.assertEqual(len(store), 0)
        finally:
            loop.close()

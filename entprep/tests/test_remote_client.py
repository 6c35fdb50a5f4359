import asyncio
import json
import unittest

import aiohttp
import pytest

from entprep.common.config import RemoteConfig
from entprep.common.exceptions import RemoteFailureError, RemoteTimeoutError
from entprep.gateway.remote import RemoteCallClient


class FakeResponse:
    """Stands in for an aiohttp response used as an async context manager."""

    def __init__(self, status=200, body="", delay=0.0):
        self.status = status
        self.body = body
        self.delay = delay
        self.released = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.released = True
        return False

    async def text(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.body


class FakeSession:

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.closed = False
        self.requests = []

    def request(self, method, url, json=None):
        self.requests.append((method, url, json))
        if self.error is not None:
            raise self.error
        return self.response


def client_for(session, timeout=10.0):
    config = RemoteConfig(base_url="https://ent.example.com/", timeout_seconds=timeout)
    return RemoteCallClient(config, session=session)


@pytest.mark.asyncio
class TestRemoteCallClient:

    async def test_success(self):
        session = FakeSession(FakeResponse(200, json.dumps([{"id": 1}])))
        client = client_for(session)

        assert await client.call("/tests") == [{"id": 1}]
        assert session.requests == [("GET", "https://ent.example.com/tests", None)]
        assert session.response.released

    async def test_post_body_and_empty_response(self):
        session = FakeSession(FakeResponse(204, ""))
        client = client_for(session)

        assert await client.call("/auth/logout", "POST", {"a": 1}) is None
        assert session.requests[0] == ("POST", "https://ent.example.com/auth/logout", {"a": 1})

    async def test_error_status_carries_remote_message(self):
        session = FakeSession(FakeResponse(401, json.dumps({"message": "Invalid credentials"})))
        client = client_for(session)

        with pytest.raises(RemoteFailureError) as info:
            await client.call("/auth/login", "POST", {})

        assert info.value.status == 401
        assert info.value.remote_message == "Invalid credentials"

    async def test_error_status_without_message(self):
        client = client_for(FakeSession(FakeResponse(503, "<html>down</html>")))

        with pytest.raises(RemoteFailureError) as info:
            await client.call("/tests")

        assert info.value.status == 503
        assert info.value.remote_message == "HTTP 503"

    async def test_connection_error(self):
        error = aiohttp.ClientConnectionError("connection refused")
        client = client_for(FakeSession(error=error))

        with pytest.raises(RemoteFailureError) as info:
            await client.call("/tests")

        assert info.value.status is None
        assert info.value.original_exception is error

    async def test_timeout_releases_response(self):
        response = FakeResponse(200, "[]", delay=5)
        client = client_for(FakeSession(response), timeout=0.05)

        loop = asyncio.get_running_loop()
        started = loop.time()
        with pytest.raises(RemoteTimeoutError) as info:
            await client.call("/tests")

        assert loop.time() - started < 1
        assert info.value.timeout == 0.05
        assert response.released

    async def test_close_does_not_close_borrowed_session(self):
        session = FakeSession(FakeResponse())
        client = client_for(session)
        await client.close()
        assert session.closed is False


class TestRemoteCallClientOutsideLoop(unittest.TestCase):

    def test_client_built_before_the_loop_starts(self):
        client = RemoteCallClient(RemoteConfig(base_url="https://ent.example.com"))
        self.assertIsNone(client._initialize_lock)

        async def open_concurrently():
            try:
                return await asyncio.gather(client._ensure_session(), client._ensure_session())
            finally:
                await client.close()

        first, second = asyncio.run(open_concurrently())

        self.assertIs(first, second)
        self.assertTrue(first.closed)

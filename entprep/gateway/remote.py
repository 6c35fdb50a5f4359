"""
Remote Call Client

Thin aiohttp client for the remote data service. Every call is bounded by a
single time budget; on expiry the request is abandoned and the response handle
released before RemoteTimeoutError propagates.
"""

import asyncio
import json
from typing import Any, Optional

import aiohttp

from entprep.common.config import RemoteConfig
from entprep.common.exceptions import RemoteFailureError, RemoteTimeoutError
from entprep.common.logger import app_logger

# Module logger
logger = app_logger.getChild("gateway.remote")


class RemoteCallClient:
    """Async JSON-over-HTTP client with a fixed per-call timeout."""

    def __init__(self, config: Optional[RemoteConfig] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        """
        Initialize the client.

        Args:
            config: Remote service configuration (defaults used when omitted)
            session: Optional pre-built session; the client then does not own it
        """
        self.config = config or RemoteConfig()
        self._session = session
        self._owns_session = session is None
        # Bound to the running loop on first use
        self._initialize_lock: Optional[asyncio.Lock] = None

    @property
    def timeout(self) -> float:
        return self.config.timeout_seconds

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is not None and not self._session.closed:
            return self._session

        if self._initialize_lock is None:
            self._initialize_lock = asyncio.Lock()
        async with self._initialize_lock:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession(
                    headers=self.config.headers,
                    timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds)
                )
                self._owns_session = True
        return self._session

    async def call(self, path: str, method: str = "GET", body: Optional[Any] = None) -> Any:
        """
        Call a remote endpoint and return its parsed JSON payload.

        Args:
            path: Endpoint path, starting with a slash
            method: HTTP method
            body: JSON-serializable request body

        Returns:
            The parsed response payload (None for an empty body)

        Raises:
            RemoteTimeoutError: If no response arrived within the budget
            RemoteFailureError: If the service was unreachable or answered
                with a non-success status
        """
        try:
            return await asyncio.wait_for(self._request(path, method, body), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"{method} {path} timed out after {self.timeout:g}s")
            raise RemoteTimeoutError(path, self.timeout, e) from e
        except aiohttp.ClientError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise RemoteFailureError(path, str(e) or e.__class__.__name__, original_exception=e) from e

    async def _request(self, path: str, method: str, body: Optional[Any]) -> Any:
        session = await self._ensure_session()
        url = f"{self.config.base_url}{path}"
        logger.debug(f"{method} {url}")

        async with session.request(method, url, json=body) as response:
            text = await response.text()
            payload = self._decode(text)

            if response.status >= 400:
                message = None
                if isinstance(payload, dict):
                    message = payload.get("message") or payload.get("detail")
                message = str(message or f"HTTP {response.status}")
                logger.warning(f"{method} {path} returned {response.status}: {message}")
                raise RemoteFailureError(path, message, response.status)

            return payload

    @staticmethod
    def _decode(text: str) -> Any:
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text

    async def close(self) -> None:
        """Close the underlying session if this client created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> 'RemoteCallClient':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

"""
Authentication Service

Typed facade over the gateway's auth operations.
"""

from typing import Any, Optional

from entprep.common.exceptions import ValidationError
from entprep.common.logger import app_logger
from entprep.domain.profiles.model import Attempt, UserProfile
from entprep.gateway.gateway import DataGateway, GatewayRequest

logger = app_logger.getChild("services.auth")

SERVICE = "auth"


def _profile(payload: Any) -> Optional[UserProfile]:
    if payload is None:
        return None
    try:
        return UserProfile.from_dict(payload)
    except ValidationError as e:
        logger.warning(f"Discarding malformed profile: {e.message}")
        return None


def _succeeded(payload: Any) -> bool:
    # Local handlers answer with a bool; any remote 2xx counts as success
    return payload if isinstance(payload, bool) else True


class AuthService:
    """Login, registration and the current user's history."""

    def __init__(self, gateway: DataGateway):
        self.gateway = gateway

    async def login(self, username: str, password: str) -> Optional[UserProfile]:
        """Return the profile for valid credentials, or None."""
        payload = await self.gateway.fetch_entity(
            SERVICE, "login", {"username": username, "password": password}
        )
        return _profile(payload)

    async def register(self, username: str, password: str,
                       full_name: str = "", email: str = "") -> Optional[UserProfile]:
        """Create an account and sign it in; None when the username is taken."""
        payload = await self.gateway.fetch_entity(SERVICE, "register", {
            "username": username,
            "password": password,
            "fullName": full_name,
            "email": email,
        })
        return _profile(payload)

    async def logout(self) -> bool:
        return _succeeded(await self.gateway.fetch_entity(SERVICE, "logout"))

    async def current_user(self) -> Optional[UserProfile]:
        return _profile(await self.gateway.fetch_entity(SERVICE, "currentUser"))

    async def append_history(self, attempt: Attempt) -> bool:
        """
        Append an attempt to the current user's history.

        Returns:
            False when nobody is signed in
        """
        response = await self.gateway.execute(
            SERVICE, GatewayRequest("appendHistory", {"attempt": attempt.to_dict()})
        )
        if response.warning:
            logger.warning(response.warning)
        return _succeeded(response.data)

"""
Service Routing Configuration

Per-service switch between the remote data service and the local store. The
configuration is a single persisted value; every gateway call reads it afresh,
so a change takes effect on the next operation.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from entprep.common.exceptions import StorageCorruptError
from entprep.common.logger import app_logger
from entprep.common.serialization import parse_stored
from entprep.common.storage.base import KeyValueStore

# Module logger
logger = app_logger.getChild("gateway.routing")

SERVICES = ("auth", "tests", "analytics")


class ServiceRoute(BaseModel):
    """Routing flag of one logical service."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    use_remote: bool = Field(default=False, alias="useRemote")


class ServiceRoutingConfig(BaseModel):
    """
    Routing flags of every logical service.

    Instances are immutable; ``with_route`` returns an updated copy.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    auth: ServiceRoute = Field(default_factory=ServiceRoute)
    tests: ServiceRoute = Field(default_factory=ServiceRoute)
    analytics: ServiceRoute = Field(default_factory=ServiceRoute)

    def uses_remote(self, service: str) -> bool:
        route = getattr(self, service, None) if service in SERVICES else None
        return bool(route and route.use_remote)

    def with_route(self, service: str, use_remote: bool) -> 'ServiceRoutingConfig':
        return self.model_copy(update={service: ServiceRoute(use_remote=use_remote)})

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    @classmethod
    def defaults(cls) -> 'ServiceRoutingConfig':
        """All services served from the local store."""
        return cls()


class RoutingConfigRepository:
    """Reads and writes the routing configuration in the key-value store."""

    def __init__(self, store: KeyValueStore, key: str):
        self.store = store
        self.key = key

    async def load(self) -> ServiceRoutingConfig:
        """
        Return the stored configuration.

        A missing or unreadable value is replaced by persisted defaults.
        """
        raw = await self.store.get(self.key)
        if raw is None:
            logger.info("No routing configuration stored, initializing local-only defaults")
            return await self._reset()

        data = parse_stored(raw, self.key)
        config = self._validate(data)
        if config is None:
            return await self._reset()
        return config

    def _validate(self, data: Any) -> Optional[ServiceRoutingConfig]:
        if data is None:
            return None
        try:
            return ServiceRoutingConfig.model_validate(data)
        except PydanticValidationError as e:
            error = StorageCorruptError(self.key, e)
            logger.error(f"{error.message}: {e.error_count()} validation error(s)")
            return None

    async def _reset(self) -> ServiceRoutingConfig:
        config = ServiceRoutingConfig.defaults()
        await self.save(config)
        return config

    async def save(self, config: ServiceRoutingConfig) -> bool:
        return await self.store.set(self.key, config.model_dump_json(by_alias=True))

"""
Dual-Source Data Gateway

This module routes every logical data operation either to the remote data
service or to the local store, according to the persisted per-service
routing configuration.

Remote reads that fail fall back to the local source. Remote writes that
succeed are written through to the local store; remote writes that fail are
still performed locally and the response carries a warning saying the remote
side did not persist them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from entprep.common.config import GatewayConfig
from entprep.common.exceptions import EntPrepError, RemoteError, ValidationError
from entprep.common.logger import app_logger, log_execution_time
from entprep.common.storage.base import KeyValueStore
from entprep.common.storage.key_builder import KeyBuilder
from entprep.gateway.endpoints import Endpoint, EndpointKind, get_endpoint
from entprep.gateway.local import LocalDataSource
from entprep.gateway.remote import RemoteCallClient
from entprep.gateway.routing import SERVICES, RoutingConfigRepository, ServiceRoutingConfig

# Module logger
logger = app_logger.getChild("gateway")


class DataSource(str, Enum):
    """Where the data of a gateway response came from."""
    REMOTE = "remote"
    LOCAL = "local"


@dataclass(frozen=True)
class GatewayRequest:
    """A logical operation and its parameters."""
    operation: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class GatewayResponse:
    """
    Result of a gateway operation.

    Attributes:
        data: Operation payload, identical in shape for both sources
        source: The source that produced ``data``
        warning: Set when a write reached the local store only
    """
    data: Any
    source: DataSource
    warning: Optional[str] = None


class DataGateway:
    """Per-service router between the remote call client and the local store."""

    def __init__(
        self,
        store: KeyValueStore,
        remote: Optional[RemoteCallClient] = None,
        keys: Optional[KeyBuilder] = None,
        config: Optional[GatewayConfig] = None,
        local: Optional[LocalDataSource] = None
    ):
        """
        Initialize the gateway.

        Args:
            store: Durable key-value store backing the local source
            remote: Remote call client; without one every call is served locally
            keys: Key builder naming persisted values
            config: Gateway configuration
            local: Local data source (built over ``store`` when omitted)
        """
        self.keys = keys or KeyBuilder()
        self.store = store
        self.remote = remote
        self.config = config or GatewayConfig()
        self.local = local or LocalDataSource(store, self.keys)
        self.routing = RoutingConfigRepository(store, self.keys.service_key("gateway", "routing"))

    # Routing configuration

    async def get_routing_config(self) -> ServiceRoutingConfig:
        """
        Get the current routing configuration.

        Initializes and persists local-only defaults on first access, and
        resets to them when the stored value is unreadable.
        """
        return await self.routing.load()

    async def set_service_route(self, service: str, use_remote: bool) -> bool:
        """
        Route one service to the remote (True) or local (False) source.

        Returns:
            Whether the updated configuration was persisted; False for an
            unknown service
        """
        if service not in SERVICES:
            logger.warning(f"Cannot route unknown service {service!r}")
            return False

        config = await self.get_routing_config()
        saved = await self.routing.save(config.with_route(service, use_remote))
        if saved:
            logger.info(f"Service {service} now uses the {'remote' if use_remote else 'local'} source")
        return saved

    async def set_routing_config(self, config: ServiceRoutingConfig) -> bool:
        """Replace the whole routing configuration."""
        saved = await self.routing.save(config)
        if saved:
            logger.info(f"Routing configuration replaced: {config.to_dict()}")
        return saved

    # Operations

    async def fetch_entity(self, service: str, operation: str,
                           params: Optional[Dict[str, Any]] = None) -> Any:
        """Execute an operation and return only its payload."""
        response = await self.execute(service, GatewayRequest(operation, dict(params or {})))
        return response.data

    @log_execution_time(logger)
    async def execute(self, service: str, request: GatewayRequest) -> GatewayResponse:
        """
        Execute a logical operation against the source configured for its service.

        Args:
            service: Logical service (auth, tests, analytics)
            request: Operation and parameters

        Returns:
            The response with its payload and source

        Raises:
            ValidationError: If the operation is unknown or its parameters
                are incomplete
        """
        endpoint = get_endpoint(service, request.operation)
        if endpoint is None:
            raise ValidationError(f"unknown operation {service}.{request.operation}",
                                  {"service": service, "operation": request.operation})

        routing = await self.get_routing_config()
        if not routing.uses_remote(service):
            logger.debug(f"{service}.{request.operation} -> local")
            return GatewayResponse(await self._run_local(endpoint, request.params), DataSource.LOCAL)

        if self.remote is None:
            logger.warning(f"{service} is routed remotely but no remote client is configured")
            return await self._fallback(endpoint, request.params, "no remote client configured")

        logger.debug(f"{service}.{request.operation} -> remote")
        path = self._build_path(endpoint, request.params)
        try:
            payload = await self.remote.call(path, endpoint.method, endpoint.build_body(request.params))
        except RemoteError as e:
            return await self._fallback(endpoint, request.params, e.message)

        warning = await self._write_through(endpoint, request.params, payload)
        return GatewayResponse(payload, DataSource.REMOTE, warning)

    @staticmethod
    def _build_path(endpoint: Endpoint, params: Dict[str, Any]) -> str:
        try:
            return endpoint.build_path(params)
        except KeyError as e:
            raise ValidationError(f"missing parameter {e.args[0]!r} for {endpoint.service}.{endpoint.operation}",
                                  {"params": params}) from e

    async def _run_local(self, endpoint: Endpoint, params: Dict[str, Any]) -> Any:
        handler = getattr(self.local, endpoint.local)
        return await handler(params)

    async def _fallback(self, endpoint: Endpoint, params: Dict[str, Any], reason: str) -> GatewayResponse:
        data = await self._run_local(endpoint, params)
        if endpoint.is_write:
            warning = f"{endpoint.service}.{endpoint.operation} was saved locally only: {reason}"
            logger.warning(warning)
            return GatewayResponse(data, DataSource.LOCAL, warning)

        logger.warning(f"{endpoint.service}.{endpoint.operation} fell back to local data: {reason}")
        return GatewayResponse(data, DataSource.LOCAL)

    async def _write_through(self, endpoint: Endpoint, params: Dict[str, Any], payload: Any) -> Optional[str]:
        if endpoint.mirror is None:
            return None
        if endpoint.kind is EndpointKind.READ and not self.config.cache_remote_reads:
            return None

        mirror = getattr(self.local, endpoint.mirror)
        try:
            await mirror(params, payload)
        except EntPrepError as e:
            warning = f"{endpoint.service}.{endpoint.operation} was not mirrored locally: {e.message}"
            logger.warning(warning)
            return warning
        return None

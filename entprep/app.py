"""
Application bootstrap for the exam-preparation core.

Builds the key-value store, the remote call client, the data gateway and the
services from configuration, and installs static reference data.

Usage:
    context = await create_context()
    catalog = await context.tests.list_tests()
    ...
    await context.close()
"""

import random
from dataclasses import dataclass
from typing import Optional

from entprep.assessments.exam.events import EventDispatcher
from entprep.assessments.exam.session import ExamSession
from entprep.common.config import AppConfig, get_config
from entprep.common.logger import app_logger, configure_logger
from entprep.common.storage import KeyBuilder, KeyValueStore, create_store
from entprep.gateway.gateway import DataGateway
from entprep.gateway.local import load_reference_data
from entprep.gateway.remote import RemoteCallClient
from entprep.services.analytics_service import AnalyticsService
from entprep.services.auth_service import AuthService
from entprep.services.test_service import TestService

# Setup module logger
logger = app_logger.getChild("app")


@dataclass
class AppContext:
    """Everything a client of the core needs, wired together."""
    config: AppConfig
    store: KeyValueStore
    remote: Optional[RemoteCallClient]
    gateway: DataGateway
    auth: AuthService
    tests: TestService
    analytics: AnalyticsService

    def new_exam_session(self, rng: Optional[random.Random] = None,
                         dispatcher: Optional[EventDispatcher] = None) -> ExamSession:
        """Create an exam session using the configured time limit and tick interval."""
        return ExamSession(
            time_limit_seconds=self.config.exam.time_limit_seconds,
            rng=rng,
            dispatcher=dispatcher,
            tick_interval_seconds=self.config.exam.tick_interval_seconds,
        )

    async def close(self) -> None:
        """Release the remote session and the store."""
        if self.remote is not None:
            await self.remote.close()
        await self.store.close()
        logger.info("Application context closed")


async def seed_reference_data(gateway: DataGateway, path: str) -> None:
    """
    Install the catalog and user directory from a reference data file.

    Values already present in the store are kept, so a catalog refreshed
    from the remote service is not overwritten on restart.
    """
    data = load_reference_data(path)
    local = gateway.local
    catalog = data["catalog"] if not await gateway.store.has(local.catalog_key) else None
    users = data["users"] if not await gateway.store.has(local.users_key) else None
    await local.seed(catalog=catalog, users=users)


async def create_context(
    config: Optional[AppConfig] = None,
    store: Optional[KeyValueStore] = None,
    remote: Optional[RemoteCallClient] = None,
    configure_logging: bool = True
) -> AppContext:
    """
    Build the application context.

    Args:
        config: Configuration (loaded with get_config() when omitted)
        store: Key-value store (built from ``config.storage`` when omitted)
        remote: Remote call client (built from ``config.remote`` when omitted)
        configure_logging: Apply ``config.logging`` to the application logger

    Returns:
        The wired context
    """
    config = config or get_config()

    if configure_logging:
        configure_logger(
            level=config.logging.level,
            use_json=config.logging.use_json,
            log_file=config.logging.file_path,
        )

    store = store or create_store(config.storage)
    remote = remote or RemoteCallClient(config.remote)
    gateway = DataGateway(
        store=store,
        remote=remote,
        keys=KeyBuilder(config.storage.key_prefix),
        config=config.gateway,
    )

    if config.data.reference_data_path:
        await seed_reference_data(gateway, config.data.reference_data_path)

    routing = await gateway.get_routing_config()
    logger.info(f"{config.app_name} {config.version} started ({config.environment.env}), "
                f"routing: {routing.to_dict()}")

    return AppContext(
        config=config,
        store=store,
        remote=remote,
        gateway=gateway,
        auth=AuthService(gateway),
        tests=TestService(gateway),
        analytics=AnalyticsService(gateway),
    )

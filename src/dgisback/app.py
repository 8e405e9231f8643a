"""Service factory wiring the store, cache and blob clients together."""

from __future__ import annotations

import logging
import os
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from motor.motor_asyncio import AsyncIOMotorClient
from redis.asyncio import Redis

from dgisback.config import configure_logging, load_config_from_env
from dgisback.events import ChangePublisher
from dgisback.services import (
    MarkerAssignment,
    NotificationEngine,
    ReportWorkflow,
    UserDirectory,
)
from dgisback.storage import ObjectStore, create_s3_client

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from motor.motor_asyncio import AsyncIOMotorDatabase

    from dgisback.auth import SecurityManager
    from dgisback.config import AppConfig

LOGGER = logging.getLogger(__name__)


@dataclass
class Services:
    """Every service, constructed once per process and shared by requests."""

    users: UserDirectory
    markers: MarkerAssignment
    notifications: NotificationEngine
    reports: ReportWorkflow
    publisher: ChangePublisher
    object_store: ObjectStore
    security_manager: SecurityManager


def build_services(
    database: AsyncIOMotorDatabase,
    redis_client: Redis,
    s3_client: Any,
    config: AppConfig,
) -> Services:
    """Construct the services over explicitly passed clients.

    :param database: Motor database
    :param redis_client: asyncio Redis client used for change events
    :param s3_client: boto3 S3 client used for report images
    :param config: Application configuration
    :return: The wired services
    """
    publisher = ChangePublisher(redis_client)
    object_store = ObjectStore(s3_client, config.s3_bucket)
    return Services(
        users=UserDirectory(database),
        markers=MarkerAssignment(database),
        notifications=NotificationEngine(database, publisher),
        reports=ReportWorkflow(database, object_store),
        publisher=publisher,
        object_store=object_store,
        security_manager=config.security_manager,
    )


@asynccontextmanager
async def open_services(
    config: AppConfig,
    owner_credentials: tuple[str, str] | None = None,
) -> AsyncGenerator[Services]:
    """Open the shared clients, yield the services and close the clients.

    :param config: Application configuration
    :param owner_credentials: Optional chairman credentials seeded into an
        empty user directory
    """
    LOGGER.info("Connecting to MongoDB database %s", config.mongo_database)
    async with AsyncExitStack() as stack:
        stack.callback(LOGGER.info, "Closed service clients")
        mongo_client = AsyncIOMotorClient(config.mongo_uri, tz_aware=True)
        stack.callback(mongo_client.close)
        redis_client = Redis.from_url(config.redis_url)
        stack.push_async_callback(redis_client.aclose)
        s3_client = create_s3_client(config)
        stack.callback(s3_client.close)

        services = build_services(
            mongo_client[config.mongo_database],
            redis_client,
            s3_client,
            config,
        )
        await services.users.ensure_indexes(owner_credentials)
        await services.notifications.ensure_indexes()
        yield services


def create_config(
    env_file: str | None = os.environ.get("ENV_FILE", ".env"),
) -> AppConfig:
    """Load the configuration and set up logging.

    The default reads the ENV_FILE environment variable, falling back to .env.

    :param env_file: Optional path to the environment configuration file
    :return: Loaded configuration
    """
    config = load_config_from_env(env_file)
    configure_logging(config)
    return config

"""Shared fixtures: an in-memory document store and mocked Redis and S3."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from mongomock_motor import AsyncMongoMockClient

from dgisback.app import Services, build_services
from dgisback.config import AppConfig

TEST_SECRET_KEY = "a" * 64
TEST_BUCKET = "test-reports"


@pytest.fixture
def app_config() -> AppConfig:
    """Create a configuration that never touches real services."""
    return AppConfig(
        mongo_uri="mongodb://localhost:27017",
        mongo_database="dgis_test",
        redis_url="redis://localhost:6379/0",
        logging_level="DEBUG",
        s3_bucket=TEST_BUCKET,
        s3_endpoint_url=None,
        s3_region="us-east-1",
        s3_access_key=None,
        s3_secret_key=None,
        secret_key=TEST_SECRET_KEY,
        algorithm="HS256",
        access_token_expire_minutes=60,
        password_min_length=8,
    )


@pytest.fixture
def database():  # noqa: ANN201
    """Create an isolated in-memory database per test."""
    return AsyncMongoMockClient()[f"test_{uuid4().hex}"]


@pytest.fixture
def redis_client() -> AsyncMock:
    """Create a mock asyncio Redis client."""
    client = AsyncMock()
    client.publish.return_value = 1
    return client


@pytest.fixture
def s3_client() -> MagicMock:
    """Create a mock boto3 S3 client."""
    return MagicMock()


@pytest.fixture
def services(
    database,  # noqa: ANN001
    redis_client: AsyncMock,
    s3_client: MagicMock,
    app_config: AppConfig,
) -> Services:
    """Wire every service over the in-memory store and mocks."""
    return build_services(database, redis_client, s3_client, app_config)

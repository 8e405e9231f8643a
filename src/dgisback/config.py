"""Configuration management for the backend services.

This module provides utilities for loading and validating configuration
from environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

from dotenv import load_dotenv
from jwt.algorithms import get_default_algorithms

from dgisback.auth import SecurityManager

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

LOGGER = logging.getLogger(__name__)

_MINUTES_IN_DAY = 60 * 24
_DEFAULT_PASSWORD_MIN_LENGTH = 8
_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

T = TypeVar("T")


def configure_logging(app_config: AppConfig) -> None:
    """Install the root handler at the configured level.

    Unknown level names fall back to INFO.
    """
    level_name = (app_config.logging_level or "INFO").upper()
    level = logging.getLevelNamesMapping().get(level_name)
    if level is None:
        LOGGER.warning("Invalid log level: %s, using INFO", app_config.logging_level)
        level = logging.INFO
    logging.basicConfig(level=level, format=_LOG_FORMAT)


@dataclass
class AppConfig:
    """Holds application configuration loaded from environment variables."""

    mongo_uri: str
    mongo_database: str
    redis_url: str
    logging_level: str | None

    s3_bucket: str
    s3_endpoint_url: str | None
    s3_region: str
    s3_access_key: str | None
    s3_secret_key: str | None

    secret_key: str
    algorithm: str
    access_token_expire_minutes: int
    password_min_length: int

    security_manager: SecurityManager = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Initialize derived configuration attributes."""
        self.security_manager = SecurityManager(
            secret_key=self.secret_key,
            algorithm=self.algorithm,
            expire_minutes=self.access_token_expire_minutes,
            password_min_length=self.password_min_length,
        )


def _check(var_name: str, value: T, value_checker: Callable[[T], bool] | None) -> T:
    if value_checker is not None and not value_checker(value):
        msg = f"Environment variable {var_name} has invalid value: {value}"
        raise ValueError(msg)
    return value


def get_env_str(
    var_name: str,
    default: str | None,
    value_checker: Callable[[str], bool] | None = None,
) -> str:
    """Read a string variable, falling back to ``default`` when unset.

    :raises ValueError: If the variable is unset without a default, or fails
        the checker
    """
    value = os.environ.get(var_name, default)
    if value is None:
        msg = f"Environment variable {var_name} is required"
        raise ValueError(msg)
    return _check(var_name, value, value_checker)


def get_env_optional_str(var_name: str) -> str | None:
    """Get an environment variable as a string, None when unset or empty."""
    return os.environ.get(var_name) or None


def get_env_int(
    var_name: str,
    default: int,
    value_checker: Callable[[int], bool] | None = None,
) -> int:
    """Read a non-negative integer variable; unset or empty yields ``default``.

    :raises ValueError: If the value is not a number or fails the checker
    """
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    if not raw.isdecimal():
        msg = f"Environment variable {var_name} must be an integer, got: {raw}"
        raise ValueError(msg)
    return _check(var_name, int(raw), value_checker)


def load_config_from_env(env_file: str | Path | None) -> AppConfig:
    """Load application configuration from environment variables.

    :param env_file: Optional .env file loaded before reading the environment
    :return: An AppConfig instance populated with environment variable values
    """
    if env_file:
        load_dotenv(dotenv_path=env_file)

    return AppConfig(
        mongo_uri=get_env_str("MONGO_URI", "mongodb://localhost:27017"),
        mongo_database=get_env_str("MONGO_DATABASE", "dgis"),
        redis_url=get_env_str("REDIS_URL", "redis://localhost:6379/0"),
        logging_level=get_env_str("LOGGING_LEVEL", "INFO"),
        s3_bucket=get_env_str("S3_BUCKET", "dgis-reports", lambda bucket: bool(bucket)),
        s3_endpoint_url=get_env_optional_str("S3_ENDPOINT_URL"),
        s3_region=get_env_str("S3_REGION", "us-east-1"),
        s3_access_key=get_env_optional_str("S3_ACCESS_KEY"),
        s3_secret_key=get_env_optional_str("S3_SECRET_KEY"),
        secret_key=get_env_str("SECRET_KEY", os.urandom(32).hex()),
        algorithm=get_env_str(
            "ALGORITHM",
            SecurityManager.DEFAULT_JWT_ALGORITHM,
            lambda algorithm: algorithm in get_default_algorithms(),
        ),
        access_token_expire_minutes=get_env_int(
            "ACCESS_TOKEN_EXPIRE_MINUTES",
            _MINUTES_IN_DAY,  # default 1 day
            lambda minutes: minutes > 0,
        ),
        password_min_length=get_env_int(
            "PASSWORD_MIN_LENGTH",
            _DEFAULT_PASSWORD_MIN_LENGTH,
            lambda length: length > 0,
        ),
    )

"""Tests for configuration loading."""

import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from dgisback.config import (
    AppConfig,
    configure_logging,
    get_env_int,
    get_env_str,
    load_config_from_env,
)

CONFIG_VARS = (
    "MONGO_URI",
    "MONGO_DATABASE",
    "REDIS_URL",
    "LOGGING_LEVEL",
    "S3_BUCKET",
    "S3_ENDPOINT_URL",
    "S3_REGION",
    "S3_ACCESS_KEY",
    "S3_SECRET_KEY",
    "SECRET_KEY",
    "ALGORITHM",
    "ACCESS_TOKEN_EXPIRE_MINUTES",
    "PASSWORD_MIN_LENGTH",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove every configuration variable from the environment."""
    for name in CONFIG_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    """Test the values used when nothing is configured."""
    config = load_config_from_env(None)

    assert config.mongo_uri == "mongodb://localhost:27017"
    assert config.mongo_database == "dgis"
    assert config.redis_url == "redis://localhost:6379/0"
    assert config.s3_endpoint_url is None
    assert config.algorithm == "HS256"
    assert config.access_token_expire_minutes == 60 * 24
    assert config.security_manager.expire_minutes == 60 * 24


def test_env_file_is_loaded(tmp_path: Path) -> None:
    """Test that values come from the env file."""
    env_file = tmp_path / ".env"
    env_file.write_text(
        "MONGO_URI=mongodb://mongo:27017\n"
        "MONGO_DATABASE=inspections\n"
        "S3_ENDPOINT_URL=http://minio:9000\n"
        "SECRET_KEY=" + "k" * 40 + "\n"
        "ACCESS_TOKEN_EXPIRE_MINUTES=15\n",
    )

    with patch.dict(os.environ):
        config = load_config_from_env(env_file)

    assert config.mongo_uri == "mongodb://mongo:27017"
    assert config.mongo_database == "inspections"
    assert config.s3_endpoint_url == "http://minio:9000"
    assert config.security_manager.secret_key == "k" * 40
    assert config.security_manager.expire_minutes == 15


def test_invalid_values_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test validation of integer and algorithm variables."""
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MINUTES", "soon")
    with pytest.raises(ValueError, match="must be an integer"):
        load_config_from_env(None)

    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MINUTES", "0")
    with pytest.raises(ValueError, match="invalid value"):
        load_config_from_env(None)

    monkeypatch.delenv("ACCESS_TOKEN_EXPIRE_MINUTES")
    monkeypatch.setenv("ALGORITHM", "ROT13")
    with pytest.raises(ValueError, match="ALGORITHM"):
        load_config_from_env(None)


def test_env_helpers(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test the individual environment helpers."""
    monkeypatch.setenv("SOME_NUMBER", "42")

    assert get_env_int("SOME_NUMBER", 1) == 42
    assert get_env_int("MISSING_NUMBER", 7) == 7
    assert get_env_str("MISSING_STRING", "fallback") == "fallback"
    with pytest.raises(ValueError, match="is required"):
        get_env_str("MISSING_STRING", None)


def test_configure_logging_invalid_level(
    app_config: AppConfig,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Test that an unknown level falls back to INFO with a warning."""
    app_config.logging_level = "LOUD"

    with caplog.at_level(logging.WARNING):
        configure_logging(app_config)

    assert "Invalid log level: LOUD" in caplog.text

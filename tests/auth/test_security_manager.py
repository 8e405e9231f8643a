"""Tests for access tokens and credential prompts."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import jwt
import pytest
from bson import ObjectId

from dgisback.auth import CallerIdentity, SecurityManager
from dgisback.common import Role
from dgisback.models import User

TEST_SECRET_KEY = "s" * 64


@pytest.fixture
def security_manager() -> SecurityManager:
    """Create a manager with a fixed secret."""
    return SecurityManager(secret_key=TEST_SECRET_KEY, expire_minutes=5)


@pytest.fixture
def user() -> User:
    """Create a persisted-looking user."""
    return User(
        id=ObjectId(),
        login="starosta",
        role=Role.STAROSTA,
        full_name="Ivan Petrov",
    )


def test_token_round_trip(security_manager: SecurityManager, user: User) -> None:
    """Test that a fresh token resolves to the caller identity."""
    token = security_manager.create_access_token(user)

    identity = security_manager.verify_token(token)

    assert identity == CallerIdentity(
        user_id=str(user.id),
        login="starosta",
        role=Role.STAROSTA,
        full_name="Ivan Petrov",
    )
    assert identity.has_higher_role(Role.SUPERVISOR)
    assert not identity.has_equal_or_higher_role(Role.DGIS)


def test_rejects_foreign_and_expired_tokens(
    security_manager: SecurityManager,
    user: User,
) -> None:
    """Test tokens signed elsewhere, expired or of the wrong type."""
    other = SecurityManager(secret_key="o" * 64)
    assert security_manager.verify_token(other.create_access_token(user)) is None
    assert security_manager.verify_token("not-a-token") is None

    past = datetime.now(UTC) - timedelta(hours=1)
    expired = jwt.encode(
        {
            "sub": str(user.id),
            "login": user.login,
            "role": str(user.role),
            "exp": past,
            "type": "access_token",
        },
        TEST_SECRET_KEY,
        algorithm="HS256",
    )
    assert security_manager.verify_token(expired) is None

    refresh = jwt.encode(
        {"sub": str(user.id), "login": user.login, "role": str(user.role), "type": "refresh"},
        TEST_SECRET_KEY,
        algorithm="HS256",
    )
    assert security_manager.verify_token(refresh) is None


def test_rejects_unknown_role(security_manager: SecurityManager, user: User) -> None:
    """Test that a validly signed token with an unknown role is refused."""
    token = jwt.encode(
        {"sub": str(user.id), "login": user.login, "role": "Гость", "type": "access_token"},
        TEST_SECRET_KEY,
        algorithm="HS256",
    )

    assert security_manager.verify_token(token) is None


def test_short_secret_is_replaced() -> None:
    """Test that a missing or short secret is regenerated."""
    assert len(SecurityManager(secret_key="short").secret_key) >= (
        SecurityManager.MINIMUM_JWT_SECRET_KEY_LENGTH
    )
    assert SecurityManager().secret_key is not None


def test_validate_password(security_manager: SecurityManager) -> None:
    """Test the minimum length rule."""
    assert security_manager.validate_password("long-enough") is None
    assert "at least 8" in security_manager.validate_password("short")


def test_prompt_owner_credentials(security_manager: SecurityManager) -> None:
    """Test that the prompt retries until passwords are valid and match."""
    with (
        patch("builtins.input", return_value="chair"),
        patch(
            "getpass.getpass",
            side_effect=["short", "long-password", "different", "long-password", "long-password"],
        ),
    ):
        assert security_manager.prompt_owner_credentials() == ("chair", "long-password")

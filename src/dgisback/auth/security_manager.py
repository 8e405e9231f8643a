"""JWT access tokens and interactive owner credential prompts.

Tokens resolve to a CallerIdentity before any service operation runs; the
services themselves trust the identity they are given.
"""

from __future__ import annotations

import getpass
import logging
import os
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import jwt

from dgisback.common import Role
from dgisback.store import is_valid_object_id

if TYPE_CHECKING:
    from dgisback.models import User

LOGGER = logging.getLogger(__name__)

_TOKEN_TYPE = "access_token"


@dataclass(frozen=True)
class CallerIdentity:
    """The authenticated caller of an operation.

    :param user_id: Hex identifier of the user
    :param login: The user's login
    :param role: The user's role
    :param full_name: Display name carried in the token
    """

    user_id: str
    login: str
    role: Role
    full_name: str = ""

    def has_higher_role(self, target: Role | str) -> bool:
        return self.role.has_higher_role(target)

    def has_equal_or_higher_role(self, target: Role | str) -> bool:
        return self.role.has_equal_or_higher_role(target)


@dataclass
class SecurityManager:
    """Manager for token signing and validation.

    :param str secret_key: Secret key for JWT signing (generated if not provided)
    :param str algorithm: JWT signing algorithm
    :param int expire_minutes: Token expiration time in minutes
    :param int password_min_length: Minimum length for prompted passwords
    """

    DEFAULT_JWT_ALGORITHM = "HS256"
    DEFAULT_TOKEN_EXPIRE_MINUTES = 60 * 24
    DEFAULT_PASSWORD_MIN_LENGTH = 8
    MINIMUM_JWT_SECRET_KEY_LENGTH = 32

    secret_key: str | None = None
    algorithm: str = DEFAULT_JWT_ALGORITHM
    expire_minutes: int = DEFAULT_TOKEN_EXPIRE_MINUTES
    password_min_length: int = DEFAULT_PASSWORD_MIN_LENGTH

    def __post_init__(self) -> None:
        """Generate secret key if not provided."""
        if (
            self.secret_key is None
            or len(self.secret_key) < self.MINIMUM_JWT_SECRET_KEY_LENGTH
        ):
            LOGGER.warning("No usable secret key configured, generating one")
            self.secret_key = os.urandom(64).hex()

    def validate_password(self, password: str) -> str | None:
        """Validate a password against the configured minimum length.

        :return: An error message if the password is too short, None otherwise
        """
        if len(password) >= self.password_min_length:
            return None

        return f"Password must be at least {self.password_min_length} characters long"

    def prompt_owner_credentials(self) -> tuple[str, str]:
        """Prompt for the Chairman account credentials in the CLI.

        :return: A tuple of (login, password)
        """
        login = ""
        while not login:
            login = input("Chairman login: ").strip()
        return login, self._prompt_new_password()

    def _prompt_new_password(self) -> str:
        """Ask until a password passes validation and is typed twice."""
        while True:
            password = getpass.getpass("Chairman password: ")
            problem = self.validate_password(password)
            if problem is not None:
                print(problem)
            elif getpass.getpass("Repeat password: ") != password:
                print("Passwords differ, try again.")
            else:
                return password

    def create_access_token(self, user: User) -> str:
        """Create a new JWT access token for a persisted user.

        :param User user: The user for whom to create the token
        :return: A JWT access token as a string
        """
        now = datetime.now(UTC)
        payload = {
            "sub": str(user.document_id()),
            "login": user.login,
            "role": str(user.role),
            "full_name": user.full_name,
            "iat": now,
            "nbf": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
            "type": _TOKEN_TYPE,
        }

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> CallerIdentity | None:
        """Verify and decode a JWT token.

        :param token: The JWT token string to verify
        :return: The caller identity if the token is valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
            )
        except jwt.ExpiredSignatureError:
            LOGGER.debug("Rejected expired token")
            return None
        except jwt.InvalidTokenError:
            LOGGER.debug("Rejected invalid token")
            return None

        if payload.get("type") != _TOKEN_TYPE:
            return None

        user_id = payload.get("sub")
        login = payload.get("login")
        role = payload.get("role")

        if not is_valid_object_id(user_id) or login is None:
            return None
        if not Role.is_valid(role):
            return None

        return CallerIdentity(
            user_id=user_id,
            login=login,
            role=Role(role),
            full_name=payload.get("full_name", ""),
        )

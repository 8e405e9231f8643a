"""User directory: account CRUD and password handling.

Using the UserDirectory class as a repository for
user-related queries.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from bcrypt import checkpw, gensalt, hashpw
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from dgisback.common import Role
from dgisback.errors import (
    DuplicateKeyError,
    HashingError,
    InvalidArgumentError,
    NotFoundError,
    StoreWriteError,
)
from dgisback.models import User
from dgisback.store import Repository, UpdateBuilder, parse_object_id

if TYPE_CHECKING:
    from bson import ObjectId
    from motor.motor_asyncio import AsyncIOMotorDatabase

LOGGER = logging.getLogger(__name__)

USERS_COLLECTION = "users"


def hash_password(password: str) -> str:
    """Hash a plaintext password with a fresh bcrypt salt.

    :raises HashingError: If bcrypt refuses the input
    """
    try:
        return hashpw(password.encode(), gensalt()).decode()
    except (ValueError, TypeError) as e:
        msg = "failed to hash password"
        raise HashingError(msg) from e


def check_password(hashed_password: str, candidate: str) -> bool:
    """Compare a candidate password with a stored bcrypt hash.

    Never raises; a malformed hash simply does not match.
    """
    try:
        return checkpw(candidate.encode(), hashed_password.encode())
    except (ValueError, TypeError):
        return False


class UserDirectory:
    """Repository for user accounts."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        """Create a UserDirectory over the given database.

        :param database: Motor database holding the users collection
        """
        self.users = Repository(database[USERS_COLLECTION], User, "user")

    async def ensure_indexes(
        self,
        owner_credentials: tuple[str, str] | None = None,
    ) -> None:
        """Create the unique login index and optionally seed a chairman.

        :param owner_credentials: Optional (login, password) tuple. If the
            directory has no users and credentials are provided, a Chairman
            account is created. Without credentials a warning is logged.
        """
        try:
            await self.users.collection.create_index(
                [("login", ASCENDING)],
                unique=True,
            )
        except PyMongoError as e:
            msg = "failed to create user indexes"
            raise StoreWriteError(msg) from e

        if await self.users.count() != 0:
            return

        if owner_credentials is None:
            LOGGER.warning(
                "No users found in database and no chairman credentials "
                "provided. The directory starts without an administrator.",
            )
            return

        login, password = owner_credentials
        await self.create(User(login=login, role=Role.CHAIRMAN), password)
        LOGGER.info(
            "No users found in database; created default chairman account "
            "with login '%s'",
            login,
        )

    async def count_users(self) -> int:
        return await self.users.count()

    async def get_by_login(self, login: str) -> User:
        """Return the user with the given login.

        :raises NotFoundError: If no user has that login
        """
        return await self.users.get({"login": login}, login)

    async def get_by_id(self, user_id: ObjectId | str) -> User:
        """Return the user with the given identifier.

        :raises NotFoundError: If the user does not exist
        :raises InvalidArgumentError: If the identifier is malformed
        """
        return await self.users.get_by_id(parse_object_id(user_id))

    async def list_users(self) -> list[User]:
        return await self.users.find_many()

    async def find_users(self, query: dict[str, Any]) -> list[User]:
        """Return every user matching an arbitrary filter."""
        return await self.users.find_many(query)

    async def create(self, user: User, password: str) -> User:
        """Create a new account from a user and its plaintext password.

        :param user: The account to create; its ``password`` field is ignored
        :param password: Plaintext password, stored only as a bcrypt hash
        :return: The persisted user with its identifier
        :raises DuplicateKeyError: If the login is already taken
        :raises HashingError: If the password could not be hashed
        """
        if await self.users.exists({"login": user.login}):
            msg = f"login {user.login} already exists"
            raise DuplicateKeyError(msg)

        user.password = hash_password(password)
        now = datetime.now(UTC)
        user.created_at = now
        user.updated_at = now

        created = await self.users.insert_one(user)
        LOGGER.info("Created user %s with ID %s", created.login, created.id)
        return created

    async def authenticate(self, login: str, password: str) -> User | None:
        """Return the user if the login and password match, None otherwise."""
        user = await self.users.find_one({"login": login})
        if user is None:
            return None
        if not check_password(user.password, password):
            LOGGER.debug("Password mismatch for login %s", login)
            return None
        return user

    def check_password(self, hashed_password: str, candidate: str) -> bool:
        return check_password(hashed_password, candidate)

    async def update(self, user_id: ObjectId | str, fields: dict[str, Any]) -> User:
        """Merge a partial set of fields into a user and stamp ``updated_at``.

        Role transitions are not checked here; only the role value itself.

        :param user_id: The user to update
        :param fields: Stored field names mapped to their new values
        :return: The updated user
        :raises InvalidArgumentError: For an unknown role or a password field
        :raises DuplicateKeyError: If the new login is already taken
        :raises NotFoundError: If the user does not exist
        """
        object_id = parse_object_id(user_id)
        if "password" in fields:
            msg = "use change_password to update passwords"
            raise InvalidArgumentError(msg)
        if "role" in fields and not Role.is_valid(fields["role"]):
            msg = f"invalid role: {fields['role']!r}"
            raise InvalidArgumentError(msg)

        update = (
            UpdateBuilder()
            .set_many(fields)
            .set("updated_at", datetime.now(UTC))
            .build()
        )
        if not await self.users.update_by_id(object_id, update):
            raise NotFoundError("user", object_id)
        return await self.users.get_by_id(object_id)

    async def change_password(self, user_id: ObjectId | str, new_password: str) -> None:
        """Replace a user's password hash.

        Existing tokens stay valid until they expire.
        """
        object_id = parse_object_id(user_id)
        update = (
            UpdateBuilder()
            .set("password", hash_password(new_password))
            .set("updated_at", datetime.now(UTC))
            .build()
        )
        if not await self.users.update_by_id(object_id, update):
            raise NotFoundError("user", object_id)
        LOGGER.info("Changed password for user %s", object_id)

    async def delete(self, user_id: ObjectId | str) -> None:
        """Delete a user account.

        :raises NotFoundError: If nothing was deleted
        """
        object_id = parse_object_id(user_id)
        if not await self.users.delete_by_id(object_id):
            raise NotFoundError("user", object_id)
        LOGGER.info("Deleted user %s", object_id)

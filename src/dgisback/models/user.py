"""User account model."""

from datetime import datetime

from bson import ObjectId
from pydantic import Field

from dgisback.common import Role
from dgisback.store import Document


class User(Document):
    """A user account.

    ``password`` holds the bcrypt hash, never the plaintext. ``building`` is
    the label of the last assigned marker, kept in sync by marker assignment.
    """

    login: str
    password: str = Field(default="", repr=False)
    role: Role
    full_name: str = ""
    building: str | None = None
    phone_number: str = ""
    telegram_tag: str = ""
    assigned_markers: list[ObjectId] = Field(
        default_factory=list,
        alias="assignedMarkers",
    )
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def has_higher_role(self, target: Role | str) -> bool:
        """Check if the user's role strictly outranks the target role."""
        return self.role.has_higher_role(target)

    def has_equal_or_higher_role(self, target: Role | str) -> bool:
        return self.role.has_equal_or_higher_role(target)

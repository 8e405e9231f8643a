"""Map marker model."""

from bson import ObjectId
from pydantic import Field

from dgisback.store import Document

from .user import User


class Marker(Document):
    """A physical location on the map with its assigned users.

    ``users`` is only populated by joins and is never stored.
    """

    marker_id: str = Field(alias="markerId")
    position: list[float] = Field(default_factory=list)
    label: str = ""
    assigned_user_ids: list[ObjectId] = Field(
        default_factory=list,
        alias="assignedUserIds",
    )
    users: list[User] = Field(default_factory=list, exclude=True)

"""Assignment of users to map markers.

``Marker.assigned_user_ids`` and ``User.assigned_markers`` are mutual
inverses, and ``User.building`` mirrors the label of the user's current
marker. Both sides are written one after the other without a transaction:
if the second write fails the first one stays applied. Every write uses set
semantics, so repeating an operation converges to the complete state.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from dgisback.models import Marker, User
from dgisback.store import Repository, UpdateBuilder, parse_object_id

from .users import USERS_COLLECTION

if TYPE_CHECKING:
    from bson import ObjectId
    from motor.motor_asyncio import AsyncIOMotorDatabase

LOGGER = logging.getLogger(__name__)

MARKERS_COLLECTION = "markers"


class MarkerAssignment:
    """Marker queries and user-to-marker assignment."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self.markers = Repository(database[MARKERS_COLLECTION], Marker, "marker")
        self.users = Repository(database[USERS_COLLECTION], User, "user")

    async def create_marker(self, marker: Marker) -> Marker:
        created = await self.markers.insert_one(marker)
        LOGGER.info("Created marker %s (%s)", created.marker_id, created.id)
        return created

    async def get_marker(self, marker_id: ObjectId | str) -> Marker:
        """Return a marker by its store identifier.

        :raises NotFoundError: If the marker does not exist
        """
        return await self.markers.get_by_id(parse_object_id(marker_id))

    async def get_marker_by_marker_id(self, marker_id: str) -> Marker:
        """Return a marker by its public ``markerId`` value."""
        return await self.markers.get({"markerId": marker_id}, marker_id)

    async def list_markers(self) -> list[Marker]:
        return await self.markers.find_many()

    async def get_all_markers_with_users(self) -> list[Marker]:
        """Return every marker with its assigned users populated.

        Users are fetched in one batch and attached in each marker's
        assignment order; dangling identifiers are skipped.
        """
        markers = await self.markers.find_many()
        user_ids = {
            user_id for marker in markers for user_id in marker.assigned_user_ids
        }
        if not user_ids:
            return markers

        users = await self.users.find_many({"_id": {"$in": list(user_ids)}})
        users_by_id = {user.id: user for user in users}
        for marker in markers:
            marker.users = [
                users_by_id[user_id]
                for user_id in marker.assigned_user_ids
                if user_id in users_by_id
            ]
        LOGGER.debug("Joined %d users onto %d markers", len(users), len(markers))
        return markers

    async def assign_user_to_marker(
        self,
        user_id: ObjectId | str,
        marker_id: ObjectId | str,
    ) -> None:
        """Link a user and a marker, making the marker's label the building.

        Re-assigning an existing pair only refreshes the building.

        :raises NotFoundError: If the user or the marker does not exist
        """
        user_oid = parse_object_id(user_id)
        marker_oid = parse_object_id(marker_id)
        marker = await self.markers.get_by_id(marker_oid)
        await self.users.get_by_id(user_oid)

        await self.markers.update_by_id(
            marker_oid,
            UpdateBuilder().add_to_set("assignedUserIds", user_oid).build(),
        )
        await self.users.update_by_id(
            user_oid,
            UpdateBuilder()
            .add_to_set("assignedMarkers", marker_oid)
            .set("building", marker.label)
            .set("updated_at", datetime.now(UTC))
            .build(),
        )
        LOGGER.info("Assigned user %s to marker %s", user_oid, marker_oid)

    async def remove_user_from_marker(
        self,
        user_id: ObjectId | str,
        marker_id: ObjectId | str,
    ) -> None:
        """Unlink a user and a marker and recompute the user's building.

        The building becomes the label of the remaining marker with the
        lowest identifier, or None when no marker remains.

        :raises NotFoundError: If the user or the marker does not exist
        """
        user_oid = parse_object_id(user_id)
        marker_oid = parse_object_id(marker_id)
        await self.markers.get_by_id(marker_oid)
        await self.users.get_by_id(user_oid)

        await self.markers.update_by_id(
            marker_oid,
            UpdateBuilder().pull("assignedUserIds", user_oid).build(),
        )
        await self.users.update_by_id(
            user_oid,
            UpdateBuilder().pull("assignedMarkers", marker_oid).build(),
        )

        user = await self.users.get_by_id(user_oid)
        building = await self._building_for(user)
        await self.users.update_by_id(
            user_oid,
            UpdateBuilder()
            .set("building", building)
            .set("updated_at", datetime.now(UTC))
            .build(),
        )
        LOGGER.info(
            "Removed user %s from marker %s, building now %s",
            user_oid,
            marker_oid,
            building,
        )

    async def _building_for(self, user: User) -> str | None:
        if not user.assigned_markers:
            return None
        remaining = await self.markers.find_many(
            {"_id": {"$in": user.assigned_markers}},
        )
        if not remaining:
            return None
        return min(remaining, key=lambda marker: marker.id).label

    async def clear_all_users_from_marker(self, marker_id: ObjectId | str) -> None:
        """Remove every user from a marker and null their building.

        :raises NotFoundError: If the marker does not exist
        """
        marker_oid = parse_object_id(marker_id)
        marker = await self.markers.get_by_id(marker_oid)

        if marker.assigned_user_ids:
            await self.users.update_many(
                {"_id": {"$in": marker.assigned_user_ids}},
                UpdateBuilder()
                .pull("assignedMarkers", marker_oid)
                .set("building", None)
                .set("updated_at", datetime.now(UTC))
                .build(),
            )

        await self.markers.update_by_id(
            marker_oid,
            UpdateBuilder().set("assignedUserIds", []).build(),
        )
        LOGGER.info(
            "Cleared %d users from marker %s",
            len(marker.assigned_user_ids),
            marker_oid,
        )

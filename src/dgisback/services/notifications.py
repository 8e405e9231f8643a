"""Notification templates, per-recipient fan-out and read state.

**Lifecycle of a delivery record:**

1. **Fan-out**: one ``UNREAD`` record per recipient, never for the sender
2. **Read**: ``UNREAD`` -> ``READ`` with ``readAt`` stamped once
3. **Delete**: the record is removed from either state

Every change to a user's records publishes a change event on that user's
channel so real-time consumers re-query the unread count. Publishing is best
effort: a failed publish is logged and never fails the operation, clients
fall back to polling.

**Example Usage:**

.. code-block:: python

    notification = await engine.send_notification(
        NotificationType.GENERAL, "Inspection", "Due Friday", sender_id, [a, b],
    )
    async for count in engine.watch_unread_count(a):
        print(count)
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from dgisback.errors import InvalidArgumentError, NotFoundError, StoreWriteError
from dgisback.models import (
    Notification,
    NotificationStatus,
    NotificationType,
    UserNotification,
)
from dgisback.store import Repository, UpdateBuilder, parse_object_id

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

    from bson import ObjectId
    from motor.motor_asyncio import AsyncIOMotorDatabase

    from dgisback.events import ChangePublisher

LOGGER = logging.getLogger(__name__)

NOTIFICATIONS_COLLECTION = "notifications"
USER_NOTIFICATIONS_COLLECTION = "user_notifications"


class NotificationEngine:
    """Creates, delivers and tracks notifications."""

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        publisher: ChangePublisher,
    ) -> None:
        """Create the engine.

        :param database: Motor database holding both notification collections
        :param publisher: Publisher for per-user change events
        """
        self.notifications = Repository(
            database[NOTIFICATIONS_COLLECTION],
            Notification,
            "notification",
        )
        self.user_notifications = Repository(
            database[USER_NOTIFICATIONS_COLLECTION],
            UserNotification,
            "user notification",
        )
        self.publisher = publisher

    async def ensure_indexes(self) -> None:
        """Index delivery records for per-user listing and unread counts."""
        try:
            await self.user_notifications.collection.create_index(
                [("userId", 1), ("status", 1), ("createdAt", DESCENDING)],
            )
        except PyMongoError as e:
            msg = "failed to create notification indexes"
            raise StoreWriteError(msg) from e

    async def create_notification(
        self,
        notification_type: NotificationType | str,
        title: str,
        message: str,
        sender_id: ObjectId | str,
        recipient_ids: Iterable[ObjectId | str] | None = None,
    ) -> Notification:
        """Persist an immutable notification template, without fan-out.

        :return: The stored template with its identifier
        :raises InvalidArgumentError: For an unknown type or bad identifier
        """
        notification = Notification(
            type=_notification_type(notification_type),
            title=title,
            message=message,
            sender_id=parse_object_id(sender_id),
            recipient_ids=(
                None
                if recipient_ids is None
                else [parse_object_id(user_id) for user_id in recipient_ids]
            ),
            created_at=datetime.now(UTC),
        )
        created = await self.notifications.insert_one(notification)
        LOGGER.info("Created notification %s (Title: '%s')", created.id, created.title)
        return created

    async def fan_out(
        self,
        notification_id: ObjectId | str,
        recipient_ids: Iterable[ObjectId | str],
        sender_id: ObjectId | str,
    ) -> list[UserNotification]:
        """Create one unread delivery record per recipient except the sender.

        Publishes one change event per recipient once the records are
        stored. Nothing is written or published when no recipient remains.

        :return: The created delivery records
        """
        notification_oid = parse_object_id(notification_id)
        sender_oid = parse_object_id(sender_id)
        recipients = _without_sender(recipient_ids, sender_oid)
        if not recipients:
            LOGGER.info(
                "No valid recipients for notification %s after filtering sender",
                notification_oid,
            )
            return []

        created_at = datetime.now(UTC)
        records = [
            UserNotification(
                user_id=user_id,
                notification_id=notification_oid,
                status=NotificationStatus.UNREAD,
                created_at=created_at,
            )
            for user_id in recipients
        ]
        await self.user_notifications.insert_many(records)

        for user_id in recipients:
            await self.publish_change(user_id)

        LOGGER.info(
            "Created %d user notifications for notification %s",
            len(records),
            notification_oid,
        )
        return records

    async def send_notification(
        self,
        notification_type: NotificationType | str,
        title: str,
        message: str,
        sender_id: ObjectId | str,
        recipient_ids: Iterable[ObjectId | str],
    ) -> Notification:
        """Create a template and fan it out to its recipients.

        If the fan-out fails the template stays stored without delivery
        records.
        """
        recipients = list(recipient_ids)
        notification = await self.create_notification(
            notification_type,
            title,
            message,
            sender_id,
            recipients,
        )
        await self.fan_out(notification.document_id(), recipients, sender_id)
        return notification

    async def get_notification(self, notification_id: ObjectId | str) -> Notification:
        return await self.notifications.get_by_id(parse_object_id(notification_id))

    async def get_user_notification(
        self,
        user_notification_id: ObjectId | str,
    ) -> UserNotification:
        return await self.user_notifications.get_by_id(
            parse_object_id(user_notification_id),
        )

    async def get_user_notification_with_details(
        self,
        user_notification_id: ObjectId | str,
    ) -> tuple[UserNotification, Notification]:
        """Return a delivery record together with its template."""
        record = await self.get_user_notification(user_notification_id)
        notification = await self.get_notification(record.notification_id)
        return record, notification

    async def list_for_user(
        self,
        user_id: ObjectId | str,
        statuses: Iterable[NotificationStatus | str] | None = None,
        limit: int = 0,
        offset: int = 0,
    ) -> list[UserNotification]:
        """List a user's delivery records, newest first.

        :param user_id: Owner of the records
        :param statuses: Only return records in one of these statuses
        :param limit: Page size, unbounded when <= 0
        :param offset: Records to skip, none when <= 0
        """
        query: dict[str, object] = {"userId": parse_object_id(user_id)}
        wanted = [_notification_status(status) for status in statuses or ()]
        if wanted:
            query["status"] = {"$in": wanted}

        return await self.user_notifications.find_many(
            query,
            sort=[("createdAt", DESCENDING)],
            skip=offset,
            limit=limit,
        )

    async def get_unread_count(self, user_id: ObjectId | str) -> int:
        return await self.user_notifications.count(
            {"userId": parse_object_id(user_id), "status": NotificationStatus.UNREAD},
        )

    async def mark_as_read(self, user_notification_id: ObjectId | str) -> None:
        """Mark a delivery record as read and notify its owner.

        Already read records are left untouched and publish nothing.

        :raises NotFoundError: If the record does not exist
        """
        record_oid = parse_object_id(user_notification_id)
        record = await self.user_notifications.get_by_id(record_oid)
        if record.status == NotificationStatus.READ:
            LOGGER.debug("User notification %s is already read", record_oid)
            return

        update = (
            UpdateBuilder()
            .set("status", NotificationStatus.READ)
            .set("readAt", datetime.now(UTC))
            .build()
        )
        if not await self.user_notifications.update_by_id(record_oid, update):
            raise NotFoundError("user notification", record_oid)

        await self.publish_change(record.user_id)
        LOGGER.info(
            "Marked user notification %s as read for user %s",
            record_oid,
            record.user_id,
        )

    async def delete(self, user_notification_id: ObjectId | str) -> None:
        """Delete a delivery record and notify its owner.

        :raises NotFoundError: If the record does not exist
        """
        record_oid = parse_object_id(user_notification_id)
        record = await self.user_notifications.get_by_id(record_oid)

        if not await self.user_notifications.delete_by_id(record_oid):
            raise NotFoundError("user notification", record_oid)

        await self.publish_change(record.user_id)
        LOGGER.info(
            "Deleted user notification %s for user %s",
            record_oid,
            record.user_id,
        )

    async def publish_change(self, user_id: ObjectId | str) -> None:
        """Signal subscribers of a user to re-fetch the unread count."""
        await self.publisher.publish_change(user_id)

    async def watch_unread_count(self, user_id: ObjectId | str) -> AsyncIterator[int]:
        """Yield the current unread count, then a fresh one after each event.

        The count is always re-queried; event payloads are ignored.
        """
        user_oid = parse_object_id(user_id)
        yield await self.get_unread_count(user_oid)
        async for _ in self.publisher.subscribe(user_oid):
            yield await self.get_unread_count(user_oid)


def _without_sender(
    recipient_ids: Iterable[ObjectId | str],
    sender_id: ObjectId,
) -> list[ObjectId]:
    recipients = []
    for user_id in recipient_ids:
        user_oid = parse_object_id(user_id)
        if user_oid != sender_id and user_oid not in recipients:
            recipients.append(user_oid)
    return recipients


def _notification_type(value: NotificationType | str) -> NotificationType:
    try:
        return NotificationType(value)
    except ValueError as e:
        msg = f"invalid notification type: {value!r}"
        raise InvalidArgumentError(msg) from e


def _notification_status(value: NotificationStatus | str) -> NotificationStatus:
    try:
        return NotificationStatus(value)
    except ValueError as e:
        msg = f"invalid notification status: {value!r}"
        raise InvalidArgumentError(msg) from e

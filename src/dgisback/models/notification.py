"""Notification templates and per-recipient delivery records."""

from datetime import datetime
from enum import StrEnum

from bson import ObjectId
from pydantic import Field

from dgisback.store import Document


class NotificationType(StrEnum):
    GENERAL = "GENERAL"
    PERSONAL = "PERSONAL"
    SYSTEM = "SYSTEM"
    ASSIGNMENT = "ASSIGNMENT"


class NotificationStatus(StrEnum):
    """Status of a notification for one recipient.

    ``ARCHIVED`` is part of the stored vocabulary but no operation sets it.
    """

    UNREAD = "UNREAD"
    READ = "READ"
    ARCHIVED = "ARCHIVED"


class Notification(Document):
    """Shared, immutable notification template."""

    type: NotificationType
    title: str
    message: str
    sender_id: ObjectId = Field(alias="senderId")
    recipient_ids: list[ObjectId] | None = Field(default=None, alias="recipientIds")
    created_at: datetime | None = Field(default=None, alias="createdAt")


class UserNotification(Document):
    """Delivery record of one notification for one recipient."""

    user_id: ObjectId = Field(alias="userId")
    notification_id: ObjectId = Field(alias="notificationId")
    status: NotificationStatus = NotificationStatus.UNREAD
    read_at: datetime | None = Field(default=None, alias="readAt")
    created_at: datetime | None = Field(default=None, alias="createdAt")

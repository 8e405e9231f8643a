"""Persisted entity models."""

from .marker import Marker
from .notification import (
    Notification,
    NotificationStatus,
    NotificationType,
    UserNotification,
)
from .report import ImageKind, Rating, ReportStatus, WeeklyReport
from .user import User

__all__ = [
    "ImageKind",
    "Marker",
    "Notification",
    "NotificationStatus",
    "NotificationType",
    "Rating",
    "ReportStatus",
    "User",
    "UserNotification",
    "WeeklyReport",
]

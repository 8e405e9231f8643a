"""Business services over the document store."""

from .markers import MarkerAssignment
from .notifications import NotificationEngine
from .reports import ReportWorkflow
from .users import UserDirectory, check_password, hash_password

__all__ = [
    "MarkerAssignment",
    "NotificationEngine",
    "ReportWorkflow",
    "UserDirectory",
    "check_password",
    "hash_password",
]

"""Real-time change events."""

from .publisher import CHANGE_PAYLOAD, CHANNEL_PREFIX, ChangePublisher, channel_for

__all__ = ["CHANGE_PAYLOAD", "CHANNEL_PREFIX", "ChangePublisher", "channel_for"]

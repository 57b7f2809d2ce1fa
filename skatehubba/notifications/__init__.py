"""Push notifications for game events."""

from .services import NotificationService

__all__ = ["NotificationService"]

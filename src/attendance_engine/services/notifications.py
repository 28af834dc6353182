"""Instructor notifications."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID


class NotificationRepository(Protocol):
    """Persistence interface for in-app notifications."""

    def create_notification(
        self, user_id: UUID, title: str, message: str, severity: str
    ) -> None:
        """Create an unread notification row."""


@dataclass
class NotificationService:
    """Service for notifying instructors."""

    repository: NotificationRepository

    def notify(self, user_id: UUID, title: str, message: str, severity: str) -> None:
        """Queue a notification for an instructor."""
        self.repository.create_notification(
            user_id=user_id, title=title, message=message, severity=severity
        )

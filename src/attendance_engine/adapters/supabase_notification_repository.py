"""Supabase repository for instructor notifications."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from attendance_engine.services.notifications import NotificationRepository


@dataclass
class SupabaseNotificationRepository(NotificationRepository):
    """Supabase-backed notification repository."""

    client: Client

    def create_notification(
        self, user_id: UUID, title: str, message: str, severity: str
    ) -> None:
        """Insert an unread notification."""
        self.client.table("notifications").insert(
            {
                "user_id": str(user_id),
                "title": title,
                "message": message,
                "type": severity,
                "read": False,
            }
        ).execute()

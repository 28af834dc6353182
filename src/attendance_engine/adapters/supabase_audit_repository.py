"""Supabase repository for audit events."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from attendance_engine.services.audit import AuditRepository


@dataclass
class SupabaseAuditRepository(AuditRepository):
    """Supabase-backed audit repository."""

    client: Client

    def create_event(
        self,
        actor_id: UUID | None,
        action: str,
        target_type: str,
        target_id: str,
        details: dict[str, object] | None,
    ) -> None:
        """Create an audit log row."""
        self.client.table("audit_logs").insert(
            {
                "actor_id": str(actor_id) if actor_id else None,
                "action": action,
                "target_type": target_type,
                "target_id": target_id,
                "details": details,
            }
        ).execute()

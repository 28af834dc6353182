"""Audit logging service."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

_logger = logging.getLogger(__name__)


class AuditRepository(Protocol):
    """Persistence interface for audit events."""

    def create_event(
        self,
        actor_id: UUID | None,
        action: str,
        target_type: str,
        target_id: str,
        details: dict[str, object] | None,
    ) -> None:
        """Create an audit event row."""


@dataclass
class AuditService:
    """Service for recording audit events."""

    repository: AuditRepository

    def record_event(
        self,
        actor_id: UUID | None,
        action: str,
        target_type: str,
        target_id: str,
        details: dict[str, object] | None = None,
    ) -> None:
        """Persist an audit event; a failed write is logged, not raised."""
        try:
            self.repository.create_event(
                actor_id=actor_id,
                action=action,
                target_type=target_type,
                target_id=target_id,
                details=details,
            )
        except Exception:
            _logger.exception(
                "Failed to record audit event",
                extra={"action": action, "target_id": target_id},
            )

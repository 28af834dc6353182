"""Time-boxed correction of attendance sessions."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID

from attendance_engine.domain.attendance import (
    ENTRY_METHODS,
    AttendanceSession,
    NewSession,
)
from attendance_engine.domain.errors import (
    CorrectionWindowExpired,
    InvalidRequest,
    SessionNotFound,
)
from attendance_engine.domain.models import ActorContext
from attendance_engine.services.audit import AuditService
from attendance_engine.services.ledger import SessionLedger

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class CorrectionManager:
    """Voids a recent session and inserts a linked replacement."""

    ledger: SessionLedger
    audit_service: AuditService
    window: timedelta = timedelta(minutes=5)
    clock: Callable[[], datetime] = field(default=_utc_now)

    def correct(
        self,
        corrects_session_id: UUID,
        actor: ActorContext,
        entry_method: str | None = None,
        close: bool = False,
    ) -> tuple[AttendanceSession, AttendanceSession]:
        """Replace a session checked in within the correction window."""
        original = self.ledger.get_session(corrects_session_id)
        if original is None:
            raise SessionNotFound("Session to correct was not found")
        if original.is_voided:
            raise InvalidRequest("Session has already been corrected")
        if entry_method is not None and entry_method not in ENTRY_METHODS:
            raise InvalidRequest(f"Unknown entry method: {entry_method}")

        now = self.clock()
        elapsed = now - original.check_in_at
        if elapsed > self.window:
            raise CorrectionWindowExpired(
                "Corrections are only accepted within "
                f"{int(self.window.total_seconds() // 60)} minutes of check-in"
            )

        replacement = NewSession(
            student_id=original.student_id,
            class_id=original.class_id,
            session_day=original.session_day,
            check_in_at=now,
            status=original.status,
            entry_method=entry_method or original.entry_method,
            check_out_at=now if close or not original.is_open else None,
            corrects_session_id=original.id,
        )
        voided, created = self.ledger.void_and_replace(original.id, replacement)
        _logger.info(
            "Corrected attendance session %s -> %s", voided.id, created.id
        )
        self.audit_service.record_event(
            actor_id=actor.actor_id,
            action="attendance_correction",
            target_type="attendance_log",
            target_id=str(original.id),
            details={
                "replacement_id": str(created.id),
                "elapsed_seconds": int(elapsed.total_seconds()),
                "privileged": actor.privileged,
            },
        )
        return voided, created

"""Notes on attendance sessions."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID

from attendance_engine.domain.attendance import (
    STATUS_ABSENT,
    STATUS_MANUALLY_VERIFIED,
    AttendanceSession,
)
from attendance_engine.domain.errors import (
    FrozenRecord,
    InvalidRequest,
    SessionNotFound,
)
from attendance_engine.domain.models import ActorContext
from attendance_engine.services.audit import AuditService
from attendance_engine.services.ledger import SessionLedger


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class AnnotationService:
    """Attaches notes, honoring the freeze on old records."""

    ledger: SessionLedger
    audit_service: AuditService
    frozen_after: timedelta = timedelta(hours=48)
    clock: Callable[[], datetime] = field(default=_utc_now)

    def annotate(
        self, session_id: UUID, note: str, actor: ActorContext
    ) -> AttendanceSession:
        """Attach a note; an instructor's note on an Absent marks it verified."""
        text = note.strip()
        if not text:
            raise InvalidRequest("Note must not be empty")
        session = self.ledger.get_session(session_id)
        if session is None:
            raise SessionNotFound("Attendance session not found")
        now = self.clock()
        if now - session.check_in_at > self.frozen_after and not actor.privileged:
            raise FrozenRecord(
                "Records older than "
                f"{int(self.frozen_after.total_seconds() // 3600)} hours are read-only"
            )

        status = session.status
        if status == STATUS_ABSENT and not actor.privileged:
            status = STATUS_MANUALLY_VERIFIED
        updated = self.ledger.annotate(
            session_id, note=text, note_by=actor.actor_id, note_at=now, status=status
        )
        self.audit_service.record_event(
            actor_id=actor.actor_id,
            action="attendance_note",
            target_type="attendance_log",
            target_id=str(session_id),
            details={"previous_status": session.status, "status": status},
        )
        return updated

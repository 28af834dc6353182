"""Supabase-backed attendance log repository."""

from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from attendance_engine.adapters.supabase_errors import UNIQUE_VIOLATION, storage_errors
from attendance_engine.domain.attendance import AttendanceSession, NewSession
from attendance_engine.domain.errors import DuplicateCheckIn
from attendance_engine.services.ledger import AttendanceRepository

_COLUMNS = (
    "id, student_id, class_id, session_day, timestamp, time_out, status, "
    "entry_method, is_correction, corrects_log_id, original_timestamp, "
    "admin_note, note_by, note_at"
)


@dataclass
class SupabaseAttendanceRepository(AttendanceRepository):
    """Supabase implementation for the attendance_logs table."""

    client: Client

    def get_session(self, session_id: UUID) -> AttendanceSession | None:
        """Return a session by id, if present."""
        with storage_errors("get_session"):
            response = (
                self.client.table("attendance_logs")
                .select(_COLUMNS)
                .eq("id", str(session_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def list_sessions(
        self, student_id: UUID, class_id: UUID, day: date
    ) -> list[AttendanceSession]:
        """Return non-voided sessions filed under a session day."""
        with storage_errors("list_sessions"):
            response = (
                self.client.table("attendance_logs")
                .select(_COLUMNS)
                .eq("student_id", str(student_id))
                .eq("class_id", str(class_id))
                .eq("is_correction", False)
                .eq("session_day", day.isoformat())
                .order("timestamp", desc=True)
                .execute()
            )
        return [_parse_session(row) for row in response.data or []]

    def insert_session(self, session: NewSession) -> AttendanceSession:
        """Insert a session row; a unique index violation means a lost race."""
        try:
            with storage_errors("insert_session"):
                response = (
                    self.client.table("attendance_logs")
                    .insert(_session_payload(session))
                    .execute()
                )
        except APIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise DuplicateCheckIn(
                    "Already checked in for this class today"
                ) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create attendance log")
        return _parse_session(response.data[0])

    def close_session(
        self, session_id: UUID, check_out_at: datetime, status: str
    ) -> AttendanceSession | None:
        """Set time_out only while it is still null."""
        with storage_errors("close_session"):
            response = (
                self.client.table("attendance_logs")
                .update(
                    {
                        "time_out": check_out_at.astimezone(UTC).isoformat(),
                        "status": status,
                    }
                )
                .eq("id", str(session_id))
                .is_("time_out", "null")
                .execute()
            )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def void_and_replace(
        self, original_id: UUID, replacement: NewSession
    ) -> tuple[AttendanceSession, AttendanceSession]:
        """Call the transactional void-and-replace function."""
        with storage_errors("void_and_replace"):
            response = self.client.rpc(
                "void_and_replace_attendance_log",
                {
                    "p_original_id": str(original_id),
                    "p_replacement": _session_payload(replacement),
                },
            ).execute()
        rows = [_parse_session(row) for row in response.data or []]
        voided = next((row for row in rows if row.id == original_id), None)
        created = next((row for row in rows if row.id != original_id), None)
        if voided is None or created is None:
            raise RuntimeError("Correction function returned an incomplete result")
        return voided, created

    def update_note(  # noqa: PLR0913
        self,
        session_id: UUID,
        note: str,
        note_by: UUID | None,
        note_at: datetime,
        status: str,
    ) -> AttendanceSession:
        """Store the admin note and status on a session."""
        with storage_errors("update_note"):
            response = (
                self.client.table("attendance_logs")
                .update(
                    {
                        "admin_note": note,
                        "note_by": str(note_by) if note_by else None,
                        "note_at": note_at.astimezone(UTC).isoformat(),
                        "status": status,
                    }
                )
                .eq("id", str(session_id))
                .execute()
            )
        if not response.data:
            raise RuntimeError("Failed to annotate attendance log")
        return _parse_session(response.data[0])


def _session_payload(session: NewSession) -> dict[str, object]:
    return {
        "student_id": str(session.student_id),
        "class_id": str(session.class_id),
        "session_day": session.session_day.isoformat(),
        "timestamp": session.check_in_at.astimezone(UTC).isoformat(),
        "time_out": (
            session.check_out_at.astimezone(UTC).isoformat()
            if session.check_out_at
            else None
        ),
        "status": session.status,
        "entry_method": session.entry_method,
        "corrects_log_id": (
            str(session.corrects_session_id) if session.corrects_session_id else None
        ),
    }


def _parse_timestamp(value: object) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(str(value))


def _parse_session(row: dict[str, object]) -> AttendanceSession:
    return AttendanceSession(
        id=UUID(str(row["id"])),
        student_id=UUID(str(row["student_id"])),
        class_id=UUID(str(row["class_id"])),
        session_day=date.fromisoformat(str(row["session_day"])),
        check_in_at=datetime.fromisoformat(str(row["timestamp"])),
        status=str(row.get("status") or "Present"),
        entry_method=str(row.get("entry_method") or "biometric"),
        check_out_at=_parse_timestamp(row.get("time_out")),
        is_correction=bool(row.get("is_correction")),
        corrects_session_id=(
            UUID(str(row["corrects_log_id"])) if row.get("corrects_log_id") else None
        ),
        original_check_in_at=_parse_timestamp(row.get("original_timestamp")),
        admin_note=row.get("admin_note"),
        note_by=UUID(str(row["note_by"])) if row.get("note_by") else None,
        note_at=_parse_timestamp(row.get("note_at")),
    )

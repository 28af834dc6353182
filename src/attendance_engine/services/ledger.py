"""Day-scoped session ledger on top of the attendance repository."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol, TypeVar
from uuid import UUID
from zoneinfo import ZoneInfo

from attendance_engine.domain.attendance import AttendanceSession, NewSession
from attendance_engine.domain.errors import (
    DuplicateCheckIn,
    NoOpenSession,
    SessionNotFound,
    TransientStorageError,
)
from attendance_engine.services.grading import local_day

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class AttendanceRepository(Protocol):
    """Persistence interface for attendance sessions."""

    def get_session(self, session_id: UUID) -> AttendanceSession | None:
        """Return a session by id, if present."""

    def list_sessions(
        self, student_id: UUID, class_id: UUID, day: date
    ) -> list[AttendanceSession]:
        """Return non-voided sessions filed under a session day, newest first."""

    def insert_session(self, session: NewSession) -> AttendanceSession:
        """Insert a session; raise DuplicateCheckIn on a uniqueness conflict."""

    def close_session(
        self, session_id: UUID, check_out_at: datetime, status: str
    ) -> AttendanceSession | None:
        """Close a session only if still open; return None when nothing changed."""

    def void_and_replace(
        self, original_id: UUID, replacement: NewSession
    ) -> tuple[AttendanceSession, AttendanceSession]:
        """Void the original and insert the replacement in one transaction."""

    def update_note(  # noqa: PLR0913
        self,
        session_id: UUID,
        note: str,
        note_by: UUID | None,
        note_at: datetime,
        status: str,
    ) -> AttendanceSession:
        """Attach a note to a session and store its (possibly new) status."""


@dataclass
class SessionLedger:
    """Append/update-only store of per-student, per-class, per-day sessions."""

    repository: AttendanceRepository
    timezone: ZoneInfo
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.2

    def day_of(self, at: datetime) -> date:
        """Return the ledger day for a timestamp."""
        return local_day(at, self.timezone)

    def get_session(self, session_id: UUID) -> AttendanceSession | None:
        """Return a session by id."""
        return self._call_with_retry(
            lambda: self.repository.get_session(session_id), action="get_session"
        )

    def find_open_session(
        self, student_id: UUID, class_id: UUID, day: date
    ) -> AttendanceSession | None:
        """Return the most recent open session for the key, if any."""
        for session in self._sessions_for_day(student_id, class_id, day):
            if session.is_open:
                return session
        return None

    def has_any_session(self, student_id: UUID, class_id: UUID, day: date) -> bool:
        """Return true if the key already has an open or closed session."""
        return bool(self._sessions_for_day(student_id, class_id, day))

    def create_check_in(  # noqa: PLR0913
        self,
        student_id: UUID,
        class_id: UUID,
        entry_method: str,
        at: datetime,
        status: str,
    ) -> AttendanceSession:
        """Create the single check-in for the key's day."""
        day = self.day_of(at)
        if self.has_any_session(student_id, class_id, day):
            raise DuplicateCheckIn("Already checked in for this class today")
        new_session = NewSession(
            student_id=student_id,
            class_id=class_id,
            session_day=day,
            check_in_at=at,
            status=status,
            entry_method=entry_method,
        )
        return self._call_with_retry(
            lambda: self.repository.insert_session(new_session),
            action="check_in",
            applied=lambda: self._stored_check_in(new_session),
        )

    def complete_check_out(
        self, session_id: UUID, at: datetime, status: str
    ) -> AttendanceSession:
        """Close an open session with its final status."""
        closed = self._call_with_retry(
            lambda: self.repository.close_session(session_id, at, status),
            action="check_out",
            applied=lambda: self._stored_check_out(session_id, at),
        )
        if closed is None:
            raise NoOpenSession("No open session to check out")
        return closed

    def void_and_replace(
        self, original_id: UUID, replacement: NewSession
    ) -> tuple[AttendanceSession, AttendanceSession]:
        """Atomically void a session and insert its replacement."""
        return self._call_with_retry(
            lambda: self.repository.void_and_replace(original_id, replacement),
            action="void_and_replace",
        )

    def annotate(  # noqa: PLR0913
        self,
        session_id: UUID,
        note: str,
        note_by: UUID | None,
        note_at: datetime,
        status: str,
    ) -> AttendanceSession:
        """Store an annotation on a session."""
        if self.get_session(session_id) is None:
            raise SessionNotFound("Attendance session not found")
        return self._call_with_retry(
            lambda: self.repository.update_note(
                session_id, note, note_by, note_at, status
            ),
            action="annotate",
        )

    def _sessions_for_day(
        self, student_id: UUID, class_id: UUID, day: date
    ) -> list[AttendanceSession]:
        sessions = self._call_with_retry(
            lambda: self.repository.list_sessions(student_id, class_id, day),
            action="list_sessions",
        )
        active = [session for session in sessions if not session.is_voided]
        return sorted(active, key=lambda session: session.check_in_at, reverse=True)

    def _stored_check_in(self, new_session: NewSession) -> AttendanceSession | None:
        """Return the row an interrupted insert already committed, if any."""
        sessions = self.repository.list_sessions(
            new_session.student_id, new_session.class_id, new_session.session_day
        )
        for session in sessions:
            if (
                not session.is_voided
                and session.check_in_at == new_session.check_in_at
                and session.entry_method == new_session.entry_method
            ):
                return session
        return None

    def _stored_check_out(
        self, session_id: UUID, at: datetime
    ) -> AttendanceSession | None:
        """Return the session if an interrupted close already committed."""
        session = self.repository.get_session(session_id)
        if session is not None and session.check_out_at == at:
            return session
        return None

    def _call_with_retry(
        self,
        func: Callable[[], T],
        *,
        action: str,
        applied: Callable[[], T | None] | None = None,
    ) -> T:
        """Call a repository function, retrying transient failures.

        Writes pass ``applied`` so a retry first checks whether the failed
        attempt reached storage before sending the write again.
        """
        attempt = 0
        while True:
            try:
                if attempt and applied is not None:
                    stored = applied()
                    if stored is not None:
                        _logger.info("Ledger %s was applied before the failure", action)
                        return stored
                return func()
            except TransientStorageError as exc:
                attempt += 1
                _logger.warning(
                    "Ledger %s failed (attempt %s/%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                time.sleep(self.retry_delay_seconds)

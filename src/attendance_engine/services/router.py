"""Event router: classifies scan events and sequences the engine.

Storage calls are blocking, so they run in a worker thread and only device
actuation is awaited on the event loop.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from attendance_engine.domain.attendance import (
    ACTION_ACTIVATOR_TRIGGER,
    ACTION_CORRECTION,
    ACTION_ROOM_CONTROL,
    ACTION_TIME_IN,
    ACTION_TIME_OUT,
    ENTRY_BIOMETRIC,
    ENTRY_MANUAL_OVERRIDE,
    ENTRY_METHODS,
    LegacyLogResult,
    ScanEvent,
    ScanResult,
)
from attendance_engine.domain.errors import (
    DuplicateCheckIn,
    InvalidRequest,
    LegacyPathError,
    NoOpenSession,
)
from attendance_engine.domain.models import (
    ActivatorIdentity,
    ActorContext,
    ClassSchedule,
    StudentRecord,
)
from attendance_engine.services.corrections import CorrectionManager
from attendance_engine.services.grading import grade_check_in, grade_check_out
from attendance_engine.services.identity import IdentityResolver
from attendance_engine.services.ledger import SessionLedger
from attendance_engine.services.room_control import RoomControlService
from attendance_engine.services.side_effects import SideEffectDispatcher

_logger = logging.getLogger(__name__)

_ACTION_LABELS = {
    "time in": ACTION_TIME_IN,
    "timein": ACTION_TIME_IN,
    "check in": ACTION_TIME_IN,
    "time out": ACTION_TIME_OUT,
    "timeout": ACTION_TIME_OUT,
    "check out": ACTION_TIME_OUT,
    "room control": ACTION_ROOM_CONTROL,
}


class ClassDirectory(Protocol):
    """Read-only class lookups."""

    def get_class(self, class_id: UUID) -> ClassSchedule | None:
        """Return a class schedule by id."""

    def find_class_by_name(
        self, name: str, instructor_id: UUID | None
    ) -> ClassSchedule | None:
        """Return a class by name, scoped to an instructor when given."""


class LegacyAttendanceGateway(Protocol):
    """Stored-procedure pathway used by legacy name-based terminals."""

    def log_attendance(self, event: ScanEvent) -> LegacyLogResult:
        """Log attendance server-side; raise LegacyPathError on an app error."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class EventRouter:
    """Top-level dispatcher for scan events."""

    identity_resolver: IdentityResolver
    class_directory: ClassDirectory
    ledger: SessionLedger
    correction_manager: CorrectionManager
    room_control: RoomControlService
    side_effects: SideEffectDispatcher
    timezone: ZoneInfo
    legacy_gateway: LegacyAttendanceGateway | None = None
    clock: Callable[[], datetime] = field(default=_utc_now)

    async def handle(self, event: ScanEvent) -> ScanResult:
        """Route an event by precedence: correction, biometric, legacy."""
        if event.is_correction:
            return await asyncio.to_thread(self._handle_correction, event)
        if event.fingerprint_slot_id is not None:
            return await self._handle_biometric(event)
        if event.student_name:
            return await asyncio.to_thread(self._handle_legacy, event)
        raise InvalidRequest(
            "Event carries no correction, fingerprint or student name"
        )

    def _handle_correction(self, event: ScanEvent) -> ScanResult:
        if event.corrects_log_id is None:
            raise InvalidRequest("Correction requires corrects_log_id")
        close = _ACTION_LABELS.get(_normalize_label(event.attendance_type)) == (
            ACTION_TIME_OUT
        )
        _, replacement = self.correction_manager.correct(
            event.corrects_log_id,
            actor=ActorContext(actor_id=event.actor_id),
            entry_method=event.entry_method,
            close=close,
        )
        student = self.identity_resolver.get_student(replacement.student_id)
        return ScanResult(
            action=ACTION_CORRECTION,
            status=replacement.status,
            student_name=student.name if student else None,
            session_id=replacement.id,
        )

    async def _handle_biometric(self, event: ScanEvent) -> ScanResult:
        if not event.device_id:
            raise InvalidRequest("Biometric events require device_id")
        identity = await asyncio.to_thread(
            self.identity_resolver.resolve_fingerprint,
            event.fingerprint_slot_id,
            event.device_id,
        )
        if isinstance(identity, ActivatorIdentity):
            state = await self.room_control.toggle_room(identity)
            return ScanResult(
                action=ACTION_ACTIVATOR_TRIGGER,
                status=state,
                student_name=identity.name,
            )
        return await asyncio.to_thread(self._handle_student_scan, identity, event)

    def _handle_student_scan(
        self, identity: StudentRecord, event: ScanEvent
    ) -> ScanResult:
        action = parse_action(event.attendance_type)
        if action == ACTION_ROOM_CONTROL:
            raise InvalidRequest(
                "Only room activators may send room control scans",
                student_name=identity.name,
            )
        if event.class_id is None:
            raise InvalidRequest(
                "Biometric events require class_id", student_name=identity.name
            )
        schedule = self._require_class(event.class_id)
        self.identity_resolver.require_enrollment(identity, schedule.id)
        return self._record(identity, schedule, action, ENTRY_BIOMETRIC)

    def _handle_legacy(self, event: ScanEvent) -> ScanResult:
        action = parse_action(event.attendance_type)
        if action == ACTION_ROOM_CONTROL:
            raise InvalidRequest("Room control requires a fingerprint scan")
        entry_method = event.entry_method or ENTRY_MANUAL_OVERRIDE
        if entry_method not in ENTRY_METHODS:
            raise InvalidRequest(f"Unknown entry method: {entry_method}")
        if self.legacy_gateway is not None:
            try:
                logged = self.legacy_gateway.log_attendance(event)
            except LegacyPathError as exc:
                _logger.warning(
                    "Legacy RPC failed, retrying via direct tables: %s", exc
                )
            else:
                committed = _ACTION_LABELS.get(_normalize_label(logged.action))
                if committed in (ACTION_TIME_IN, ACTION_TIME_OUT):
                    self._after_legacy_commit(committed, logged, event)
                else:
                    _logger.warning(
                        "Legacy RPC returned unknown action %r; skipping side effects",
                        logged.action,
                    )
                    committed = action
                return ScanResult(
                    action=committed,
                    status=logged.status,
                    student_name=event.student_name,
                    session_id=logged.session_id,
                )

        schedule = self._resolve_legacy_class(event)
        student = self.identity_resolver.resolve_by_name(
            event.student_name or "", schedule.instructor_id
        )
        self.identity_resolver.require_enrollment(student, schedule.id)
        return self._record(student, schedule, action, entry_method)

    def _record(
        self,
        student: StudentRecord,
        schedule: ClassSchedule,
        action: str,
        entry_method: str,
    ) -> ScanResult:
        now = self.clock()
        try:
            if action == ACTION_TIME_IN:
                status = grade_check_in(now, schedule, self.timezone)
                session = self.ledger.create_check_in(
                    student.id, schedule.id, entry_method, now, status
                )
            else:
                open_session = self.ledger.find_open_session(
                    student.id, schedule.id, self.ledger.day_of(now)
                )
                if open_session is None:
                    raise NoOpenSession("No open session to check out")
                status = grade_check_out(now, schedule, open_session, self.timezone)
                session = self.ledger.complete_check_out(open_session.id, now, status)
        except (DuplicateCheckIn, NoOpenSession) as exc:
            exc.student_name = student.name
            raise
        _logger.info(
            "Recorded %s for student %s in class %s: %s",
            action,
            student.id,
            schedule.id,
            session.status,
        )
        self.side_effects.on_committed(action, session, schedule, student.name)
        return ScanResult(
            action=action,
            status=session.status,
            student_name=student.name,
            session_id=session.id,
        )

    def _after_legacy_commit(
        self, action: str, logged: LegacyLogResult, event: ScanEvent
    ) -> None:
        if logged.session_id is None or logged.class_id is None:
            return
        session = self.ledger.get_session(logged.session_id)
        schedule = self.class_directory.get_class(logged.class_id)
        if session is None or schedule is None:
            _logger.warning(
                "Legacy RPC result could not be loaded for side effects",
                extra={"session_id": str(logged.session_id)},
            )
            return
        self.side_effects.on_committed(
            action, session, schedule, event.student_name or ""
        )

    def _resolve_legacy_class(self, event: ScanEvent) -> ClassSchedule:
        if event.class_id is not None:
            return self._require_class(event.class_id)
        if event.class_name:
            schedule = self.class_directory.find_class_by_name(
                event.class_name, event.instructor_id
            )
            if schedule is not None:
                return schedule
        raise InvalidRequest(
            f"Unknown class: {event.class_name or event.class_id}",
            student_name=event.student_name,
        )

    def _require_class(self, class_id: UUID) -> ClassSchedule:
        schedule = self.class_directory.get_class(class_id)
        if schedule is None:
            raise InvalidRequest(f"Unknown class: {class_id}")
        return schedule


def parse_action(attendance_type: str) -> str:
    """Map a human attendance label to an action."""
    action = _ACTION_LABELS.get(_normalize_label(attendance_type))
    if action is None:
        raise InvalidRequest(f"Unknown attendance type: {attendance_type}")
    return action


def _normalize_label(attendance_type: str) -> str:
    return " ".join(attendance_type.replace("_", " ").split()).casefold()

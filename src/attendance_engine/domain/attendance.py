"""Domain models for attendance sessions."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

STATUS_PRESENT = "Present"
STATUS_LATE = "Late"
STATUS_ABSENT = "Absent"
STATUS_MANUALLY_VERIFIED = "Manually Verified"

STORED_STATUSES = frozenset(
    {STATUS_PRESENT, STATUS_LATE, STATUS_ABSENT, STATUS_MANUALLY_VERIFIED}
)

LABEL_CUT_CLASS = "Cut Class"
LABEL_GHOSTING = "Ghosting"
LABEL_INVALID = "Invalid (Too Early)"

ENTRY_BIOMETRIC = "biometric"
ENTRY_MANUAL_OVERRIDE = "manual_override"
ENTRY_RFID = "rfid"
ENTRY_QR_VERIFIED = "qr_verified"

ENTRY_METHODS = frozenset(
    {ENTRY_BIOMETRIC, ENTRY_MANUAL_OVERRIDE, ENTRY_RFID, ENTRY_QR_VERIFIED}
)

ACTION_TIME_IN = "time_in"
ACTION_TIME_OUT = "time_out"
ACTION_ACTIVATOR_TRIGGER = "activator_trigger"
ACTION_CORRECTION = "correction"
ACTION_ROOM_CONTROL = "room_control"


@dataclass(frozen=True)
class AttendanceSession:
    """Represents a persisted attendance session."""

    id: UUID
    student_id: UUID
    class_id: UUID
    session_day: date
    check_in_at: datetime
    status: str
    entry_method: str
    check_out_at: datetime | None = None
    is_correction: bool = False
    corrects_session_id: UUID | None = None
    original_check_in_at: datetime | None = None
    admin_note: str | None = None
    note_by: UUID | None = None
    note_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.check_out_at is None

    @property
    def is_voided(self) -> bool:
        """Voided originals are flagged, replacements only point back."""
        return self.is_correction


@dataclass(frozen=True)
class NewSession:
    """Fields for a session about to be inserted."""

    student_id: UUID
    class_id: UUID
    session_day: date
    check_in_at: datetime
    status: str
    entry_method: str
    check_out_at: datetime | None = None
    corrects_session_id: UUID | None = None


@dataclass(frozen=True)
class ScanEvent:
    """Inbound scan event, already validated for shape."""

    attendance_type: str
    class_id: UUID | None = None
    instructor_id: UUID | None = None
    fingerprint_slot_id: int | None = None
    device_id: str | None = None
    student_name: str | None = None
    class_name: str | None = None
    entry_method: str | None = None
    is_correction: bool = False
    corrects_log_id: UUID | None = None
    actor_id: UUID | None = None


@dataclass(frozen=True)
class ScanResult:
    """Outcome returned to the caller of the event router."""

    action: str
    status: str
    student_name: str | None = None
    session_id: UUID | None = None

    def to_payload(self) -> dict[str, object]:
        return {
            "success": True,
            "student_name": self.student_name,
            "status": self.status,
            "action": self.action,
            "session_id": str(self.session_id) if self.session_id else None,
        }


@dataclass(frozen=True)
class AttendanceTally:
    """Aggregate counts of display labels."""

    present: int = 0
    late: int = 0
    absent: int = 0
    invalid: int = 0


@dataclass(frozen=True)
class LegacyLogResult:
    """Row returned by the legacy stored procedure."""

    action: str
    status: str
    class_id: UUID | None = None
    session_id: UUID | None = None

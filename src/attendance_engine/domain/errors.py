"""Error taxonomy for the attendance engine."""


class AttendanceError(Exception):
    """Base error carrying a stable code for callers."""

    code = "attendance_error"
    duplicate = False
    retriable = False

    def __init__(self, message: str, student_name: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.student_name = student_name

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "success": False,
            "error": self.code,
            "message": self.message,
        }
        if self.student_name:
            payload["student_name"] = self.student_name
        if self.duplicate:
            payload["duplicate"] = True
        return payload


class IdentityNotFound(AttendanceError):
    code = "identity_not_found"


class FingerprintLocked(AttendanceError):
    code = "fingerprint_locked"


class NotEnrolled(AttendanceError):
    code = "not_enrolled"


class DuplicateCheckIn(AttendanceError):
    code = "duplicate_check_in"
    duplicate = True


class NoOpenSession(AttendanceError):
    code = "no_open_session"
    duplicate = True


class CorrectionWindowExpired(AttendanceError):
    code = "correction_window_expired"


class SessionNotFound(AttendanceError):
    code = "session_not_found"


class FrozenRecord(AttendanceError):
    code = "record_frozen"


class ScheduleUnavailable(AttendanceError):
    code = "schedule_unavailable"


class TransientStorageError(AttendanceError):
    code = "transient_storage_error"
    retriable = True


class InvalidRequest(AttendanceError):
    code = "invalid_request"


class LegacyPathError(AttendanceError):
    """Raised when the legacy stored-procedure path reports an error."""

    code = "legacy_path_error"

"""Legacy stored-procedure attendance pathway."""

from dataclasses import dataclass
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from attendance_engine.adapters.supabase_errors import storage_errors
from attendance_engine.domain.attendance import (
    ENTRY_MANUAL_OVERRIDE,
    LegacyLogResult,
    ScanEvent,
)
from attendance_engine.domain.errors import LegacyPathError
from attendance_engine.services.router import LegacyAttendanceGateway


@dataclass
class SupabaseLegacyGateway(LegacyAttendanceGateway):
    """Calls the ``log_attendance`` database function used by older terminals."""

    client: Client

    def log_attendance(self, event: ScanEvent) -> LegacyLogResult:
        """Log attendance server-side and return the function's result row."""
        params = {
            "student_name_input": event.student_name,
            "class_name_input": event.class_name,
            "class_id_input": str(event.class_id) if event.class_id else None,
            "status_input": event.attendance_type,
            "instructor_id_input": (
                str(event.instructor_id) if event.instructor_id else None
            ),
            "entry_method_input": event.entry_method or ENTRY_MANUAL_OVERRIDE,
        }
        try:
            with storage_errors("log_attendance"):
                response = self.client.rpc("log_attendance", params).execute()
        except APIError as exc:
            raise LegacyPathError(
                f"log_attendance failed: {exc.message}",
                student_name=event.student_name,
            ) from exc

        data = response.data
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict):
            raise LegacyPathError(
                "log_attendance returned no result", student_name=event.student_name
            )
        if data.get("error"):
            raise LegacyPathError(
                str(data["error"]), student_name=event.student_name
            )
        return LegacyLogResult(
            action=str(data.get("action") or ""),
            status=str(data.get("status") or ""),
            class_id=_optional_uuid(data.get("class_id")),
            session_id=_optional_uuid(data.get("log_id")),
        )


def _optional_uuid(value: object) -> UUID | None:
    if not value:
        return None
    return UUID(str(value))

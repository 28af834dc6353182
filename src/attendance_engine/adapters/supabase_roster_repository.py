"""Supabase repository for students, instructors, enrollments and classes."""

from dataclasses import dataclass
from datetime import time
from uuid import UUID

from supabase import Client

from attendance_engine.adapters.supabase_errors import storage_errors
from attendance_engine.domain.models import (
    ActivatorIdentity,
    ClassSchedule,
    StudentRecord,
)
from attendance_engine.services.identity import StudentDirectory
from attendance_engine.services.router import ClassDirectory

_STUDENT_COLUMNS = "id, name, email, instructor_id, fingerprint_locked"
_CLASS_COLUMNS = (
    "id, name, instructor_id, start_time, end_time, room_id, "
    "instructors(auth_user_id)"
)


@dataclass
class SupabaseRosterRepository(StudentDirectory, ClassDirectory):
    """Supabase-backed roster lookups."""

    client: Client

    def find_student_by_slot(
        self, fingerprint_slot: int, device_id: str
    ) -> StudentRecord | None:
        """Return the student linked to a fingerprint slot on a kiosk."""
        with storage_errors("find_student_by_slot"):
            response = (
                self.client.table("fingerprint_device_links")
                .select(f"student_id, students({_STUDENT_COLUMNS})")
                .eq("fingerprint_slot_id", fingerprint_slot)
                .eq("device_serial", device_id)
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        student = response.data[0].get("students")
        if not student:
            return None
        return _parse_student(student)

    def find_activator_by_slot(
        self, fingerprint_slot: int, device_id: str
    ) -> ActivatorIdentity | None:
        """Return the instructor enrolled as room activator on this kiosk."""
        with storage_errors("find_activator_by_slot"):
            response = (
                self.client.table("instructors")
                .select("id, name")
                .eq("can_activate_room", True)
                .eq("activator_fingerprint_slot", fingerprint_slot)
                .eq("activator_device_serial", device_id)
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        row = response.data[0]
        return ActivatorIdentity(
            instructor_id=UUID(str(row["id"])),
            name=str(row.get("name") or ""),
            device_id=device_id,
            room_id=self._kiosk_room(device_id),
        )

    def list_students_for_instructor(self, instructor_id: UUID) -> list[StudentRecord]:
        """Return all students owned by an instructor."""
        with storage_errors("list_students_for_instructor"):
            response = (
                self.client.table("students")
                .select(_STUDENT_COLUMNS)
                .eq("instructor_id", str(instructor_id))
                .execute()
            )
        return [_parse_student(row) for row in response.data or []]

    def get_student(self, student_id: UUID) -> StudentRecord | None:
        """Return a student by id."""
        with storage_errors("get_student"):
            response = (
                self.client.table("students")
                .select(_STUDENT_COLUMNS)
                .eq("id", str(student_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_student(response.data[0])

    def is_enrolled(self, student_id: UUID, class_id: UUID) -> bool:
        """Return true when the student has an enrollment row for the class."""
        with storage_errors("is_enrolled"):
            response = (
                self.client.table("enrollments")
                .select("student_id")
                .eq("student_id", str(student_id))
                .eq("class_id", str(class_id))
                .limit(1)
                .execute()
            )
        return bool(response.data)

    def get_class(self, class_id: UUID) -> ClassSchedule | None:
        """Return a class schedule by id."""
        with storage_errors("get_class"):
            response = (
                self.client.table("classes")
                .select(_CLASS_COLUMNS)
                .eq("id", str(class_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_class(response.data[0])

    def find_class_by_name(
        self, name: str, instructor_id: UUID | None
    ) -> ClassSchedule | None:
        """Return a class matched case-insensitively by name."""
        query = (
            self.client.table("classes").select(_CLASS_COLUMNS).ilike("name", name)
        )
        if instructor_id is not None:
            query = query.eq("instructor_id", str(instructor_id))
        with storage_errors("find_class_by_name"):
            response = query.limit(1).execute()
        if not response.data:
            return None
        return _parse_class(response.data[0])

    def _kiosk_room(self, device_id: str) -> UUID | None:
        with storage_errors("kiosk_room"):
            response = (
                self.client.table("kiosk_devices")
                .select("room_id")
                .eq("device_serial", device_id)
                .limit(1)
                .execute()
            )
        if not response.data or not response.data[0].get("room_id"):
            return None
        return UUID(str(response.data[0]["room_id"]))


def _parse_student(row: dict[str, object]) -> StudentRecord:
    instructor_id = row.get("instructor_id")
    return StudentRecord(
        id=UUID(str(row["id"])),
        name=str(row.get("name") or ""),
        email=row.get("email"),
        instructor_id=UUID(str(instructor_id)) if instructor_id else None,
        fingerprint_locked=bool(row.get("fingerprint_locked")),
    )


def _parse_time(value: object) -> time | None:
    if not value:
        return None
    return time.fromisoformat(str(value))


def _parse_class(row: dict[str, object]) -> ClassSchedule:
    instructor = row.get("instructors") or {}
    auth_user_id = (
        instructor.get("auth_user_id") if isinstance(instructor, dict) else None
    )
    room_id = row.get("room_id")
    return ClassSchedule(
        id=UUID(str(row["id"])),
        name=str(row.get("name") or ""),
        instructor_id=UUID(str(row["instructor_id"])),
        start_time=_parse_time(row.get("start_time")),
        end_time=_parse_time(row.get("end_time")),
        room_id=UUID(str(room_id)) if room_id else None,
        instructor_user_id=UUID(str(auth_user_id)) if auth_user_id else None,
    )

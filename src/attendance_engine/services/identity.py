"""Identity resolution for scan events."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from attendance_engine.domain.errors import (
    FingerprintLocked,
    IdentityNotFound,
    NotEnrolled,
)
from attendance_engine.domain.models import ActivatorIdentity, StudentRecord
from attendance_engine.services.audit import AuditService

_logger = logging.getLogger(__name__)


class StudentDirectory(Protocol):
    """Read-only roster lookups used to resolve identities."""

    def find_student_by_slot(
        self, fingerprint_slot: int, device_id: str
    ) -> StudentRecord | None:
        """Return the student enrolled on a fingerprint slot of a device."""

    def find_activator_by_slot(
        self, fingerprint_slot: int, device_id: str
    ) -> ActivatorIdentity | None:
        """Return the room activator bound to a slot on exactly this device."""

    def list_students_for_instructor(self, instructor_id: UUID) -> list[StudentRecord]:
        """Return the students owned by an instructor."""

    def get_student(self, student_id: UUID) -> StudentRecord | None:
        """Return a student by id."""

    def is_enrolled(self, student_id: UUID, class_id: UUID) -> bool:
        """Return true when the student has an active enrollment in the class."""


@dataclass
class IdentityResolver:
    """Maps identity hints on scan events to canonical identities."""

    directory: StudentDirectory
    audit_service: AuditService

    def get_student(self, student_id: UUID) -> StudentRecord | None:
        """Return a student by id."""
        return self.directory.get_student(student_id)

    def resolve_fingerprint(
        self, fingerprint_slot: int, device_id: str
    ) -> StudentRecord | ActivatorIdentity:
        """Resolve a biometric scan to a student or a room activator."""
        student = self.directory.find_student_by_slot(fingerprint_slot, device_id)
        if student is None:
            activator = self.directory.find_activator_by_slot(
                fingerprint_slot, device_id
            )
            if activator is not None:
                return activator
            raise IdentityNotFound(
                f"No identity for slot {fingerprint_slot} on {device_id}"
            )
        if student.fingerprint_locked:
            _logger.warning(
                "Rejected scan for locked fingerprint",
                extra={"student_id": str(student.id), "device_id": device_id},
            )
            self.audit_service.record_event(
                actor_id=None,
                action="fingerprint_locked_scan",
                target_type="student",
                target_id=str(student.id),
                details={"device_id": device_id, "fingerprint_slot": fingerprint_slot},
            )
            raise FingerprintLocked(
                "Fingerprint is locked for this student", student_name=student.name
            )
        return student

    def resolve_by_name(self, display_name: str, instructor_id: UUID) -> StudentRecord:
        """Resolve a display name (or e-mail) among an instructor's students."""
        wanted = _normalize(display_name)
        if not wanted:
            raise IdentityNotFound("Student name is empty")
        candidates = self.directory.list_students_for_instructor(instructor_id)
        if "@" in wanted:
            matches = [
                student
                for student in candidates
                if student.email and _normalize(student.email) == wanted
            ]
        else:
            wanted = _canonical_name(wanted)
            matches = [
                student
                for student in candidates
                if _canonical_name(student.name) == wanted
            ]
        if len(matches) != 1:
            reason = "ambiguous" if matches else "unknown"
            raise IdentityNotFound(
                f"Student name is {reason}: {display_name}", student_name=display_name
            )
        return matches[0]

    def require_enrollment(self, student: StudentRecord, class_id: UUID) -> None:
        """Raise NotEnrolled unless the student is enrolled in the class."""
        if not self.directory.is_enrolled(student.id, class_id):
            raise NotEnrolled(
                "Student is not enrolled in this class", student_name=student.name
            )


def _normalize(value: str) -> str:
    return " ".join(value.split()).casefold()


def _canonical_name(name: str) -> str:
    """Normalize a name to "first last" order; "Last, First" is swapped."""
    normalized = _normalize(name)
    if "," in normalized:
        last, _, first = normalized.partition(",")
        return _normalize(f"{first} {last}")
    return normalized

"""Domain models for roster data read by the attendance engine."""

from dataclasses import dataclass
from datetime import time
from uuid import UUID


@dataclass(frozen=True)
class StudentRecord:
    """Represents a student as seen by the identity resolver."""

    id: UUID
    name: str
    email: str | None = None
    instructor_id: UUID | None = None
    fingerprint_locked: bool = False


@dataclass(frozen=True)
class ActivatorIdentity:
    """An instructor whose fingerprint toggles a room instead of logging attendance."""

    instructor_id: UUID
    name: str
    device_id: str
    room_id: UUID | None


@dataclass(frozen=True)
class ClassSchedule:
    """Read-only class data used for grading and side effects."""

    id: UUID
    name: str
    instructor_id: UUID
    start_time: time | None = None
    end_time: time | None = None
    room_id: UUID | None = None
    instructor_user_id: UUID | None = None


@dataclass(frozen=True)
class IotDevice:
    """A switchable room device."""

    id: str
    room_id: UUID
    dp_code: str
    current_state: bool


@dataclass(frozen=True)
class ActorContext:
    """The identity performing a correction or annotation."""

    actor_id: UUID | None
    privileged: bool = False

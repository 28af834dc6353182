"""Pydantic models for attendance API payloads."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from attendance_engine.domain.attendance import ScanEvent


class ScanEventPayload(BaseModel):
    """Scan event posted by a kiosk or a legacy terminal."""

    attendance_type: str = Field(min_length=1)
    timestamp: datetime | None = None
    class_id: UUID | None = None
    instructor_id: UUID | None = None
    fingerprint_slot_id: int | None = Field(default=None, ge=0)
    device_id: str | None = None
    student_name: str | None = None
    class_name: str | None = None
    entry_method: str | None = None
    is_correction: bool = False
    corrects_log_id: UUID | None = None
    actor_id: UUID | None = None

    def to_event(self) -> ScanEvent:
        """Convert to the engine's event type; the timestamp is not used."""
        return ScanEvent(
            attendance_type=self.attendance_type,
            class_id=self.class_id,
            instructor_id=self.instructor_id,
            fingerprint_slot_id=self.fingerprint_slot_id,
            device_id=self.device_id,
            student_name=self.student_name,
            class_name=self.class_name,
            entry_method=self.entry_method,
            is_correction=self.is_correction,
            corrects_log_id=self.corrects_log_id,
            actor_id=self.actor_id,
        )


class NotePayload(BaseModel):
    """Admin note on an attendance session."""

    note: str
    actor_id: UUID | None = None
    privileged: bool = False

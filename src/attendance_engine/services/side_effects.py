"""Post-commit side effects of attendance writes."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from attendance_engine.domain.attendance import (
    ACTION_TIME_IN,
    ACTION_TIME_OUT,
    STATUS_ABSENT,
    STATUS_LATE,
    AttendanceSession,
)
from attendance_engine.domain.models import ClassSchedule
from attendance_engine.services.notifications import NotificationService

_logger = logging.getLogger(__name__)


class OccupancyRepository(Protocol):
    """Persistence interface for room occupancy counters."""

    def adjust_occupancy(self, room_id: UUID, delta: int) -> None:
        """Add delta to the room counter, clamping at zero."""


@dataclass
class SideEffectDispatcher:
    """Best-effort occupancy and notification effects.

    Runs after the attendance write has committed. Nothing raised here reaches
    the caller: counters are an approximation and notifications are advisory.
    """

    occupancy_repository: OccupancyRepository
    notification_service: NotificationService

    def on_committed(
        self,
        action: str,
        session: AttendanceSession,
        schedule: ClassSchedule,
        student_name: str,
    ) -> None:
        """Fire occupancy and notification effects for a committed action."""
        if action not in (ACTION_TIME_IN, ACTION_TIME_OUT):
            _logger.warning("No side effects for action %r", action)
            return
        delta = 1 if action == ACTION_TIME_IN else -1
        self._adjust_occupancy(schedule, delta)
        self._notify_instructor(action, session, schedule, student_name)

    def _adjust_occupancy(self, schedule: ClassSchedule, delta: int) -> None:
        if schedule.room_id is None:
            return
        try:
            self.occupancy_repository.adjust_occupancy(schedule.room_id, delta)
        except Exception:
            _logger.exception(
                "Failed to adjust room occupancy",
                extra={"room_id": str(schedule.room_id), "delta": delta},
            )

    def _notify_instructor(
        self,
        action: str,
        session: AttendanceSession,
        schedule: ClassSchedule,
        student_name: str,
    ) -> None:
        if schedule.instructor_user_id is None:
            return
        verb = "timed in" if action == ACTION_TIME_IN else "timed out"
        title = "Student Timed In" if action == ACTION_TIME_IN else "Student Timed Out"
        severity = (
            "warning" if session.status in {STATUS_LATE, STATUS_ABSENT} else "info"
        )
        try:
            self.notification_service.notify(
                user_id=schedule.instructor_user_id,
                title=title,
                message=(
                    f"{student_name} {verb} for {schedule.name} "
                    f"({session.status}, {action})."
                ),
                severity=severity,
            )
        except Exception:
            _logger.exception(
                "Failed to notify instructor",
                extra={"class_id": str(schedule.id), "session_id": str(session.id)},
            )

"""Tests for post-commit side effects."""

from dataclasses import replace
from datetime import date
from uuid import uuid4

from attendance_engine.domain.attendance import (
    ACTION_TIME_IN,
    ACTION_TIME_OUT,
    STATUS_LATE,
    STATUS_PRESENT,
    AttendanceSession,
)
from attendance_engine.services.side_effects import SideEffectDispatcher
from tests.conftest import (
    Campus,
    InMemoryNotificationRepository,
    InMemoryOccupancyRepository,
    manila,
)


def _session(campus: Campus, status: str = STATUS_PRESENT) -> AttendanceSession:
    return AttendanceSession(
        id=uuid4(),
        student_id=campus.student.id,
        class_id=campus.schedule.id,
        session_day=date(2025, 3, 3),
        check_in_at=manila(8, 5),
        status=status,
        entry_method="biometric",
    )


def test_check_in_and_out_move_occupancy(
    side_effects: SideEffectDispatcher,
    campus: Campus,
    occupancy_repository: InMemoryOccupancyRepository,
) -> None:
    session = _session(campus)

    side_effects.on_committed(ACTION_TIME_IN, session, campus.schedule, "Juan")
    assert occupancy_repository.counts[campus.room_id] == 1

    side_effects.on_committed(ACTION_TIME_OUT, session, campus.schedule, "Juan")
    side_effects.on_committed(ACTION_TIME_OUT, session, campus.schedule, "Juan")
    assert occupancy_repository.counts[campus.room_id] == 0


def test_notifications_use_status_severity(
    side_effects: SideEffectDispatcher,
    campus: Campus,
    notification_repository: InMemoryNotificationRepository,
) -> None:
    side_effects.on_committed(
        ACTION_TIME_IN, _session(campus), campus.schedule, "Juan Dela Cruz"
    )
    side_effects.on_committed(
        ACTION_TIME_OUT, _session(campus, STATUS_LATE), campus.schedule, "Juan"
    )

    first, second = notification_repository.notifications
    assert first["user_id"] == campus.instructor_user_id
    assert first["title"] == "Student Timed In"
    assert first["type"] == "info"
    assert "Juan Dela Cruz" in str(first["message"])
    assert "Data Structures" in str(first["message"])
    assert second["title"] == "Student Timed Out"
    assert second["type"] == "warning"


def test_failures_are_swallowed(
    side_effects: SideEffectDispatcher,
    campus: Campus,
    occupancy_repository: InMemoryOccupancyRepository,
    notification_repository: InMemoryNotificationRepository,
) -> None:
    occupancy_repository.fail = True
    notification_repository.fail = True

    side_effects.on_committed(ACTION_TIME_IN, _session(campus), campus.schedule, "Juan")

    assert occupancy_repository.counts == {}
    assert notification_repository.notifications == []


def test_roomless_class_without_instructor_account_is_skipped(
    side_effects: SideEffectDispatcher,
    campus: Campus,
    occupancy_repository: InMemoryOccupancyRepository,
    notification_repository: InMemoryNotificationRepository,
) -> None:
    schedule = replace(campus.schedule, room_id=None, instructor_user_id=None)

    side_effects.on_committed(ACTION_TIME_IN, _session(campus), schedule, "Juan")

    assert occupancy_repository.counts == {}
    assert notification_repository.notifications == []


def test_unknown_action_has_no_side_effects(
    side_effects: SideEffectDispatcher,
    campus: Campus,
    occupancy_repository: InMemoryOccupancyRepository,
    notification_repository: InMemoryNotificationRepository,
) -> None:
    occupancy_repository.counts[campus.room_id] = 3

    side_effects.on_committed("", _session(campus), campus.schedule, "Juan")

    assert occupancy_repository.counts[campus.room_id] == 3
    assert notification_repository.notifications == []

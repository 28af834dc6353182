"""Time-based grading of attendance sessions.

Everything here is pure: callers pass the clock reading, the schedule and the
zone used for day scoping. Minute arithmetic is done in minute-of-day of the
session's local calendar day, so a timestamp that lands on the next local day
counts as ``1440 + minute`` rather than wrapping around to the morning.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from attendance_engine.domain.attendance import (
    LABEL_CUT_CLASS,
    LABEL_GHOSTING,
    LABEL_INVALID,
    STATUS_ABSENT,
    STATUS_LATE,
    STATUS_MANUALLY_VERIFIED,
    STATUS_PRESENT,
    AttendanceSession,
    AttendanceTally,
)
from attendance_engine.domain.errors import ScheduleUnavailable
from attendance_engine.domain.models import ClassSchedule

PRESENT_GRACE_MINUTES = 15
LATE_LIMIT_MINUTES = 30
EARLY_DEPARTURE_MINUTES = 15
OVERSTAY_MINUTES = 60
VALID_WINDOW_MINUTES = 20
MINUTES_PER_DAY = 24 * 60

_logger = logging.getLogger(__name__)


def local_day(at: datetime, tz: ZoneInfo) -> date:
    """Return the calendar day of a timestamp in the configured zone."""
    return at.astimezone(tz).date()


def minutes_into_day(at: datetime, day: date, tz: ZoneInfo) -> int:
    """Minutes since local midnight of ``day``; later days add whole days."""
    local = at.astimezone(tz)
    offset_days = (local.date() - day).days
    return offset_days * MINUTES_PER_DAY + local.hour * 60 + local.minute


def _clock_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def _require_start(schedule: ClassSchedule | None) -> time:
    if schedule is None or schedule.start_time is None:
        raise ScheduleUnavailable("Class has no start time")
    return schedule.start_time


def grade_check_in(now: datetime, schedule: ClassSchedule | None, tz: ZoneInfo) -> str:
    """Grade a time-in against the class start time."""
    try:
        start = _require_start(schedule)
    except ScheduleUnavailable:
        _logger.warning(
            "Grading check-in without a start time; defaulting to Present",
            extra={"class_id": getattr(schedule, "id", None)},
        )
        return STATUS_PRESENT
    day = local_day(now, tz)
    delta = minutes_into_day(now, day, tz) - _clock_minutes(start)
    if delta <= PRESENT_GRACE_MINUTES:
        return STATUS_PRESENT
    if delta <= LATE_LIMIT_MINUTES:
        return STATUS_LATE
    return STATUS_ABSENT


def grade_check_out(
    now: datetime,
    schedule: ClassSchedule | None,
    session: AttendanceSession,
    tz: ZoneInfo,
) -> str:
    """Grade a time-out, carrying the check-in status unless it is overridden."""
    status = session.status
    if status == STATUS_ABSENT:
        return status
    if schedule is None or schedule.end_time is None:
        return status
    now_minutes = minutes_into_day(now, session.session_day, tz)
    end_minutes = _clock_minutes(schedule.end_time)
    early_by = end_minutes - now_minutes
    if early_by > EARLY_DEPARTURE_MINUTES:
        return STATUS_ABSENT
    late_by = now_minutes - end_minutes
    if late_by > OVERSTAY_MINUTES:
        return STATUS_ABSENT
    return status


def is_too_early(
    session: AttendanceSession, schedule: ClassSchedule | None, tz: ZoneInfo
) -> bool:
    """Return true when the check-in predates the valid session window."""
    if schedule is None or schedule.start_time is None:
        return False
    check_in = minutes_into_day(session.check_in_at, session.session_day, tz)
    return check_in < _clock_minutes(schedule.start_time) - VALID_WINDOW_MINUTES


def derive_display_label(
    session: AttendanceSession, schedule: ClassSchedule | None, tz: ZoneInfo
) -> str:
    """Derive the UI label from stored status and timestamps."""
    if is_too_early(session, schedule, tz):
        return LABEL_INVALID
    if (
        session.status == STATUS_ABSENT
        and session.check_out_at is not None
        and schedule is not None
        and schedule.end_time is not None
    ):
        diff = minutes_into_day(
            session.check_out_at, session.session_day, tz
        ) - _clock_minutes(schedule.end_time)
        if diff < -EARLY_DEPARTURE_MINUTES:
            return LABEL_CUT_CLASS
        if diff > OVERSTAY_MINUTES:
            return LABEL_GHOSTING
    return session.status


def tally_labels(labels: Iterable[str]) -> AttendanceTally:
    """Count display labels; invalid sessions never fall into absent."""
    present = late = absent = invalid = 0
    for label in labels:
        if label in {STATUS_PRESENT, STATUS_MANUALLY_VERIFIED}:
            present += 1
        elif label == STATUS_LATE:
            late += 1
        elif label == LABEL_INVALID:
            invalid += 1
        else:
            absent += 1
    return AttendanceTally(present=present, late=late, absent=absent, invalid=invalid)

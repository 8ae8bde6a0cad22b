"""Lifecycle status derivation for courses and training sessions.

Everything here is a pure function of ``now`` and the stored record. Nothing
is cached: labels move from Upcoming to Ongoing to Past as time passes even
when no record changes, so callers must evaluate on every read.
"""
import math
from dataclasses import dataclass
from datetime import date, datetime, time, tzinfo
from zoneinfo import ZoneInfo

from src.config.settings import settings
from src.domains.trainees.models import Course, LifecycleStatus, TrainingSession

COURSE_LABELS = {
    LifecycleStatus.UPCOMING: "Upcoming",
    LifecycleStatus.ONGOING: "In Progress",
    LifecycleStatus.PAST: "Overdue",
    LifecycleStatus.COMPLETED: "Completed",
}

SESSION_LABELS = {
    LifecycleStatus.UPCOMING: "Upcoming",
    LifecycleStatus.ONGOING: "Ongoing",
    LifecycleStatus.PAST: "Past",
    LifecycleStatus.COMPLETED: "Completed",
}


@dataclass(frozen=True)
class StatusSnapshot:
    """Status of one record at one instant."""

    status: LifecycleStatus
    label: str
    days_remaining: int | None


def default_timezone() -> tzinfo:
    return ZoneInfo(settings.TIMEZONE)


def _at(day: date, moment: time, tz: tzinfo) -> datetime:
    return datetime.combine(day, moment, tzinfo=tz)


def course_interval(course: Course, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """Start-of-day instants of the course's start and end dates."""
    tz = tz or default_timezone()
    return _at(course.start_date, time.min, tz), _at(course.end_date, time.min, tz)


def session_interval(
    session: TrainingSession, tz: tzinfo | None = None
) -> tuple[datetime, datetime]:
    """Session date combined with its start and end times."""
    tz = tz or default_timezone()
    return _at(session.date, session.start_time, tz), _at(session.date, session.end_time, tz)


def derive_status(
    now: datetime,
    start: datetime,
    end: datetime,
    completed: bool = False,
) -> LifecycleStatus:
    """Place ``now`` against the closed interval [start, end].

    A completed record is Completed regardless of the interval.
    """
    if completed:
        return LifecycleStatus.COMPLETED
    if now < start:
        return LifecycleStatus.UPCOMING
    if now <= end:
        return LifecycleStatus.ONGOING
    return LifecycleStatus.PAST


def days_remaining(
    now: datetime,
    start: datetime,
    end: datetime,
    status: LifecycleStatus,
) -> int | None:
    """Whole days until start (Upcoming) or until end (Ongoing), else None."""
    if status == LifecycleStatus.UPCOMING:
        return (start - now).days
    if status == LifecycleStatus.ONGOING:
        return (end - now).days
    return None


def evaluate_course(course: Course, now: datetime, tz: tzinfo | None = None) -> StatusSnapshot:
    start, end = course_interval(course, tz)
    status = derive_status(now, start, end, completed=course.is_completed)
    return StatusSnapshot(
        status=status,
        label=COURSE_LABELS[status],
        days_remaining=days_remaining(now, start, end, status),
    )


def evaluate_session(
    session: TrainingSession, now: datetime, tz: tzinfo | None = None
) -> StatusSnapshot:
    start, end = session_interval(session, tz)
    status = derive_status(now, start, end, completed=session.is_completed)
    return StatusSnapshot(
        status=status,
        label=SESSION_LABELS[status],
        days_remaining=days_remaining(now, start, end, status),
    )


def session_duration_hours(session: TrainingSession) -> float:
    """Session length in hours, rounded half-up to one decimal place."""
    start, end = session_interval(session)
    tenths = (end - start).total_seconds() / 360
    return math.floor(tenths + 0.5) / 10

"""Course enrollments and training sessions: validation, edits, deletes, completion."""
import uuid
from collections.abc import Mapping
from datetime import date, datetime, time
from typing import Any

import structlog

from src.config.settings import settings
from src.core.clock import Clock
from src.domains.trainees.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    RecordValidationError,
)
from src.domains.trainees.models import (
    Course,
    CourseCategory,
    CourseStatus,
    LifecycleStatus,
    PointSource,
    SessionStatus,
    TrainingSession,
)
from src.domains.trainees.points import PointsAccount
from src.domains.trainees.registry import TraineeRegistry
from src.domains.trainees.status import evaluate_course, evaluate_session
from src.domains.trainees.store import TraineeStore

logger = structlog.get_logger(__name__)

COURSE_FIELDS = (
    "title",
    "description",
    "start_date",
    "end_date",
    "instructor",
    "category",
    "points",
    "duration",
    "requirements",
)

SESSION_FIELDS = (
    "title",
    "description",
    "date",
    "start_time",
    "end_time",
    "location",
    "instructor",
    "points",
)

# Fields an edit cannot clear; optional text fields may be nulled
COURSE_REQUIRED = ("title", "start_date", "end_date", "category", "points")
SESSION_REQUIRED = ("title", "date", "start_time", "end_time", "points")


# Field parsing

def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def _parse_time(value: Any) -> time:
    parsed = value if isinstance(value, time) else time.fromisoformat(str(value).strip())
    if parsed.tzinfo is not None:
        # Session times are wall-clock times in the configured zone
        raise ValueError(f"time with offset: {value}")
    return parsed


def _optional_text(value: Any) -> str | None:
    if _is_blank(value):
        return None
    return str(value).strip()


def _check_points(value: Any, errors: dict[str, str]) -> int | None:
    low, high = settings.MIN_ACTIVITY_POINTS, settings.MAX_ACTIVITY_POINTS
    message = f"Points must be between {low} and {high}"
    if isinstance(value, bool):
        errors["points"] = message
        return None
    try:
        points = int(value)
    except (TypeError, ValueError, OverflowError):
        errors["points"] = message
        return None
    if points != value and not isinstance(value, str):
        # Reject fractional numbers instead of truncating them
        errors["points"] = message
        return None
    if not low <= points <= high:
        errors["points"] = message
        return None
    return points


def _clean_course(fields: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, str]]:
    """Parse course fields into typed values plus a field-keyed error map."""
    errors: dict[str, str] = {}
    clean: dict[str, Any] = {}

    title = fields.get("title")
    if _is_blank(title):
        errors["title"] = "Course title is required"
    else:
        clean["title"] = str(title).strip()

    for key, label in (("start_date", "Start date"), ("end_date", "End date")):
        raw = fields.get(key)
        if _is_blank(raw):
            errors[key] = f"{label} is required"
            continue
        try:
            clean[key] = _parse_date(raw)
        except ValueError:
            errors[key] = f"{label} must be a valid date"

    if "start_date" in clean and "end_date" in clean and clean["end_date"] <= clean["start_date"]:
        errors["end_date"] = "End date must be after start date"

    raw_points = fields.get("points")
    points = _check_points(settings.DEFAULT_COURSE_POINTS if raw_points is None else raw_points, errors)
    if points is not None:
        clean["points"] = points

    raw_category = fields.get("category")
    if _is_blank(raw_category):
        clean["category"] = CourseCategory.GENERAL
    else:
        try:
            clean["category"] = CourseCategory(raw_category)
        except ValueError:
            errors["category"] = "Category must be one of: " + ", ".join(c.value for c in CourseCategory)

    for key in ("description", "instructor", "duration", "requirements"):
        clean[key] = _optional_text(fields.get(key))

    return clean, errors


def _clean_session(fields: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, str]]:
    """Parse session fields; the interval is the date combined with both times."""
    errors: dict[str, str] = {}
    clean: dict[str, Any] = {}

    title = fields.get("title")
    if _is_blank(title):
        errors["title"] = "Session title is required"
    else:
        clean["title"] = str(title).strip()

    raw_date = fields.get("date")
    if _is_blank(raw_date):
        errors["date"] = "Date is required"
    else:
        try:
            clean["date"] = _parse_date(raw_date)
        except ValueError:
            errors["date"] = "Date must be a valid date"

    for key, label in (("start_time", "Start time"), ("end_time", "End time")):
        raw = fields.get(key)
        if _is_blank(raw):
            errors[key] = f"{label} is required"
            continue
        try:
            clean[key] = _parse_time(raw)
        except ValueError:
            errors[key] = f"{label} must be a valid time"

    if "start_time" in clean and "end_time" in clean and clean["end_time"] <= clean["start_time"]:
        errors["end_time"] = "End time must be after start time"

    raw_points = fields.get("points")
    points = _check_points(settings.DEFAULT_SESSION_POINTS if raw_points is None else raw_points, errors)
    if points is not None:
        clean["points"] = points

    for key in ("description", "location", "instructor"):
        clean[key] = _optional_text(fields.get(key))

    return clean, errors


def validate_course(fields: Mapping[str, Any]) -> dict[str, str]:
    """Advisory check of enrollment fields. Empty dict means valid."""
    return _clean_course(fields)[1]


def validate_training_session(fields: Mapping[str, Any]) -> dict[str, str]:
    """Advisory check of session fields. Empty dict means valid."""
    return _clean_session(fields)[1]


def _merge(
    current: Mapping[str, Any],
    updates: Mapping[str, Any],
    editable: tuple[str, ...],
    keep_on_null: tuple[str, ...],
) -> dict[str, Any]:
    """Apply edits over stored values. A null for a field in ``keep_on_null`` leaves it as stored."""
    merged = dict(current)
    for key, value in updates.items():
        if key not in editable:
            continue
        if value is None and key in keep_on_null:
            continue
        merged[key] = value
    return merged


class ActivityLedger:
    """Per-trainee courses and training sessions.

    Every mutation validates first and writes nothing on failure. Completion
    is one-way and only allowed once the record's end has passed.
    """

    def __init__(
        self,
        store: TraineeStore,
        registry: TraineeRegistry,
        points: PointsAccount,
        clock: Clock,
    ):
        self.store = store
        self.registry = registry
        self.points = points
        self.clock = clock

    # Courses

    def add_course(self, trainee_id: uuid.UUID, fields: Mapping[str, Any]) -> Course:
        self.registry.ensure_exists(trainee_id)
        clean, errors = _clean_course(fields)
        if errors:
            logger.info("course_rejected", trainee_id=str(trainee_id), errors=errors)
            raise RecordValidationError(errors)

        course = Course(trainee_id=trainee_id, created_at=self.clock.now(), **clean)
        self.store.save_course(course)
        logger.info("course_enrolled", trainee_id=str(trainee_id), course_id=str(course.id))
        return course

    def get_course(self, course_id: uuid.UUID) -> Course:
        course = self.store.get_course(course_id)
        if course is None:
            raise NotFoundError("Course", course_id)
        return course

    def update_course(self, course_id: uuid.UUID, fields: Mapping[str, Any]) -> Course:
        course = self.get_course(course_id)
        if course.is_completed:
            raise InvalidTransitionError("Course", course_id, "completed courses cannot be edited")

        merged = _merge(course.model_dump(include=set(COURSE_FIELDS)), fields, COURSE_FIELDS, COURSE_REQUIRED)
        clean, errors = _clean_course(merged)
        if errors:
            logger.info("course_update_rejected", course_id=str(course_id), errors=errors)
            raise RecordValidationError(errors)

        updated = course.model_copy(update=clean)
        self.store.save_course(updated)
        logger.info("course_updated", course_id=str(course_id))
        return updated

    def delete_course(self, course_id: uuid.UUID) -> bool:
        """Hard delete. Unknown ids are a no-op; returns whether anything was removed."""
        removed = self.store.remove_course(course_id)
        logger.info("course_deleted", course_id=str(course_id), removed=removed)
        return removed

    def mark_course_complete(self, course_id: uuid.UUID) -> Course:
        course = self.get_course(course_id)
        now = self.clock.now()
        snapshot = evaluate_course(course, now)
        self._check_completable("Course", course_id, snapshot.status)

        course.status = CourseStatus.COMPLETED
        course.completed_at = now
        self.store.save_course(course)
        self.points.award(
            course.trainee_id,
            course.points,
            PointSource.COURSE_COMPLETION,
            reference_id=course.id,
            description=course.title,
        )
        logger.info("course_completed", course_id=str(course_id), trainee_id=str(course.trainee_id), points=course.points)
        return course

    # Training sessions

    def add_training_session(self, trainee_id: uuid.UUID, fields: Mapping[str, Any]) -> TrainingSession:
        self.registry.ensure_exists(trainee_id)
        clean, errors = _clean_session(fields)
        if errors:
            logger.info("session_rejected", trainee_id=str(trainee_id), errors=errors)
            raise RecordValidationError(errors)

        session = TrainingSession(trainee_id=trainee_id, created_at=self.clock.now(), **clean)
        self.store.save_session(session)
        logger.info("session_scheduled", trainee_id=str(trainee_id), session_id=str(session.id))
        return session

    def get_training_session(self, session_id: uuid.UUID) -> TrainingSession:
        session = self.store.get_session(session_id)
        if session is None:
            raise NotFoundError("TrainingSession", session_id)
        return session

    def update_training_session(self, session_id: uuid.UUID, fields: Mapping[str, Any]) -> TrainingSession:
        session = self.get_training_session(session_id)
        if session.is_completed:
            raise InvalidTransitionError("TrainingSession", session_id, "completed sessions cannot be edited")

        merged = _merge(session.model_dump(include=set(SESSION_FIELDS)), fields, SESSION_FIELDS, SESSION_REQUIRED)
        clean, errors = _clean_session(merged)
        if errors:
            logger.info("session_update_rejected", session_id=str(session_id), errors=errors)
            raise RecordValidationError(errors)

        updated = session.model_copy(update=clean)
        self.store.save_session(updated)
        logger.info("session_updated", session_id=str(session_id))
        return updated

    def delete_training_session(self, session_id: uuid.UUID) -> bool:
        """Hard delete. Unknown ids are a no-op; returns whether anything was removed."""
        removed = self.store.remove_session(session_id)
        logger.info("session_deleted", session_id=str(session_id), removed=removed)
        return removed

    def mark_session_complete(self, session_id: uuid.UUID) -> TrainingSession:
        session = self.get_training_session(session_id)
        now = self.clock.now()
        snapshot = evaluate_session(session, now)
        self._check_completable("TrainingSession", session_id, snapshot.status)

        session.status = SessionStatus.COMPLETED
        session.completed_at = now
        self.store.save_session(session)
        self.points.award(
            session.trainee_id,
            session.points,
            PointSource.SESSION_COMPLETION,
            reference_id=session.id,
            description=session.title,
        )
        logger.info("session_completed", session_id=str(session_id), trainee_id=str(session.trainee_id), points=session.points)
        return session

    @staticmethod
    def _check_completable(entity: str, entity_id: uuid.UUID, status: LifecycleStatus) -> None:
        if status == LifecycleStatus.COMPLETED:
            logger.info("completion_rejected", entity=entity, entity_id=str(entity_id), reason="already_completed")
            raise InvalidTransitionError(entity, entity_id, "already completed")
        if status != LifecycleStatus.PAST:
            logger.info("completion_rejected", entity=entity, entity_id=str(entity_id), reason=status.value)
            raise InvalidTransitionError(entity, entity_id, f"cannot be completed while {status.value}")

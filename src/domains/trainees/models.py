"""Trainee ledger records: trainees, courses, training sessions, check-ins, flags."""
import enum
import uuid
from datetime import date, datetime, time, timezone

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CourseCategory(str, enum.Enum):
    """Closed set of course categories offered on the enrollment form."""

    GENERAL = "General"
    PROGRAMMING = "Programming"
    DESIGN = "Design"
    MARKETING = "Marketing"
    MANAGEMENT = "Management"
    TECHNICAL_SKILLS = "Technical Skills"
    SOFT_SKILLS = "Soft Skills"
    LANGUAGE = "Language"
    CERTIFICATION = "Certification"


class CourseStatus(str, enum.Enum):
    """Stored status of a course enrollment."""

    ENROLLED = "enrolled"
    COMPLETED = "completed"


class SessionStatus(str, enum.Enum):
    """Stored status of a training session."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"


class TraineeStatus(str, enum.Enum):
    ACTIVE = "active"


class LifecycleStatus(str, enum.Enum):
    """Derived, never stored. Position of a record relative to now."""

    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    PAST = "past"
    COMPLETED = "completed"


class PointSource(str, enum.Enum):
    """Why a trainee's point total moved."""

    REGISTRATION = "registration"
    COURSE_COMPLETION = "course_completion"
    SESSION_COMPLETION = "session_completion"
    CHECK_IN = "check_in"
    FLAG = "flag"


class Flag(BaseModel):
    """A penalty recorded against a trainee. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    reason: str
    timestamp: datetime
    points_delta: int


class Trainee(BaseModel):
    """Trainee identity plus the running points total and flag history."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    serial_number: str
    name: str
    email: str
    phone: str | None = None
    date_of_birth: date | None = None
    education: str | None = None
    registration_date: datetime = Field(default_factory=_utcnow)
    status: TraineeStatus = TraineeStatus.ACTIVE
    last_check_in: datetime | None = None
    points: int = 0
    flags: list[Flag] = Field(default_factory=list)


class Course(BaseModel):
    """A trainee's enrollment in a course."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    trainee_id: uuid.UUID
    title: str
    description: str | None = None
    start_date: date
    end_date: date
    instructor: str | None = None
    category: CourseCategory = CourseCategory.GENERAL
    points: int
    duration: str | None = None
    requirements: str | None = None
    status: CourseStatus = CourseStatus.ENROLLED
    completed_at: datetime | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_completed(self) -> bool:
        return self.status == CourseStatus.COMPLETED


class TrainingSession(BaseModel):
    """A single scheduled training session on one calendar day."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    trainee_id: uuid.UUID
    title: str
    description: str | None = None
    date: date
    start_time: time
    end_time: time
    location: str | None = None
    instructor: str | None = None
    points: int
    status: SessionStatus = SessionStatus.SCHEDULED
    completed_at: datetime | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED


class CheckIn(BaseModel):
    """Attendance check-in. Append-only."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    trainee_id: uuid.UUID
    serial_number: str
    timestamp: datetime
    points: int


class PointTransaction(BaseModel):
    """One movement of a trainee's points total. Append-only."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    trainee_id: uuid.UUID
    delta: int
    source: PointSource
    reference_id: uuid.UUID | None = None
    description: str | None = None
    created_at: datetime

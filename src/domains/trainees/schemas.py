"""Trainee schemas for request/response validation.

Course and session request bodies accept loose values; the ledger parses them
and reports every bad field in one error map.
"""
from datetime import date, datetime, time
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.domains.trainees.models import (
    CourseCategory,
    CourseStatus,
    LifecycleStatus,
    PointSource,
    SessionStatus,
    TraineeStatus,
)


# Trainee schemas

class TraineeCreate(BaseModel):
    """Register trainee request."""

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: str | None = Field(None, max_length=50, pattern=r"^\+?[\d\s\-()]+$")
    date_of_birth: date | None = None
    education: str | None = Field(None, max_length=255)
    points: int = Field(default=0, ge=0)


class FlagResponse(BaseModel):
    id: UUID
    reason: str
    timestamp: datetime
    points_delta: int

    model_config = ConfigDict(from_attributes=True)


class TraineeResponse(BaseModel):
    """Trainee response."""

    id: UUID
    serial_number: str
    name: str
    email: str
    phone: str | None = None
    date_of_birth: date | None = None
    education: str | None = None
    registration_date: datetime
    status: TraineeStatus
    last_check_in: datetime | None = None
    points: int
    flags: list[FlagResponse] = []

    model_config = ConfigDict(from_attributes=True)


class TraineeStatsResponse(BaseModel):
    total_trainees: int
    active_trainees: int
    total_check_ins: int
    total_flags: int
    total_training_sessions: int
    completed_sessions: int
    total_courses: int
    completed_courses: int


# Course schemas

class CourseCreate(BaseModel):
    """Enroll trainee in a course."""

    title: str | None = None
    description: str | None = None
    start_date: Any = None
    end_date: Any = None
    instructor: str | None = None
    category: str | None = None
    points: Any = None
    duration: str | None = None
    requirements: str | None = None


class CourseUpdate(CourseCreate):
    """Partial course update; only sent fields are applied."""


class CourseResponse(BaseModel):
    """Course response with its status at request time."""

    id: UUID
    trainee_id: UUID
    title: str
    description: str | None = None
    start_date: date
    end_date: date
    instructor: str | None = None
    category: CourseCategory
    points: int
    duration: str | None = None
    requirements: str | None = None
    status: CourseStatus
    completed_at: datetime | None = None
    created_at: datetime
    lifecycle_status: LifecycleStatus
    status_label: str
    days_remaining: int | None = None


# Training session schemas

class TrainingSessionCreate(BaseModel):
    """Schedule a training session."""

    title: str | None = None
    description: str | None = None
    date: Any = None
    start_time: Any = None
    end_time: Any = None
    location: str | None = None
    instructor: str | None = None
    points: Any = None


class TrainingSessionUpdate(TrainingSessionCreate):
    """Partial session update; only sent fields are applied."""


class TrainingSessionResponse(BaseModel):
    """Training session response with its status at request time."""

    id: UUID
    trainee_id: UUID
    title: str
    description: str | None = None
    date: date
    start_time: time
    end_time: time
    location: str | None = None
    instructor: str | None = None
    points: int
    status: SessionStatus
    completed_at: datetime | None = None
    created_at: datetime
    lifecycle_status: LifecycleStatus
    status_label: str
    days_remaining: int | None = None
    duration_hours: float


# Flag / check-in / points schemas

class FlagCreate(BaseModel):
    reason: str = ""


class CheckInScanRequest(BaseModel):
    """Check-in from scanner text: badge QR JSON or a typed serial."""

    data: str = Field(min_length=1, max_length=512)


class CheckInResponse(BaseModel):
    id: UUID
    trainee_id: UUID
    serial_number: str
    timestamp: datetime
    points: int

    model_config = ConfigDict(from_attributes=True)


class CheckInScanResponse(BaseModel):
    trainee: TraineeResponse
    check_in: CheckInResponse


class BadgeResponse(BaseModel):
    """Printable badge: the encoded payload and its QR image."""

    trainee_id: UUID
    serial_number: str
    payload: str
    qr_code: str


class PointTransactionResponse(BaseModel):
    id: UUID
    delta: int
    source: PointSource
    reference_id: UUID | None = None
    description: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LevelResponse(BaseModel):
    id: str
    name: str
    min_points: int
    max_points: int | None = None
    description: str

    model_config = ConfigDict(from_attributes=True)


class ProgressResponse(BaseModel):
    """Progress counts and level for one trainee."""

    points: int
    total_courses: int
    completed_courses: int
    active_courses: int
    total_sessions: int
    completed_sessions: int
    upcoming_sessions: int
    total_check_ins: int
    total_flags: int
    level: LevelResponse
    next_level: LevelResponse | None = None
    progress_percent: int
    points_to_next: int

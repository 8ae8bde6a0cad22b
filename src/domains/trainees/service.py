"""Trainee service: the operations the presentation layer calls."""
import uuid
from collections.abc import Mapping
from datetime import date
from typing import Any

from src.core.clock import Clock, SystemClock
from src.domains.trainees.badge import badge_payload, badge_qr_code, parse_scan
from src.domains.trainees.ledger import ActivityLedger
from src.domains.trainees.models import (
    CheckIn,
    Course,
    Flag,
    PointSource,
    PointTransaction,
    Trainee,
    TrainingSession,
)
from src.domains.trainees.points import ActivityProgress, PointsAccount
from src.domains.trainees.registry import TraineeRegistry
from src.domains.trainees.store import TraineeStore


class TraineeService:
    """Wires the registry, ledger and points account around one store.

    Reads resolve the trainee first, so an unknown id raises NotFoundError
    while a known trainee with nothing recorded gets an empty list.
    """

    def __init__(self, clock: Clock | None = None, store: TraineeStore | None = None):
        self.clock = clock or SystemClock()
        self.store = store or TraineeStore()
        self.registry = TraineeRegistry(self.store, self.clock)
        self.points = PointsAccount(self.store, self.registry, self.clock)
        self.ledger = ActivityLedger(self.store, self.registry, self.points, self.clock)

    # Trainees

    def register_trainee(
        self,
        name: str,
        email: str,
        phone: str | None = None,
        date_of_birth: date | None = None,
        education: str | None = None,
        points: int = 0,
    ) -> Trainee:
        """Register a trainee, optionally with starting bonus points."""
        trainee = self.registry.register(
            name=name,
            email=email,
            phone=phone,
            date_of_birth=date_of_birth,
            education=education,
        )
        if points > 0:
            trainee = self.points.award(
                trainee.id, points, PointSource.REGISTRATION, description="Registration bonus"
            )
        return trainee

    def list_trainees(self) -> list[Trainee]:
        return self.registry.list_trainees()

    def get_trainee_by_id(self, trainee_id: uuid.UUID) -> Trainee:
        return self.registry.get_by_id(trainee_id)

    def get_trainee_by_serial(self, serial_number: str) -> Trainee:
        return self.registry.get_by_serial(serial_number)

    def get_trainee_courses(self, trainee_id: uuid.UUID) -> list[Course]:
        return self.registry.list_courses(trainee_id)

    def get_trainee_training_sessions(self, trainee_id: uuid.UUID) -> list[TrainingSession]:
        return self.registry.list_sessions(trainee_id)

    def get_trainee_check_ins(self, trainee_id: uuid.UUID) -> list[CheckIn]:
        return self.registry.list_check_ins(trainee_id)

    def get_stats(self) -> dict[str, int]:
        return self.registry.stats()

    def get_badge(self, trainee_id: uuid.UUID) -> tuple[str, str]:
        """Badge payload text and its QR code as a PNG data URL."""
        trainee = self.registry.get_by_id(trainee_id)
        return badge_payload(trainee), badge_qr_code(trainee)

    # Courses

    def add_course(self, trainee_id: uuid.UUID, fields: Mapping[str, Any]) -> Course:
        return self.ledger.add_course(trainee_id, fields)

    def update_course(self, course_id: uuid.UUID, fields: Mapping[str, Any]) -> Course:
        return self.ledger.update_course(course_id, fields)

    def delete_course(self, course_id: uuid.UUID) -> bool:
        return self.ledger.delete_course(course_id)

    def mark_course_complete(self, course_id: uuid.UUID) -> Course:
        return self.ledger.mark_course_complete(course_id)

    # Training sessions

    def add_training_session(self, trainee_id: uuid.UUID, fields: Mapping[str, Any]) -> TrainingSession:
        return self.ledger.add_training_session(trainee_id, fields)

    def update_training_session(self, session_id: uuid.UUID, fields: Mapping[str, Any]) -> TrainingSession:
        return self.ledger.update_training_session(session_id, fields)

    def delete_training_session(self, session_id: uuid.UUID) -> bool:
        return self.ledger.delete_training_session(session_id)

    def mark_session_complete(self, session_id: uuid.UUID) -> TrainingSession:
        return self.ledger.mark_session_complete(session_id)

    # Points

    def flag_trainee(self, trainee_id: uuid.UUID, reason: str) -> Flag:
        return self.points.penalize(trainee_id, reason)

    def check_in_trainee(self, trainee_id: uuid.UUID) -> CheckIn:
        return self.points.record_check_in(trainee_id)

    def check_in_by_serial(self, serial_number: str) -> tuple[Trainee, CheckIn]:
        return self.points.check_in_by_serial(serial_number)

    def check_in_by_scan(self, data: str) -> tuple[Trainee, CheckIn]:
        """Check in from raw scanner text: a badge QR payload or a bare serial."""
        return self.points.check_in_by_serial(parse_scan(data))

    def get_point_history(self, trainee_id: uuid.UUID) -> list[PointTransaction]:
        return self.points.history(trainee_id)

    def get_progress(self, trainee_id: uuid.UUID) -> ActivityProgress:
        return self.points.progress(trainee_id)

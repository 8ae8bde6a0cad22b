"""Trainee identity lookup and the per-trainee collection queries."""
import secrets
import string
import uuid
from datetime import date

import structlog

from src.core.clock import Clock
from src.domains.trainees.exceptions import NotFoundError
from src.domains.trainees.models import (
    CheckIn,
    Course,
    CourseStatus,
    SessionStatus,
    Trainee,
    TraineeStatus,
    TrainingSession,
)
from src.domains.trainees.store import TraineeStore

logger = structlog.get_logger(__name__)

_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


class TraineeRegistry:
    """Resolves trainees by id or serial and lists what they own.

    Lookups of an unknown trainee raise NotFoundError; a known trainee with
    no records of a kind gets an empty list.
    """

    def __init__(self, store: TraineeStore, clock: Clock):
        self.store = store
        self.clock = clock

    def generate_serial_number(self) -> str:
        """Printable badge serial, e.g. ``TR-LZ3K8Q2A-7F3K9D1XQ``."""
        timestamp = _to_base36(int(self.clock.now().timestamp() * 1000))
        while True:
            serial = f"TR-{timestamp}-{_to_base36(secrets.randbits(48))}"
            if self.store.find_trainee_by_serial(serial) is None:
                return serial

    def register(
        self,
        name: str,
        email: str,
        phone: str | None = None,
        date_of_birth: date | None = None,
        education: str | None = None,
    ) -> Trainee:
        """Create a trainee with zero points and no flags."""
        trainee = Trainee(
            serial_number=self.generate_serial_number(),
            name=name,
            email=email,
            phone=phone,
            date_of_birth=date_of_birth,
            education=education,
            registration_date=self.clock.now(),
        )
        self.store.save_trainee(trainee)
        logger.info("trainee_registered", trainee_id=str(trainee.id), serial_number=trainee.serial_number)
        return trainee

    def get_by_id(self, trainee_id: uuid.UUID) -> Trainee:
        trainee = self.store.get_trainee(trainee_id)
        if trainee is None:
            raise NotFoundError("Trainee", trainee_id)
        return trainee

    def get_by_serial(self, serial_number: str) -> Trainee:
        trainee = self.store.find_trainee_by_serial(serial_number)
        if trainee is None:
            raise NotFoundError("Trainee", serial_number)
        return trainee

    def ensure_exists(self, trainee_id: uuid.UUID) -> None:
        if not self.store.has_trainee(trainee_id):
            raise NotFoundError("Trainee", trainee_id)

    def list_trainees(self) -> list[Trainee]:
        return self.store.list_trainees()

    def list_courses(self, trainee_id: uuid.UUID) -> list[Course]:
        self.ensure_exists(trainee_id)
        return self.store.list_courses(trainee_id)

    def list_sessions(self, trainee_id: uuid.UUID) -> list[TrainingSession]:
        self.ensure_exists(trainee_id)
        return self.store.list_sessions(trainee_id)

    def list_check_ins(self, trainee_id: uuid.UUID) -> list[CheckIn]:
        self.ensure_exists(trainee_id)
        return self.store.list_check_ins(trainee_id)

    def stats(self) -> dict[str, int]:
        """Totals across every trainee, recomputed on each call."""
        trainees = self.store.list_trainees()
        sessions = self.store.list_sessions()
        courses = self.store.list_courses()
        return {
            "total_trainees": len(trainees),
            "active_trainees": sum(1 for t in trainees if t.status == TraineeStatus.ACTIVE),
            "total_check_ins": len(self.store.list_check_ins()),
            "total_flags": sum(len(t.flags) for t in trainees),
            "total_training_sessions": len(sessions),
            "completed_sessions": sum(1 for s in sessions if s.status == SessionStatus.COMPLETED),
            "total_courses": len(courses),
            "completed_courses": sum(1 for c in courses if c.status == CourseStatus.COMPLETED),
        }

"""In-memory store owning every trainee record for the process lifetime."""
import uuid

from src.domains.trainees.models import (
    CheckIn,
    Course,
    PointTransaction,
    Trainee,
    TrainingSession,
)


class TraineeStore:
    """Owned store for trainees and their ledger collections.

    Readers always get deep copies, so a caller editing a returned record
    cannot bypass the checks done by the ledger and points components.
    Collections keep insertion order.
    """

    def __init__(self) -> None:
        self._trainees: dict[uuid.UUID, Trainee] = {}
        self._courses: dict[uuid.UUID, Course] = {}
        self._sessions: dict[uuid.UUID, TrainingSession] = {}
        self._check_ins: list[CheckIn] = []
        self._transactions: list[PointTransaction] = []

    # Trainees

    def get_trainee(self, trainee_id: uuid.UUID) -> Trainee | None:
        trainee = self._trainees.get(trainee_id)
        return trainee.model_copy(deep=True) if trainee else None

    def find_trainee_by_serial(self, serial_number: str) -> Trainee | None:
        for trainee in self._trainees.values():
            if trainee.serial_number == serial_number:
                return trainee.model_copy(deep=True)
        return None

    def list_trainees(self) -> list[Trainee]:
        return [t.model_copy(deep=True) for t in self._trainees.values()]

    def has_trainee(self, trainee_id: uuid.UUID) -> bool:
        return trainee_id in self._trainees

    def save_trainee(self, trainee: Trainee) -> None:
        self._trainees[trainee.id] = trainee.model_copy(deep=True)

    # Courses

    def get_course(self, course_id: uuid.UUID) -> Course | None:
        course = self._courses.get(course_id)
        return course.model_copy(deep=True) if course else None

    def list_courses(self, trainee_id: uuid.UUID | None = None) -> list[Course]:
        return [
            c.model_copy(deep=True)
            for c in self._courses.values()
            if trainee_id is None or c.trainee_id == trainee_id
        ]

    def save_course(self, course: Course) -> None:
        self._courses[course.id] = course.model_copy(deep=True)

    def remove_course(self, course_id: uuid.UUID) -> bool:
        return self._courses.pop(course_id, None) is not None

    # Training sessions

    def get_session(self, session_id: uuid.UUID) -> TrainingSession | None:
        session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    def list_sessions(self, trainee_id: uuid.UUID | None = None) -> list[TrainingSession]:
        return [
            s.model_copy(deep=True)
            for s in self._sessions.values()
            if trainee_id is None or s.trainee_id == trainee_id
        ]

    def save_session(self, session: TrainingSession) -> None:
        self._sessions[session.id] = session.model_copy(deep=True)

    def remove_session(self, session_id: uuid.UUID) -> bool:
        return self._sessions.pop(session_id, None) is not None

    # Append-only logs

    def append_check_in(self, check_in: CheckIn) -> None:
        self._check_ins.append(check_in)

    def list_check_ins(self, trainee_id: uuid.UUID | None = None) -> list[CheckIn]:
        return [c for c in self._check_ins if trainee_id is None or c.trainee_id == trainee_id]

    def append_transaction(self, transaction: PointTransaction) -> None:
        self._transactions.append(transaction)

    def list_transactions(self, trainee_id: uuid.UUID) -> list[PointTransaction]:
        return [t for t in self._transactions if t.trainee_id == trainee_id]

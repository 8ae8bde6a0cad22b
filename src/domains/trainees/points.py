"""Points accounting: completion awards, check-ins, flag penalties, progress views."""
import uuid
from dataclasses import dataclass

import structlog

from src.config.settings import settings
from src.core.clock import Clock
from src.domains.trainees.exceptions import RecordValidationError
from src.domains.trainees.models import (
    CheckIn,
    CourseStatus,
    Flag,
    LifecycleStatus,
    PointSource,
    PointTransaction,
    SessionStatus,
    Trainee,
)
from src.domains.trainees.progression import LevelProgress, check_level_change, progress_to_next_level
from src.domains.trainees.registry import TraineeRegistry
from src.domains.trainees.status import evaluate_session
from src.domains.trainees.store import TraineeStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ActivityProgress:
    """Counts shown on the trainee detail screen. Never cached."""

    points: int
    total_courses: int
    completed_courses: int
    active_courses: int
    total_sessions: int
    completed_sessions: int
    upcoming_sessions: int
    total_check_ins: int
    total_flags: int
    level: LevelProgress


class PointsAccount:
    """Owns every change to a trainee's points total.

    Each change is appended to the point history, so the stored total always
    equals the sum of the history's deltas. There is no floor: flags can push
    a trainee below zero.
    """

    def __init__(
        self,
        store: TraineeStore,
        registry: TraineeRegistry,
        clock: Clock,
        flag_penalty: int | None = None,
        check_in_points: int | None = None,
    ):
        self.store = store
        self.registry = registry
        self.clock = clock
        self.flag_penalty = abs(flag_penalty if flag_penalty is not None else settings.FLAG_PENALTY_POINTS)
        self.check_in_points = check_in_points if check_in_points is not None else settings.CHECKIN_POINTS

    def _apply(
        self,
        trainee: Trainee,
        delta: int,
        source: PointSource,
        reference_id: uuid.UUID | None = None,
        description: str | None = None,
    ) -> PointTransaction:
        old_points = trainee.points
        trainee.points += delta
        transaction = PointTransaction(
            trainee_id=trainee.id,
            delta=delta,
            source=source,
            reference_id=reference_id,
            description=description,
            created_at=self.clock.now(),
        )
        self.store.save_trainee(trainee)
        self.store.append_transaction(transaction)

        change = check_level_change(old_points, trainee.points)
        if change.leveled_up:
            logger.info(
                "trainee_leveled_up",
                trainee_id=str(trainee.id),
                old_level=change.old_level.id,
                new_level=change.new_level.id,
            )
        return transaction

    def award(
        self,
        trainee_id: uuid.UUID,
        delta: int,
        source: PointSource,
        reference_id: uuid.UUID | None = None,
        description: str | None = None,
    ) -> Trainee:
        """Add a positive amount to the trainee's total. No upper bound."""
        if delta <= 0:
            raise ValueError(f"award delta must be positive, got {delta}")

        trainee = self.registry.get_by_id(trainee_id)
        self._apply(trainee, delta, source, reference_id, description)
        logger.info("points_awarded", trainee_id=str(trainee_id), delta=delta, source=source.value, total=trainee.points)
        return trainee

    def penalize(self, trainee_id: uuid.UUID, reason: str) -> Flag:
        """Append a flag and subtract the fixed penalty from the total."""
        reason = (reason or "").strip()
        if not reason:
            raise RecordValidationError({"reason": "Reason is required"})

        trainee = self.registry.get_by_id(trainee_id)
        flag = Flag(reason=reason, timestamp=self.clock.now(), points_delta=-self.flag_penalty)
        trainee.flags.append(flag)
        self._apply(trainee, flag.points_delta, PointSource.FLAG, reference_id=flag.id, description=reason)

        logger.info(
            "trainee_flagged",
            trainee_id=str(trainee_id),
            penalty=self.flag_penalty,
            total=trainee.points,
            flag_count=len(trainee.flags),
        )
        return flag

    def record_check_in(self, trainee_id: uuid.UUID, points: int | None = None) -> CheckIn:
        """Append a check-in and award its points."""
        trainee = self.registry.get_by_id(trainee_id)
        check_in = CheckIn(
            trainee_id=trainee.id,
            serial_number=trainee.serial_number,
            timestamp=self.clock.now(),
            points=points if points is not None else self.check_in_points,
        )
        self.store.append_check_in(check_in)

        trainee.last_check_in = check_in.timestamp
        if check_in.points > 0:
            self._apply(trainee, check_in.points, PointSource.CHECK_IN, reference_id=check_in.id)
        else:
            self.store.save_trainee(trainee)

        logger.info("trainee_checked_in", trainee_id=str(trainee_id), points=check_in.points)
        return check_in

    def check_in_by_serial(self, serial_number: str) -> tuple[Trainee, CheckIn]:
        """Check in the trainee whose badge serial was scanned."""
        trainee = self.registry.get_by_serial(serial_number)
        check_in = self.record_check_in(trainee.id)
        return self.registry.get_by_id(trainee.id), check_in

    def history(self, trainee_id: uuid.UUID) -> list[PointTransaction]:
        self.registry.ensure_exists(trainee_id)
        return self.store.list_transactions(trainee_id)

    def progress(self, trainee_id: uuid.UUID) -> ActivityProgress:
        trainee = self.registry.get_by_id(trainee_id)
        courses = self.store.list_courses(trainee_id)
        sessions = self.store.list_sessions(trainee_id)
        now = self.clock.now()

        return ActivityProgress(
            points=trainee.points,
            total_courses=len(courses),
            completed_courses=sum(1 for c in courses if c.status == CourseStatus.COMPLETED),
            active_courses=sum(1 for c in courses if c.status == CourseStatus.ENROLLED),
            total_sessions=len(sessions),
            completed_sessions=sum(1 for s in sessions if s.status == SessionStatus.COMPLETED),
            upcoming_sessions=sum(
                1 for s in sessions if evaluate_session(s, now).status == LifecycleStatus.UPCOMING
            ),
            total_check_ins=len(self.store.list_check_ins(trainee_id)),
            total_flags=len(trainee.flags),
            level=progress_to_next_level(trainee.points),
        )

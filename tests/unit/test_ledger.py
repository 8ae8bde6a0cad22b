"""Tests for ActivityLedger - validation, edits, deletes, and completion."""

import uuid
from datetime import date, datetime, time, timezone

import pytest

from src.core.clock import FixedClock
from src.domains.trainees.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    RecordValidationError,
)
from src.domains.trainees.ledger import validate_course, validate_training_session
from src.domains.trainees.models import (
    CourseCategory,
    CourseStatus,
    PointSource,
    SessionStatus,
    Trainee,
)
from src.domains.trainees.service import TraineeService


class TestValidateCourse:
    """Tests for the advisory course validator."""

    def test_valid_fields_have_no_errors(self, course_fields: dict):
        assert validate_course(course_fields) == {}

    def test_missing_fields(self):
        errors = validate_course({})

        assert errors["title"] == "Course title is required"
        assert errors["start_date"] == "Start date is required"
        assert errors["end_date"] == "End date is required"

    def test_blank_title_rejected(self, course_fields: dict):
        errors = validate_course({**course_fields, "title": "   "})
        assert errors == {"title": "Course title is required"}

    def test_same_day_rejected(self, course_fields: dict):
        errors = validate_course({**course_fields, "start_date": "2024-01-01", "end_date": "2024-01-01"})
        assert errors == {"end_date": "End date must be after start date"}

    def test_end_before_start_rejected(self, course_fields: dict):
        errors = validate_course({**course_fields, "start_date": "2024-02-01", "end_date": "2024-01-01"})
        assert errors == {"end_date": "End date must be after start date"}

    @pytest.mark.parametrize("points", [0, 51, -3, 2.5, "abc", True, float("inf"), float("-inf"), float("nan")])
    def test_points_out_of_range(self, course_fields: dict, points):
        errors = validate_course({**course_fields, "points": points})
        assert errors == {"points": "Points must be between 1 and 50"}

    @pytest.mark.parametrize("points", [1, 5, 50, "12"])
    def test_points_in_range(self, course_fields: dict, points):
        assert validate_course({**course_fields, "points": points}) == {}

    def test_unknown_category_rejected(self, course_fields: dict):
        errors = validate_course({**course_fields, "category": "Astrology"})
        assert "category" in errors

    def test_malformed_date(self, course_fields: dict):
        errors = validate_course({**course_fields, "start_date": "not-a-date"})
        assert errors == {"start_date": "Start date must be a valid date"}


class TestValidateTrainingSession:
    """Tests for the advisory session validator."""

    def test_valid_fields_have_no_errors(self, session_fields: dict):
        assert validate_training_session(session_fields) == {}

    def test_missing_fields(self):
        errors = validate_training_session({})

        assert errors["title"] == "Session title is required"
        assert errors["date"] == "Date is required"
        assert errors["start_time"] == "Start time is required"
        assert errors["end_time"] == "End time is required"

    def test_end_time_equal_to_start_rejected(self, session_fields: dict):
        errors = validate_training_session({**session_fields, "start_time": "10:00", "end_time": "10:00"})
        assert errors == {"end_time": "End time must be after start time"}

    def test_end_time_before_start_rejected(self, session_fields: dict):
        errors = validate_training_session({**session_fields, "start_time": "17:00", "end_time": "09:00"})
        assert errors == {"end_time": "End time must be after start time"}

    def test_points_out_of_range(self, session_fields: dict):
        errors = validate_training_session({**session_fields, "points": 0})
        assert errors == {"points": "Points must be between 1 and 50"}

    def test_time_with_offset_rejected(self, session_fields: dict):
        errors = validate_training_session({**session_fields, "end_time": "17:00+00:00"})
        assert errors == {"end_time": "End time must be a valid time"}

    def test_both_times_with_offset_rejected(self, session_fields: dict):
        errors = validate_training_session(
            {**session_fields, "start_time": "09:00+03:00", "end_time": "17:00+03:00"}
        )
        assert set(errors) == {"start_time", "end_time"}


class TestAddCourse:
    """Tests for course enrollment."""

    def test_add_course_enrolled(self, service: TraineeService, sample_trainee: Trainee, course_fields: dict):
        course = service.add_course(sample_trainee.id, course_fields)

        assert course.status == CourseStatus.ENROLLED
        assert course.completed_at is None
        assert course.trainee_id == sample_trainee.id
        assert course.start_date == date(2024, 5, 1)
        assert course.category == CourseCategory.PROGRAMMING
        assert service.get_trainee_courses(sample_trainee.id) == [course]

    def test_defaults_applied(self, service: TraineeService, sample_trainee: Trainee):
        course = service.add_course(
            sample_trainee.id,
            {"title": "Basics", "start_date": "2024-07-01", "end_date": "2024-07-10"},
        )

        assert course.points == 5
        assert course.category == CourseCategory.GENERAL

    def test_points_five_accepted(self, service: TraineeService, sample_trainee: Trainee, course_fields: dict):
        course = service.add_course(sample_trainee.id, {**course_fields, "points": 5})
        assert course.points == 5
        assert course.status == CourseStatus.ENROLLED

    @pytest.mark.parametrize("points", [0, 51])
    def test_invalid_points_writes_nothing(
        self, service: TraineeService, sample_trainee: Trainee, course_fields: dict, points: int
    ):
        with pytest.raises(RecordValidationError) as exc_info:
            service.add_course(sample_trainee.id, {**course_fields, "points": points})

        assert exc_info.value.errors == {"points": "Points must be between 1 and 50"}
        assert service.get_trainee_courses(sample_trainee.id) == []

    def test_same_day_course_rejected(self, service: TraineeService, sample_trainee: Trainee, course_fields: dict):
        with pytest.raises(RecordValidationError) as exc_info:
            service.add_course(
                sample_trainee.id,
                {**course_fields, "start_date": "2024-01-01", "end_date": "2024-01-01"},
            )

        assert exc_info.value.errors == {"end_date": "End date must be after start date"}
        assert service.get_trainee_courses(sample_trainee.id) == []

    def test_unknown_trainee(self, service: TraineeService, course_fields: dict):
        with pytest.raises(NotFoundError):
            service.add_course(uuid.uuid4(), course_fields)

    def test_returned_record_is_a_copy(self, service: TraineeService, sample_trainee: Trainee, course_fields: dict):
        """Mutating a returned course does not touch the stored one."""
        course = service.add_course(sample_trainee.id, course_fields)
        course.status = CourseStatus.COMPLETED
        course.points = 999

        stored = service.get_trainee_courses(sample_trainee.id)[0]
        assert stored.status == CourseStatus.ENROLLED
        assert stored.points == 15


class TestUpdateCourse:
    """Tests for course edits."""

    def test_update_fields(self, service: TraineeService, sample_trainee: Trainee, course_fields: dict):
        course = service.add_course(sample_trainee.id, course_fields)

        updated = service.update_course(course.id, {"title": "Advanced Python", "points": 30})

        assert updated.title == "Advanced Python"
        assert updated.points == 30
        assert updated.start_date == course.start_date
        assert service.get_trainee_courses(sample_trainee.id)[0].title == "Advanced Python"

    def test_update_end_before_start_rejected(
        self, service: TraineeService, sample_trainee: Trainee, course_fields: dict
    ):
        course = service.add_course(sample_trainee.id, course_fields)

        with pytest.raises(RecordValidationError) as exc_info:
            service.update_course(course.id, {"end_date": "2024-04-01"})

        assert exc_info.value.errors == {"end_date": "End date must be after start date"}
        assert service.get_trainee_courses(sample_trainee.id)[0].end_date == date(2024, 5, 31)

    def test_update_ignores_identity_and_status(
        self, service: TraineeService, sample_trainee: Trainee, course_fields: dict
    ):
        course = service.add_course(sample_trainee.id, course_fields)

        updated = service.update_course(
            course.id,
            {"id": uuid.uuid4(), "trainee_id": uuid.uuid4(), "status": "completed", "title": "Renamed"},
        )

        assert updated.id == course.id
        assert updated.trainee_id == sample_trainee.id
        assert updated.status == CourseStatus.ENROLLED
        assert updated.completed_at is None

    def test_null_keeps_stored_values(self, service: TraineeService, sample_trainee: Trainee, course_fields: dict):
        course = service.add_course(sample_trainee.id, course_fields)

        updated = service.update_course(
            course.id,
            {"points": None, "category": None, "title": None, "start_date": None, "end_date": None},
        )

        assert updated.points == 15
        assert updated.category == CourseCategory.PROGRAMMING
        assert updated.title == "Python Fundamentals"
        assert updated.start_date == date(2024, 5, 1)
        assert updated.end_date == date(2024, 5, 31)

    def test_null_clears_optional_text(self, service: TraineeService, sample_trainee: Trainee, course_fields: dict):
        course = service.add_course(sample_trainee.id, course_fields)

        updated = service.update_course(course.id, {"instructor": None, "description": None})

        assert updated.instructor is None
        assert updated.description is None
        assert updated.points == 15

    def test_update_missing_course(self, service: TraineeService):
        with pytest.raises(NotFoundError):
            service.update_course(uuid.uuid4(), {"title": "x"})

    def test_update_completed_course_rejected(
        self, service: TraineeService, sample_trainee: Trainee, course_fields: dict
    ):
        course = service.add_course(sample_trainee.id, course_fields)
        service.mark_course_complete(course.id)

        with pytest.raises(InvalidTransitionError):
            service.update_course(course.id, {"points": 50})


class TestDelete:
    """Tests for idempotent hard deletes."""

    def test_delete_course(self, service: TraineeService, sample_trainee: Trainee, course_fields: dict):
        course = service.add_course(sample_trainee.id, course_fields)

        assert service.delete_course(course.id) is True
        assert service.get_trainee_courses(sample_trainee.id) == []

    def test_delete_missing_course_is_noop(
        self, service: TraineeService, sample_trainee: Trainee, course_fields: dict
    ):
        course = service.add_course(sample_trainee.id, course_fields)

        assert service.delete_course(uuid.uuid4()) is False
        assert service.get_trainee_courses(sample_trainee.id) == [course]

    def test_delete_twice(self, service: TraineeService, sample_trainee: Trainee, session_fields: dict):
        session = service.add_training_session(sample_trainee.id, session_fields)

        assert service.delete_training_session(session.id) is True
        assert service.delete_training_session(session.id) is False
        assert service.get_trainee_training_sessions(sample_trainee.id) == []

    def test_delete_completed_course_keeps_points(
        self, service: TraineeService, sample_trainee: Trainee, course_fields: dict
    ):
        course = service.add_course(sample_trainee.id, course_fields)
        service.mark_course_complete(course.id)

        service.delete_course(course.id)

        assert service.get_trainee_by_id(sample_trainee.id).points == 35


class TestMarkCourseComplete:
    """Tests for the course completion transition."""

    def test_complete_past_course_awards_points(
        self, service: TraineeService, clock: FixedClock, sample_trainee: Trainee, course_fields: dict
    ):
        course = service.add_course(sample_trainee.id, course_fields)

        completed = service.mark_course_complete(course.id)

        assert completed.status == CourseStatus.COMPLETED
        assert completed.completed_at == clock.now()
        assert service.get_trainee_by_id(sample_trainee.id).points == 20 + 15

        history = service.get_point_history(sample_trainee.id)
        assert history[-1].source == PointSource.COURSE_COMPLETION
        assert history[-1].reference_id == course.id

    def test_ongoing_course_rejected(self, service: TraineeService, sample_trainee: Trainee, course_fields: dict):
        course = service.add_course(
            sample_trainee.id, {**course_fields, "start_date": "2024-06-01", "end_date": "2024-06-30"}
        )

        with pytest.raises(InvalidTransitionError):
            service.mark_course_complete(course.id)

        stored = service.get_trainee_courses(sample_trainee.id)[0]
        assert stored.status == CourseStatus.ENROLLED
        assert stored.completed_at is None
        assert service.get_trainee_by_id(sample_trainee.id).points == 20

    def test_upcoming_course_rejected(self, service: TraineeService, sample_trainee: Trainee, course_fields: dict):
        course = service.add_course(
            sample_trainee.id, {**course_fields, "start_date": "2024-07-01", "end_date": "2024-07-30"}
        )

        with pytest.raises(InvalidTransitionError):
            service.mark_course_complete(course.id)

    def test_completion_allowed_once_time_passes(
        self, service: TraineeService, clock: FixedClock, sample_trainee: Trainee, course_fields: dict
    ):
        course = service.add_course(
            sample_trainee.id, {**course_fields, "start_date": "2024-06-01", "end_date": "2024-06-20"}
        )
        with pytest.raises(InvalidTransitionError):
            service.mark_course_complete(course.id)

        clock.advance(days=10)

        assert service.mark_course_complete(course.id).status == CourseStatus.COMPLETED

    def test_second_completion_rejected(self, service: TraineeService, sample_trainee: Trainee, course_fields: dict):
        course = service.add_course(sample_trainee.id, course_fields)
        first = service.mark_course_complete(course.id)

        with pytest.raises(InvalidTransitionError):
            service.mark_course_complete(course.id)

        stored = service.get_trainee_courses(sample_trainee.id)[0]
        assert stored.completed_at == first.completed_at
        assert service.get_trainee_by_id(sample_trainee.id).points == 35

    def test_missing_course(self, service: TraineeService):
        with pytest.raises(NotFoundError):
            service.mark_course_complete(uuid.uuid4())


class TestTrainingSessions:
    """Tests for session scheduling and completion."""

    def test_add_session_scheduled(self, service: TraineeService, sample_trainee: Trainee, session_fields: dict):
        session = service.add_training_session(sample_trainee.id, session_fields)

        assert session.status == SessionStatus.SCHEDULED
        assert session.start_time == time(9, 0)
        assert session.end_time == time(11, 30)

    def test_default_session_points(self, service: TraineeService, sample_trainee: Trainee, session_fields: dict):
        fields = {k: v for k, v in session_fields.items() if k != "points"}
        assert service.add_training_session(sample_trainee.id, fields).points == 20

    def test_invalid_session_writes_nothing(
        self, service: TraineeService, sample_trainee: Trainee, session_fields: dict
    ):
        with pytest.raises(RecordValidationError):
            service.add_training_session(sample_trainee.id, {**session_fields, "end_time": "08:00"})

        assert service.get_trainee_training_sessions(sample_trainee.id) == []

    def test_complete_session_next_day(self, service: TraineeService, clock: FixedClock, sample_trainee: Trainee):
        """A 09:00-17:00 session on 2023-01-01 can be completed on 2023-01-02."""
        clock.set(datetime(2023, 1, 2, tzinfo=timezone.utc))
        session = service.add_training_session(
            sample_trainee.id,
            {"title": "Workshop", "date": "2023-01-01", "start_time": "09:00", "end_time": "17:00", "points": 20},
        )

        completed = service.mark_session_complete(session.id)

        assert completed.status == SessionStatus.COMPLETED
        assert completed.completed_at == clock.now()
        assert service.get_trainee_by_id(sample_trainee.id).points == 40

        with pytest.raises(InvalidTransitionError):
            service.mark_session_complete(session.id)
        assert service.get_trainee_by_id(sample_trainee.id).points == 40

    def test_session_in_progress_rejected(
        self, service: TraineeService, clock: FixedClock, sample_trainee: Trainee, session_fields: dict
    ):
        session = service.add_training_session(
            sample_trainee.id, {**session_fields, "date": "2024-06-15", "start_time": "11:00", "end_time": "13:00"}
        )

        with pytest.raises(InvalidTransitionError):
            service.mark_session_complete(session.id)

        clock.advance(hours=1, seconds=1)
        assert service.mark_session_complete(session.id).status == SessionStatus.COMPLETED

    def test_update_session(self, service: TraineeService, sample_trainee: Trainee, session_fields: dict):
        session = service.add_training_session(sample_trainee.id, session_fields)

        updated = service.update_training_session(session.id, {"location": "Irbid", "end_time": "12:00"})

        assert updated.location == "Irbid"
        assert updated.end_time == time(12, 0)

    def test_update_session_invalid_interval(
        self, service: TraineeService, sample_trainee: Trainee, session_fields: dict
    ):
        session = service.add_training_session(sample_trainee.id, session_fields)

        with pytest.raises(RecordValidationError) as exc_info:
            service.update_training_session(session.id, {"start_time": "12:00"})

        assert exc_info.value.errors == {"end_time": "End time must be after start time"}
        assert service.get_trainee_training_sessions(sample_trainee.id)[0].start_time == time(9, 0)

    def test_null_keeps_stored_session_values(
        self, service: TraineeService, sample_trainee: Trainee, session_fields: dict
    ):
        session = service.add_training_session(sample_trainee.id, {**session_fields, "points": 35})

        updated = service.update_training_session(
            session.id,
            {"points": None, "date": None, "start_time": None, "end_time": None, "location": None},
        )

        assert updated.points == 35
        assert updated.date == date(2024, 6, 10)
        assert updated.start_time == time(9, 0)
        assert updated.end_time == time(11, 30)
        assert updated.location is None

    def test_add_session_with_offset_time_writes_nothing(
        self, service: TraineeService, sample_trainee: Trainee, session_fields: dict
    ):
        with pytest.raises(RecordValidationError) as exc_info:
            service.add_training_session(sample_trainee.id, {**session_fields, "end_time": "17:00+00:00"})

        assert exc_info.value.errors == {"end_time": "End time must be a valid time"}
        assert service.get_trainee_training_sessions(sample_trainee.id) == []

    def test_update_missing_session(self, service: TraineeService):
        with pytest.raises(NotFoundError):
            service.update_training_session(uuid.uuid4(), {"title": "x"})


class TestCompletionInvariant:
    """status == completed exactly when completed_at is set."""

    def test_invariant_across_lifecycle(
        self,
        service: TraineeService,
        clock: FixedClock,
        sample_trainee: Trainee,
        course_fields: dict,
        session_fields: dict,
    ):
        service.add_course(sample_trainee.id, course_fields)
        service.add_course(sample_trainee.id, {**course_fields, "start_date": "2024-07-01", "end_date": "2024-08-01"})
        service.add_training_session(sample_trainee.id, session_fields)

        def check():
            for c in service.get_trainee_courses(sample_trainee.id):
                assert (c.status == CourseStatus.COMPLETED) == (c.completed_at is not None)
            for s in service.get_trainee_training_sessions(sample_trainee.id):
                assert (s.status == SessionStatus.COMPLETED) == (s.completed_at is not None)

        check()
        for course in service.get_trainee_courses(sample_trainee.id):
            try:
                service.mark_course_complete(course.id)
            except InvalidTransitionError:
                pass
            check()

        clock.advance(days=60)
        for course in service.get_trainee_courses(sample_trainee.id):
            try:
                service.mark_course_complete(course.id)
            except InvalidTransitionError:
                pass
            check()

        assert all(c.status == CourseStatus.COMPLETED for c in service.get_trainee_courses(sample_trainee.id))


class TickingClock:
    """Moves one second forward on every read and remembers each reading."""

    def __init__(self, start: datetime):
        self._clock = FixedClock(start)
        self.readings: list[datetime] = []

    def now(self) -> datetime:
        current = self._clock.advance(seconds=1)
        self.readings.append(current)
        return current


class TestCompletionInstant:
    """completed_at is the same instant the Past check was made against."""

    def test_course_completed_at_matches_check(self, course_fields: dict):
        clock = TickingClock(datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc))
        service = TraineeService(clock=clock)
        trainee = service.register_trainee(name="T", email="t@example.com")
        course = service.add_course(trainee.id, course_fields)
        clock.readings.clear()

        completed = service.mark_course_complete(course.id)

        assert completed.completed_at == clock.readings[0]

    def test_session_completed_at_matches_check(self, session_fields: dict):
        clock = TickingClock(datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc))
        service = TraineeService(clock=clock)
        trainee = service.register_trainee(name="T", email="t@example.com")
        session = service.add_training_session(trainee.id, session_fields)
        clock.readings.clear()

        completed = service.mark_session_complete(session.id)

        assert completed.completed_at == clock.readings[0]

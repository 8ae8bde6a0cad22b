"""Trainee router: registry queries, course/session intents, flags, check-ins."""
from uuid import UUID

import structlog
from fastapi import APIRouter, HTTPException, status

from src.core.observability import set_trainee_context
from src.domains.trainees.dependencies import TraineeServiceDep
from src.domains.trainees.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    RecordValidationError,
    TraineeLedgerError,
)
from src.domains.trainees.models import Course, CourseCategory, TrainingSession
from src.domains.trainees.schemas import (
    BadgeResponse,
    CheckInResponse,
    CheckInScanRequest,
    CheckInScanResponse,
    CourseCreate,
    CourseResponse,
    CourseUpdate,
    FlagCreate,
    FlagResponse,
    LevelResponse,
    PointTransactionResponse,
    ProgressResponse,
    TraineeCreate,
    TraineeResponse,
    TraineeStatsResponse,
    TrainingSessionCreate,
    TrainingSessionResponse,
    TrainingSessionUpdate,
)
from src.domains.trainees.service import TraineeService
from src.domains.trainees.status import evaluate_course, evaluate_session, session_duration_hours

logger = structlog.get_logger(__name__)

router = APIRouter()


def _http_error(exc: TraineeLedgerError) -> HTTPException:
    """Translate a ledger error into the API's error payload."""
    if isinstance(exc, RecordValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": "validation_error", "errors": exc.errors},
        )
    if isinstance(exc, NotFoundError):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "message": f"{exc.entity} not found"},
        )
    if isinstance(exc, InvalidTransitionError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "invalid_transition", "message": f"{exc.entity} {exc.reason}"},
        )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _course_to_response(service: TraineeService, course: Course) -> CourseResponse:
    snapshot = evaluate_course(course, service.clock.now())
    return CourseResponse(
        **course.model_dump(),
        lifecycle_status=snapshot.status,
        status_label=snapshot.label,
        days_remaining=snapshot.days_remaining,
    )


def _session_to_response(service: TraineeService, session: TrainingSession) -> TrainingSessionResponse:
    snapshot = evaluate_session(session, service.clock.now())
    return TrainingSessionResponse(
        **session.model_dump(),
        lifecycle_status=snapshot.status,
        status_label=snapshot.label,
        days_remaining=snapshot.days_remaining,
        duration_hours=session_duration_hours(session),
    )


def _get_owned_course(service: TraineeService, trainee_id: UUID, course_id: UUID) -> Course:
    for course in service.get_trainee_courses(trainee_id):
        if course.id == course_id:
            return course
    raise NotFoundError("Course", course_id)


def _get_owned_session(service: TraineeService, trainee_id: UUID, session_id: UUID) -> TrainingSession:
    for session in service.get_trainee_training_sessions(trainee_id):
        if session.id == session_id:
            return session
    raise NotFoundError("TrainingSession", session_id)


# Registry endpoints

@router.post("", response_model=TraineeResponse, status_code=status.HTTP_201_CREATED)
async def register_trainee(
    request: TraineeCreate,
    service: TraineeServiceDep,
) -> TraineeResponse:
    """Register a new trainee and issue their badge serial."""
    trainee = service.register_trainee(**request.model_dump())
    return TraineeResponse.model_validate(trainee)


@router.get("", response_model=list[TraineeResponse])
async def list_trainees(service: TraineeServiceDep) -> list[TraineeResponse]:
    """List trainees in registration order."""
    return [TraineeResponse.model_validate(t) for t in service.list_trainees()]


@router.get("/stats", response_model=TraineeStatsResponse)
async def get_stats(service: TraineeServiceDep) -> TraineeStatsResponse:
    """Totals across all trainees."""
    return TraineeStatsResponse(**service.get_stats())


@router.get("/categories", response_model=list[str])
async def list_categories() -> list[str]:
    """Course categories accepted on enrollment."""
    return [c.value for c in CourseCategory]


@router.post("/checkins/scan", response_model=CheckInScanResponse, status_code=status.HTTP_201_CREATED)
async def check_in_by_serial(
    request: CheckInScanRequest,
    service: TraineeServiceDep,
) -> CheckInScanResponse:
    """Check in the trainee whose badge was scanned."""
    try:
        trainee, check_in = service.check_in_by_scan(request.data)
    except TraineeLedgerError as e:
        logger.info("scan_checkin_failed", error=str(e))
        raise _http_error(e) from e

    set_trainee_context(str(trainee.id), trainee.serial_number)
    return CheckInScanResponse(
        trainee=TraineeResponse.model_validate(trainee),
        check_in=CheckInResponse.model_validate(check_in),
    )


@router.get("/serial/{serial_number}", response_model=TraineeResponse)
async def get_trainee_by_serial(
    serial_number: str,
    service: TraineeServiceDep,
) -> TraineeResponse:
    """Look up a trainee by badge serial."""
    try:
        trainee = service.get_trainee_by_serial(serial_number)
    except TraineeLedgerError as e:
        raise _http_error(e) from e
    return TraineeResponse.model_validate(trainee)


@router.get("/{trainee_id}", response_model=TraineeResponse)
async def get_trainee(
    trainee_id: UUID,
    service: TraineeServiceDep,
) -> TraineeResponse:
    """Get trainee details."""
    try:
        trainee = service.get_trainee_by_id(trainee_id)
    except TraineeLedgerError as e:
        raise _http_error(e) from e
    return TraineeResponse.model_validate(trainee)


@router.get("/{trainee_id}/badge", response_model=BadgeResponse)
async def get_badge(
    trainee_id: UUID,
    service: TraineeServiceDep,
) -> BadgeResponse:
    """QR code for the trainee's printable badge."""
    try:
        trainee = service.get_trainee_by_id(trainee_id)
        payload, qr_code = service.get_badge(trainee_id)
    except TraineeLedgerError as e:
        raise _http_error(e) from e
    return BadgeResponse(
        trainee_id=trainee.id,
        serial_number=trainee.serial_number,
        payload=payload,
        qr_code=qr_code,
    )


# Course endpoints

@router.get("/{trainee_id}/courses", response_model=list[CourseResponse])
async def list_courses(
    trainee_id: UUID,
    service: TraineeServiceDep,
) -> list[CourseResponse]:
    """List a trainee's courses in enrollment order, labelled as of now."""
    try:
        courses = service.get_trainee_courses(trainee_id)
    except TraineeLedgerError as e:
        raise _http_error(e) from e
    return [_course_to_response(service, c) for c in courses]


@router.post("/{trainee_id}/courses", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
async def add_course(
    trainee_id: UUID,
    request: CourseCreate,
    service: TraineeServiceDep,
) -> CourseResponse:
    """Enroll a trainee in a course."""
    set_trainee_context(str(trainee_id))
    try:
        course = service.add_course(trainee_id, request.model_dump(exclude_unset=True))
    except TraineeLedgerError as e:
        raise _http_error(e) from e
    return _course_to_response(service, course)


@router.patch("/{trainee_id}/courses/{course_id}", response_model=CourseResponse)
async def update_course(
    trainee_id: UUID,
    course_id: UUID,
    request: CourseUpdate,
    service: TraineeServiceDep,
) -> CourseResponse:
    """Edit a course; the merged record is validated again."""
    set_trainee_context(str(trainee_id))
    try:
        _get_owned_course(service, trainee_id, course_id)
        course = service.update_course(course_id, request.model_dump(exclude_unset=True))
    except TraineeLedgerError as e:
        raise _http_error(e) from e
    return _course_to_response(service, course)


@router.delete("/{trainee_id}/courses/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(
    trainee_id: UUID,
    course_id: UUID,
    service: TraineeServiceDep,
) -> None:
    """Remove a course enrollment. Unknown course ids are ignored."""
    set_trainee_context(str(trainee_id))
    try:
        _get_owned_course(service, trainee_id, course_id)
    except NotFoundError as e:
        if e.entity == "Trainee":
            raise _http_error(e) from e
        return None
    service.delete_course(course_id)
    return None


@router.post("/{trainee_id}/courses/{course_id}/complete", response_model=CourseResponse)
async def complete_course(
    trainee_id: UUID,
    course_id: UUID,
    service: TraineeServiceDep,
) -> CourseResponse:
    """Mark an ended course completed and award its points."""
    set_trainee_context(str(trainee_id))
    try:
        _get_owned_course(service, trainee_id, course_id)
        course = service.mark_course_complete(course_id)
    except TraineeLedgerError as e:
        raise _http_error(e) from e
    return _course_to_response(service, course)


# Training session endpoints

@router.get("/{trainee_id}/sessions", response_model=list[TrainingSessionResponse])
async def list_sessions(
    trainee_id: UUID,
    service: TraineeServiceDep,
) -> list[TrainingSessionResponse]:
    """List a trainee's training sessions, labelled as of now."""
    try:
        sessions = service.get_trainee_training_sessions(trainee_id)
    except TraineeLedgerError as e:
        raise _http_error(e) from e
    return [_session_to_response(service, s) for s in sessions]


@router.post(
    "/{trainee_id}/sessions",
    response_model=TrainingSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_session(
    trainee_id: UUID,
    request: TrainingSessionCreate,
    service: TraineeServiceDep,
) -> TrainingSessionResponse:
    """Schedule a training session."""
    set_trainee_context(str(trainee_id))
    try:
        session = service.add_training_session(trainee_id, request.model_dump(exclude_unset=True))
    except TraineeLedgerError as e:
        raise _http_error(e) from e
    return _session_to_response(service, session)


@router.patch("/{trainee_id}/sessions/{session_id}", response_model=TrainingSessionResponse)
async def update_session(
    trainee_id: UUID,
    session_id: UUID,
    request: TrainingSessionUpdate,
    service: TraineeServiceDep,
) -> TrainingSessionResponse:
    """Edit a training session; the merged record is validated again."""
    set_trainee_context(str(trainee_id))
    try:
        _get_owned_session(service, trainee_id, session_id)
        session = service.update_training_session(session_id, request.model_dump(exclude_unset=True))
    except TraineeLedgerError as e:
        raise _http_error(e) from e
    return _session_to_response(service, session)


@router.delete("/{trainee_id}/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    trainee_id: UUID,
    session_id: UUID,
    service: TraineeServiceDep,
) -> None:
    """Remove a training session. Unknown session ids are ignored."""
    set_trainee_context(str(trainee_id))
    try:
        _get_owned_session(service, trainee_id, session_id)
    except NotFoundError as e:
        if e.entity == "Trainee":
            raise _http_error(e) from e
        return None
    service.delete_training_session(session_id)
    return None


@router.post("/{trainee_id}/sessions/{session_id}/complete", response_model=TrainingSessionResponse)
async def complete_session(
    trainee_id: UUID,
    session_id: UUID,
    service: TraineeServiceDep,
) -> TrainingSessionResponse:
    """Mark an ended session completed and award its points."""
    set_trainee_context(str(trainee_id))
    try:
        _get_owned_session(service, trainee_id, session_id)
        session = service.mark_session_complete(session_id)
    except TraineeLedgerError as e:
        raise _http_error(e) from e
    return _session_to_response(service, session)


# Flags, check-ins and points

@router.post("/{trainee_id}/flags", response_model=FlagResponse, status_code=status.HTTP_201_CREATED)
async def flag_trainee(
    trainee_id: UUID,
    request: FlagCreate,
    service: TraineeServiceDep,
) -> FlagResponse:
    """Flag a trainee and deduct the penalty."""
    set_trainee_context(str(trainee_id))
    try:
        flag = service.flag_trainee(trainee_id, request.reason)
    except TraineeLedgerError as e:
        raise _http_error(e) from e
    return FlagResponse.model_validate(flag)


@router.get("/{trainee_id}/checkins", response_model=list[CheckInResponse])
async def list_check_ins(
    trainee_id: UUID,
    service: TraineeServiceDep,
) -> list[CheckInResponse]:
    """List a trainee's check-ins in the order they happened."""
    try:
        check_ins = service.get_trainee_check_ins(trainee_id)
    except TraineeLedgerError as e:
        raise _http_error(e) from e
    return [CheckInResponse.model_validate(c) for c in check_ins]


@router.post("/{trainee_id}/checkins", response_model=CheckInResponse, status_code=status.HTTP_201_CREATED)
async def check_in_trainee(
    trainee_id: UUID,
    service: TraineeServiceDep,
) -> CheckInResponse:
    """Record a manual check-in."""
    set_trainee_context(str(trainee_id))
    try:
        check_in = service.check_in_trainee(trainee_id)
    except TraineeLedgerError as e:
        raise _http_error(e) from e
    return CheckInResponse.model_validate(check_in)


@router.get("/{trainee_id}/points", response_model=list[PointTransactionResponse])
async def get_point_history(
    trainee_id: UUID,
    service: TraineeServiceDep,
) -> list[PointTransactionResponse]:
    """Every change to the trainee's points total, oldest first."""
    try:
        history = service.get_point_history(trainee_id)
    except TraineeLedgerError as e:
        raise _http_error(e) from e
    return [PointTransactionResponse.model_validate(t) for t in history]


@router.get("/{trainee_id}/progress", response_model=ProgressResponse)
async def get_progress(
    trainee_id: UUID,
    service: TraineeServiceDep,
) -> ProgressResponse:
    """Completion counts and progression level."""
    try:
        progress = service.get_progress(trainee_id)
    except TraineeLedgerError as e:
        raise _http_error(e) from e

    return ProgressResponse(
        points=progress.points,
        total_courses=progress.total_courses,
        completed_courses=progress.completed_courses,
        active_courses=progress.active_courses,
        total_sessions=progress.total_sessions,
        completed_sessions=progress.completed_sessions,
        upcoming_sessions=progress.upcoming_sessions,
        total_check_ins=progress.total_check_ins,
        total_flags=progress.total_flags,
        level=LevelResponse.model_validate(progress.level.level),
        next_level=LevelResponse.model_validate(progress.level.next_level) if progress.level.next_level else None,
        progress_percent=progress.level.progress_percent,
        points_to_next=progress.level.points_to_next,
    )

"""Test configuration and fixtures for Trainee Tracker API."""

from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from src.core.clock import FixedClock
from src.domains.trainees.dependencies import get_trainee_service
from src.domains.trainees.models import Trainee
from src.domains.trainees.service import TraineeService
from src.main import create_app

# Reference instant every test starts from unless it moves the clock
NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for tests."""
    return "asyncio"


@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen at NOW; tests advance it explicitly."""
    return FixedClock(NOW)


@pytest.fixture
def service(clock: FixedClock) -> TraineeService:
    """Fresh in-memory trainee service."""
    return TraineeService(clock=clock)


@pytest.fixture
def sample_trainee(service: TraineeService) -> Trainee:
    """Registered trainee with 20 starting points."""
    return service.register_trainee(
        name="Test Trainee",
        email="trainee@example.com",
        phone="+962 79 000 0000",
        education="University Student",
        points=20,
    )


@pytest.fixture
def other_trainee(service: TraineeService) -> Trainee:
    """Second trainee, for ownership checks."""
    return service.register_trainee(name="Other Trainee", email="other@example.com")


@pytest.fixture
def course_fields() -> dict:
    """Valid enrollment fields for a course that already ended."""
    return {
        "title": "Python Fundamentals",
        "description": "Intro course",
        "start_date": "2024-05-01",
        "end_date": "2024-05-31",
        "instructor": "Dana",
        "category": "Programming",
        "points": 15,
    }


@pytest.fixture
def session_fields() -> dict:
    """Valid fields for a session that already ended."""
    return {
        "title": "Morning Workshop",
        "date": "2024-06-10",
        "start_time": "09:00",
        "end_time": "11:30",
        "location": "Amman",
        "points": 20,
    }


@pytest.fixture
async def client(service: TraineeService) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client bound to the per-test service."""
    app = create_app()
    app.dependency_overrides[get_trainee_service] = lambda: service

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()

"""FastAPI dependencies for the trainee domain.

The service holds all state in memory, so one instance lives for the whole
process. Tests swap it via ``app.dependency_overrides[get_trainee_service]``.
"""
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from src.domains.trainees.service import TraineeService


@lru_cache
def get_trainee_service() -> TraineeService:
    """Get the process-wide trainee service."""
    return TraineeService()


TraineeServiceDep = Annotated[TraineeService, Depends(get_trainee_service)]

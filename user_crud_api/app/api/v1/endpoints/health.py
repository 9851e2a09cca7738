"""
Health check endpoint.

``GET /health`` answers 200 whenever the process is up.  It reports
which storage backend is configured but does not query the database.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from user_crud_api.app.api.deps import get_settings, get_user_service
from user_crud_api.app.core.config import Settings
from user_crud_api.app.services.user_service import UserService

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    service: str
    backend: str
    version: str


@router.get("/health", response_model=HealthResponse)
def health_check(
    service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        service=settings.project_name,
        backend=service.backend_name,
        version=settings.api_version,
    )

"""Health check endpoint."""
from datetime import datetime, UTC

from fastapi import APIRouter, Depends, Request
import logging

from tsc_survey.config import Settings
from tsc_survey.dependencies import get_app_settings
from tsc_survey.schemas.submission import HealthResponse
from tsc_survey.version import APP_VERSION

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """Liveness plus whether the submission path is configured. Never touches GitHub."""
    return HealthResponse(
        message="Survey API is alive",
        method=request.method,
        path=request.url.path,
        hasToken=bool(settings.github_token),
        hasOwner=bool(settings.github_owner),
        hasRepo=bool(settings.github_repo),
        version=APP_VERSION,
        environment=settings.environment,
        time=datetime.now(UTC),
    )

"""Survey submission endpoint."""
from __future__ import annotations

import logging
from datetime import datetime, UTC

from fastapi import APIRouter, Depends, Request, Response

from tsc_survey.dependencies import get_submission_service
from tsc_survey.middleware.cors import cors_policy
from tsc_survey.schemas.submission import SubmissionRecord, SubmitRequest, SubmitResponse
from tsc_survey.services.submission_service import SubmissionService
from tsc_survey.utils.exceptions import UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.options("/submit", status_code=204, include_in_schema=False)
async def submit_preflight(request: Request) -> Response:
    """Answer the CORS preflight a cross-origin JSON POST triggers."""
    return cors_policy.preflight_response(request)


@router.post("/submit", response_model=SubmitResponse)
async def submit_survey(
    payload: SubmitRequest,
    service: SubmissionService = Depends(get_submission_service),
) -> SubmitResponse:
    """Store a survey response, replacing the player's previous open issue."""
    record = SubmissionRecord.from_request(payload)
    logger.info(f"Survey submission from {record.player_name!r} ({record.language})")

    try:
        outcome = await service.submit(record)
    except UpstreamError as exc:
        # Lookup failed before any issue was touched
        exc.extra.update(closed=[], close_failures=[])
        raise

    if not outcome.succeeded:
        outcome.error.extra.update(closed=outcome.closed, close_failures=outcome.close_failures)
        raise outcome.error

    return SubmitResponse(
        status=outcome.status.value,
        issue=outcome.issue,
        closed=outcome.closed,
        close_failures=outcome.close_failures,
        time=datetime.now(UTC),
    )

"""Respondent report endpoints: JSON tallies, text tables and bar charts."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse, Response

from tsc_survey.data.questions import QUESTION_OPTIONS
from tsc_survey.dependencies import get_report_service
from tsc_survey.schemas.report import ReportResponse
from tsc_survey.services.report_renderer import render_bar_chart, render_text_report
from tsc_survey.services.report_service import ReportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/report")


def report_filters(
    refresh: bool = False,
    language: Optional[str] = None,
    Q2_time: Optional[str] = None,
    Q3_time: Optional[str] = None,
    Q4_day: Optional[str] = None,
) -> dict:
    answers = {
        question: code
        for question, code in {"Q2_time": Q2_time, "Q3_time": Q3_time, "Q4_day": Q4_day}.items()
        if code
    }
    return {"refresh": refresh, "language": language or None, "answers": answers}


@router.get("", response_model=ReportResponse)
async def get_report(
    filters: dict = Depends(report_filters),
    service: ReportService = Depends(get_report_service),
) -> ReportResponse:
    """Latest submission per player, tabulated per question and language."""
    return await service.get_report(**filters)


@router.get("/table", response_class=PlainTextResponse)
async def get_report_table(
    filters: dict = Depends(report_filters),
    service: ReportService = Depends(get_report_service),
) -> str:
    report = await service.get_report(**filters)
    return render_text_report(report)


@router.get("/chart/{question}.png")
async def get_report_chart(
    question: str,
    filters: dict = Depends(report_filters),
    service: ReportService = Depends(get_report_service),
) -> Response:
    if question not in QUESTION_OPTIONS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown question: {question}")

    report = await service.get_report(**filters)
    tally = next(item for item in report.questions if item.question == question)
    image = await run_in_threadpool(render_bar_chart, tally)
    return Response(content=image, media_type="image/png")

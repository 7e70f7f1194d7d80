"""Pydantic schemas for the respondent report."""
from datetime import datetime
from typing import Optional

from tsc_survey.schemas.base import BaseSchema


class OptionCount(BaseSchema):
    """Count for one answer option of a question."""
    code: str  # Option letter, or "Other"
    label: str
    count: int


class QuestionTally(BaseSchema):
    """Counts for one question in fixed option order."""
    question: str
    title: str
    total: int
    options: list[OptionCount]


class LanguageCount(BaseSchema):
    code: str
    label: str
    count: int
    known: bool


class ReportFilters(BaseSchema):
    language: Optional[str] = None
    answers: dict[str, str] = {}


class ReportResponse(BaseSchema):
    """Tabulated view of the latest submission per player."""
    ok: bool = True
    total_rows: int
    respondents: int
    filters: ReportFilters
    questions: list[QuestionTally]
    languages: list[LanguageCount]
    generated_at: datetime

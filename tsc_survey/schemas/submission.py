"""Pydantic schemas for the survey submission and health endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from tsc_survey.data.questions import (
    CSV_COLUMNS,
    FIELD_MAX_LENGTHS,
    QUESTION_FIELDS,
    QUESTION_OPTIONS,
    REQUIRED_FIELDS,
    normalize_language,
)
from tsc_survey.schemas.base import BaseSchema
from tsc_survey.utils.answers import canonical_code
from tsc_survey.utils.datetime_helpers import utc_now_iso
from tsc_survey.utils.exceptions import SubmissionValidationError
from tsc_survey.utils.names import normalize_player_name


def sanitize_text(value: Optional[str], max_len: int = 2000) -> str:
    """Drop carriage returns, trim, and cap ``value`` at ``max_len`` characters."""
    text = (value or "").replace("\r", "").strip()
    if len(text) <= max_len:
        return text
    return text[:max_len] + "…"


class SubmitRequest(BaseModel):
    """Raw survey payload posted by the form; every field is checked by :class:`SubmissionRecord`."""

    model_config = ConfigDict(extra="ignore")

    timestamp: Optional[str] = None
    language: Optional[str] = None
    player_name: Optional[str] = None
    Q2_time: Optional[str] = None
    Q3_time: Optional[str] = None
    Q4_day: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def coerce_scalars(cls, value):
        """Accept JSON numbers and booleans as their text form."""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return value


class SubmissionRecord(BaseModel):
    """A validated, sanitized survey submission. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    timestamp: str
    language: str
    player_name: str
    Q2_time: str
    Q3_time: str
    Q4_day: str

    @classmethod
    def from_request(cls, request: SubmitRequest) -> "SubmissionRecord":
        """
        Validate a raw request at the API boundary.

        Language codes are lower-cased and recognized answers reduced to their
        option letter before any length cap applies. Anything else is kept as
        sanitized text so the report can count it under ``Other``. Player
        names are keyed the same way the report keys respondents.

        Raises:
            SubmissionValidationError: listing the missing fields in form order.
        """
        raw = {name: getattr(request, name) for name in CSV_COLUMNS}
        raw["player_name"] = normalize_player_name(raw["player_name"])
        values = {name: sanitize_text(raw[name], FIELD_MAX_LENGTHS[name]) for name in CSV_COLUMNS}

        missing = [name for name in REQUIRED_FIELDS if not values[name]]
        if missing:
            raise SubmissionValidationError("Missing required fields", missing=missing)

        answers = {
            field: canonical_code(sanitize_text(raw[field]), QUESTION_OPTIONS[field]) or values[field]
            for field in QUESTION_FIELDS
        }

        return cls(
            timestamp=values["timestamp"] or utc_now_iso(),
            language=normalize_language(values["language"]),
            player_name=values["player_name"],
            **answers,
        )

    def as_row(self) -> dict[str, str]:
        """Record values keyed by CSV export column, in column order."""
        return {column: getattr(self, column) for column in CSV_COLUMNS}


class IssueRef(BaseModel):
    """Reference to the GitHub issue that stores a submission."""

    number: int
    url: str


class SubmitResponse(BaseSchema):
    """Response returned after a successful submission."""

    ok: Literal[True] = True
    message: str = "Submitted."
    status: Literal["created", "created_with_close_failures"]
    issue: IssueRef
    closed: list[int] = []
    close_failures: list[int] = []
    time: datetime


class HealthResponse(BaseSchema):
    """Liveness plus presence of the submission path configuration."""

    ok: bool = True
    message: str
    method: str
    path: str
    hasToken: bool
    hasOwner: bool
    hasRepo: bool
    version: str
    environment: str
    time: datetime

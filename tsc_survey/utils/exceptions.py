"""Exception taxonomy shared by the API and the reporting pipeline.

Every error carries the HTTP status it maps to and renders itself as the
stable ``{"ok": false, ...}`` envelope returned to callers.
"""
from __future__ import annotations

from typing import Any


class SurveyException(RuntimeError):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    stage: str = "server"

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"ok": False, "stage": self.stage, "error": self.message}
        payload.update(self.extra)
        return payload


class SubmissionValidationError(SurveyException):
    """Missing or malformed submission input; fixable by the client."""

    status_code = 400
    stage = "validation"

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        extra: dict[str, Any] = {}
        if missing:
            extra["missing"] = list(missing)
        super().__init__(message, **extra)
        self.missing = list(missing or [])


class ConfigurationError(SurveyException):
    """A required server secret or setting is absent; fixable by the operator."""

    status_code = 500
    stage = "server"


class UpstreamError(SurveyException):
    """The issue tracker answered with a non-2xx status."""

    status_code = 502
    stage = "github"

    def __init__(
        self,
        message: str,
        github_status: int | None = None,
        detail: str = "",
    ) -> None:
        super().__init__(message, githubStatus=github_status, detail=detail)
        self.github_status = github_status
        self.detail = detail


class UpstreamUnavailableError(UpstreamError):
    """The issue tracker could not be reached or did not answer in time."""

    status_code = 503


class CsvParseError(SurveyException):
    """The CSV export cannot be parsed into survey rows."""

    status_code = 422
    stage = "report"

    def __init__(self, message: str, missing_columns: list[str] | None = None) -> None:
        extra: dict[str, Any] = {}
        if missing_columns:
            extra["missing_columns"] = list(missing_columns)
        super().__init__(message, **extra)
        self.missing_columns = list(missing_columns or [])


class ReportSourceError(SurveyException):
    """The CSV export could not be fetched or read."""

    status_code = 502
    stage = "report"

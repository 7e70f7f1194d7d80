"""Survey form controller: prefill, field validation and submission.

The controller mirrors the browser form: it holds the values a respondent
entered, validates them field by field, and posts a single submission at a
time to ``/api/submit``. Configuration is passed in explicitly as an
immutable :class:`FormConfig`; the language preference lives behind a
:class:`LanguagePreferenceStore`.
"""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Optional
from urllib.parse import parse_qsl

import httpx

from tsc_survey.data.questions import CSV_COLUMNS, QUESTION_FIELDS
from tsc_survey.services.translation_service import (
    LANGUAGE_PREFERENCE_KEY,
    InMemoryPreferenceStore,
    LanguagePreferenceStore,
    Translations,
)
from tsc_survey.utils.datetime_helpers import utc_now_iso

logger = logging.getLogger(__name__)

# Query-string parameter -> form field
PREFILL_PARAMS = {"q02": "Q2_time", "q03": "Q3_time", "q04": "Q4_day"}

REQUIRED_MESSAGE = "Required"
SELECT_ONE_MESSAGE = "Please select one option."
API_ERROR_MESSAGE = "API error. Please try again."
NETWORK_ERROR_MESSAGE = "Network error. Please try again."


class FormPhase(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"


class SubmissionInProgressError(RuntimeError):
    """Raised when a submit is attempted while another one is outstanding."""


@dataclass(frozen=True)
class FormConfig:
    api_url: str
    default_language: str = "en"
    timeout: float = 20.0
    translations: Translations = field(default_factory=Translations)


@dataclass(frozen=True)
class FormValues:
    player_name: str = ""
    language: str = "en"
    Q2_time: str = ""
    Q3_time: str = ""
    Q4_day: str = ""


@dataclass
class SubmitResult:
    ok: bool
    message: str
    field_errors: dict[str, str] = field(default_factory=dict)
    response: Optional[dict[str, Any]] = None
    record: Optional[dict[str, str]] = None


def encode_csv_row(record: Mapping[str, str]) -> str:
    """Serialize a record as one CSV line in export column order."""
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="").writerow([record.get(column, "") or "" for column in CSV_COLUMNS])
    return buffer.getvalue()


def describe_error_response(status_code: int, detail: Optional[Mapping[str, Any]]) -> str:
    """Human-readable summary of a non-2xx response from the submission endpoint."""
    detail = detail or {}
    stage = f" [{detail['stage']}]" if detail.get("stage") else ""
    upstream = f" GitHub:{detail['githubStatus']}" if detail.get("githubStatus") else ""
    error = f" - {detail['error']}" if detail.get("error") else ""
    return f"Server error ({status_code}).{stage}{upstream}{error}".strip()


class SurveyFormController:
    """Client-side state machine for one survey form."""

    def __init__(
        self,
        config: FormConfig,
        store: Optional[LanguagePreferenceStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.store = store if store is not None else InMemoryPreferenceStore()
        self._transport = transport
        self.phase = FormPhase.IDLE
        self.values = FormValues(language=self.config.default_language)

    @property
    def is_submitting(self) -> bool:
        return self.phase == FormPhase.SUBMITTING

    def initialize(self, query: str | Mapping[str, str] = "") -> FormValues:
        """Pick the initial language and prefill answers from a query string."""
        params = dict(parse_qsl(query.lstrip("?"))) if isinstance(query, str) else dict(query)

        language = self.config.translations.resolve_language(
            params.get("lang"),
            self.store.get(LANGUAGE_PREFERENCE_KEY),
            self.config.default_language,
        )
        prefill = {name: params[param].strip() for param, name in PREFILL_PARAMS.items() if params.get(param)}
        self.values = replace(self.values, **prefill)
        self.set_language(language)
        return self.values

    def set_language(self, language: str) -> str:
        """Switch the form language and persist the preference."""
        code = self.config.translations.resolve_language(language, self.config.default_language)
        self.store.set(LANGUAGE_PREFERENCE_KEY, code)
        self.values = replace(self.values, language=code)
        return code

    def update(self, **values: str) -> FormValues:
        unknown = set(values) - {"player_name", *QUESTION_FIELDS}
        if unknown:
            raise ValueError(f"Unknown form fields: {', '.join(sorted(unknown))}")
        self.values = replace(self.values, **values)
        return self.values

    def reset(self) -> FormValues:
        """Clear the answers, keeping the chosen language."""
        self.values = FormValues(language=self.values.language)
        return self.values

    def text(self, key: str, fallback: str) -> str:
        return self.config.translations.get(key, self.values.language) or fallback

    def validate(self) -> dict[str, str]:
        """Field-level error messages; empty when the form can be submitted."""
        errors = {}
        if not self.values.player_name.strip():
            errors["player_name"] = self.text("required", REQUIRED_MESSAGE)
        for name in QUESTION_FIELDS:
            if not getattr(self.values, name).strip():
                errors[name] = self.text("select_one", SELECT_ONE_MESSAGE)
        return errors

    def build_record(self) -> dict[str, str]:
        return {
            "timestamp": utc_now_iso(),
            "language": self.values.language,
            "player_name": self.values.player_name.strip(),
            "Q2_time": self.values.Q2_time.strip(),
            "Q3_time": self.values.Q3_time.strip(),
            "Q4_day": self.values.Q4_day.strip(),
        }

    async def submit(self) -> SubmitResult:
        """
        Validate and post the form.

        Raises:
            SubmissionInProgressError: if a previous submit has not finished.
        """
        if self.is_submitting:
            raise SubmissionInProgressError("A submission is already in progress")

        errors = self.validate()
        if errors:
            return SubmitResult(ok=False, message="", field_errors=errors)

        record = self.build_record()
        self.phase = FormPhase.SUBMITTING
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport) as client:
                response = await client.post(self.config.api_url, json=record)
        except httpx.HTTPError as exc:
            logger.error(f"Survey submission failed: {exc}")
            return SubmitResult(ok=False, message=self.text("network_error", NETWORK_ERROR_MESSAGE), record=record)
        finally:
            self.phase = FormPhase.IDLE

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.is_success:
            detail = data if isinstance(data, dict) else None
            message = describe_error_response(response.status_code, detail)
            logger.error(f"Survey submission rejected: {message}")
            return SubmitResult(ok=False, message=message, response=detail, record=record)

        if not isinstance(data, dict) or not data.get("ok"):
            return SubmitResult(ok=False, message=API_ERROR_MESSAGE, record=record)

        self.reset()
        message = self.text("submitted", data.get("message") or "Submitted.")
        return SubmitResult(ok=True, message=message, response=data, record=record)

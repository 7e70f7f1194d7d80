"""Tabulation of deduplicated survey respondents."""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, UTC
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

import httpx

from tsc_survey.config import Settings, get_settings
from tsc_survey.data.questions import (
    LANGUAGE_LABELS,
    OTHER_LABEL,
    QUESTION_FIELDS,
    QUESTION_OPTIONS,
    QUESTION_TITLES,
    UNKNOWN_LANGUAGE_LABEL,
    normalize_language,
)
from tsc_survey.schemas.report import (
    LanguageCount,
    OptionCount,
    QuestionTally,
    ReportFilters,
    ReportResponse,
)
from tsc_survey.services.csv_loader import SurveyRow, latest_per_player, parse_survey_csv
from tsc_survey.utils.answers import canonical_code
from tsc_survey.utils.cache import ExpiringCache, report_cache
from tsc_survey.utils.exceptions import ReportSourceError

logger = logging.getLogger(__name__)

ROWS_CACHE_KEY = "report:rows"


def canonical_answer(question: str, raw: Optional[str]) -> str:
    """Option letter for ``raw``, or ``"Other"``."""
    return canonical_code(raw, QUESTION_OPTIONS[question]) or OTHER_LABEL


def tally_question(question: str, rows: Iterable[SurveyRow]) -> QuestionTally:
    """Count answers in fixed option order; ``Other`` is appended only when non-zero."""
    options = QUESTION_OPTIONS[question]
    counts = Counter(canonical_answer(question, row.answer(question)) for row in rows)

    entries = [OptionCount(code=code, label=label, count=counts.get(code, 0)) for code, label in options.items()]
    if counts.get(OTHER_LABEL):
        entries.append(OptionCount(code=OTHER_LABEL, label=OTHER_LABEL, count=counts[OTHER_LABEL]))

    return QuestionTally(
        question=question,
        title=QUESTION_TITLES.get(question, question),
        total=sum(entry.count for entry in entries),
        options=entries,
    )


def tally_languages(rows: Iterable[SurveyRow]) -> list[LanguageCount]:
    """
    Count respondents per language.

    Known languages come first in their fixed order (non-zero only); unknown
    codes follow as ``Other/unknown`` entries sorted by descending count.
    """
    counts = Counter(normalize_language(row.language) for row in rows)

    known = [
        LanguageCount(code=code, label=label, count=counts[code], known=True)
        for code, label in LANGUAGE_LABELS.items()
        if counts.get(code)
    ]
    unknown_codes = sorted(
        (code for code in counts if code not in LANGUAGE_LABELS),
        key=lambda code: (-counts[code], code or "unknown"),
    )
    unknown = [
        LanguageCount(
            code=code or "unknown",
            label=f"{UNKNOWN_LANGUAGE_LABEL} ({code or 'unknown'})",
            count=counts[code],
            known=False,
        )
        for code in unknown_codes
    ]
    return known + unknown


def normalize_answer_filters(answers: Optional[Mapping[str, str]]) -> dict[str, str]:
    """Upper-case option letters; ``other`` selects the ``Other`` bucket."""
    normalized = {}
    for question, code in (answers or {}).items():
        if question not in QUESTION_OPTIONS:
            raise ValueError(f"Unknown question filter: {question}")
        code = code.strip().upper()
        normalized[question] = OTHER_LABEL if code == OTHER_LABEL.upper() else code
    return normalized


def filter_rows(
    rows: Sequence[SurveyRow],
    language: Optional[str] = None,
    answers: Optional[Mapping[str, str]] = None,
) -> list[SurveyRow]:
    """Restrict respondents to one language and/or given canonical answers."""
    wanted_language = normalize_language(language) if language else None
    wanted_answers = normalize_answer_filters(answers)

    selected = []
    for row in rows:
        if wanted_language is not None and normalize_language(row.language) != wanted_language:
            continue
        if any(canonical_answer(q, row.answer(q)) != code for q, code in wanted_answers.items()):
            continue
        selected.append(row)
    return selected


def build_report(
    rows: Sequence[SurveyRow],
    language: Optional[str] = None,
    answers: Optional[Mapping[str, str]] = None,
) -> ReportResponse:
    """Deduplicate ``rows`` to the latest submission per player, filter, and tabulate."""
    respondents = filter_rows(latest_per_player(rows), language=language, answers=answers)
    return ReportResponse(
        total_rows=len(rows),
        respondents=len(respondents),
        filters=ReportFilters(
            language=normalize_language(language) if language else None,
            answers=normalize_answer_filters(answers),
        ),
        questions=[tally_question(question, respondents) for question in QUESTION_FIELDS],
        languages=tally_languages(respondents),
        generated_at=datetime.now(UTC),
    )


class ReportService:
    """Loads the CSV export from its configured source and builds reports."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache: Optional[ExpiringCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.cache = cache if cache is not None else report_cache
        self._transport = transport

    async def fetch_csv_text(self) -> str:
        """Read the export from ``REPORT_CSV_URL`` or, failing that, ``REPORT_CSV_PATH``."""
        if self.settings.report_csv_url:
            url = self.settings.report_csv_url
            try:
                async with httpx.AsyncClient(
                    timeout=self.settings.report_fetch_timeout_seconds,
                    transport=self._transport,
                    follow_redirects=True,
                ) as client:
                    response = await client.get(url, headers={"Cache-Control": "no-store"})
                    response.raise_for_status()
            except httpx.HTTPError as exc:
                logger.error(f"Failed to fetch CSV export from {url}: {exc}")
                raise ReportSourceError(f"Could not fetch CSV export: {exc}") from exc
            return response.text

        if self.settings.report_csv_path:
            path = Path(self.settings.report_csv_path)
            try:
                return path.read_text(encoding="utf-8-sig")
            except OSError as exc:
                logger.error(f"Failed to read CSV export at {path}: {exc}")
                raise ReportSourceError(f"Could not read CSV export: {path}") from exc

        raise ReportSourceError("No CSV export configured (set REPORT_CSV_URL or REPORT_CSV_PATH)")

    async def load_rows(self, refresh: bool = False) -> list[SurveyRow]:
        """Parsed export rows, served from the TTL cache unless ``refresh`` is set."""
        if not refresh:
            cached = self.cache.get(ROWS_CACHE_KEY)
            if cached is not None:
                return cached

        rows = parse_survey_csv(await self.fetch_csv_text())
        self.cache.set(ROWS_CACHE_KEY, rows, ttl=self.settings.report_cache_seconds)
        logger.info(f"Loaded {len(rows)} survey rows from CSV export")
        return rows

    async def get_report(
        self,
        refresh: bool = False,
        language: Optional[str] = None,
        answers: Optional[Mapping[str, str]] = None,
    ) -> ReportResponse:
        rows = await self.load_rows(refresh=refresh)
        return build_report(rows, language=language, answers=answers)

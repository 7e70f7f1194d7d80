"""Parsing of the survey CSV export and latest-per-player deduplication."""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from typing import Iterable

from tsc_survey.data.questions import CSV_COLUMNS
from tsc_survey.utils.datetime_helpers import parse_timestamp
from tsc_survey.utils.exceptions import CsvParseError
from tsc_survey.utils.names import normalize_player_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SurveyRow:
    """One raw CSV submission with its position among the data rows."""

    order: int
    timestamp: str
    language: str
    player_name: str
    Q2_time: str
    Q3_time: str
    Q4_day: str

    @property
    def epoch(self) -> float:
        return parse_timestamp(self.timestamp)

    @property
    def player_key(self) -> str:
        return normalize_player_name(self.player_name)

    def answer(self, question: str) -> str:
        return getattr(self, question)


def parse_survey_csv(text: str) -> list[SurveyRow]:
    """
    Parse the CSV export into ordered rows.

    Quoted fields may contain commas, doubled quotes and newlines. Extra
    columns are ignored and fully blank lines skipped.

    Raises:
        CsvParseError: when a required header is missing or the CSV is malformed.
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    try:
        header = next(reader, None)
        if header is None:
            raise CsvParseError("CSV export is empty", missing_columns=list(CSV_COLUMNS))

        positions = {name.strip(): index for index, name in enumerate(header)}
        missing = [column for column in CSV_COLUMNS if column not in positions]
        if missing:
            raise CsvParseError(
                f"CSV export is missing required columns: {', '.join(missing)}",
                missing_columns=missing,
            )

        rows = []
        for cells in reader:
            if not any(cell.strip() for cell in cells):
                continue
            values = {
                column: cells[positions[column]] if positions[column] < len(cells) else ""
                for column in CSV_COLUMNS
            }
            rows.append(SurveyRow(order=len(rows), **values))
    except csv.Error as exc:
        raise CsvParseError(f"Malformed CSV at line {reader.line_num}: {exc}") from exc

    logger.debug(f"Parsed {len(rows)} survey rows from CSV export")
    return rows


def latest_per_player(rows: Iterable[SurveyRow]) -> list[SurveyRow]:
    """
    Keep one row per distinct non-empty player name.

    The row with the latest timestamp wins; on equal timestamps the row that
    appears later in the export wins. Unparseable timestamps count as the
    epoch. The result is ordered by original row position.
    """
    chosen: dict[str, SurveyRow] = {}
    for row in rows:
        key = row.player_key
        if not key:
            continue
        current = chosen.get(key)
        if current is None or (row.epoch, row.order) > (current.epoch, current.order):
            chosen[key] = row
    return sorted(chosen.values(), key=lambda row: row.order)

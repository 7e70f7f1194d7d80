"""Survey question catalogue and supported languages."""

from __future__ import annotations

# Export / payload column order
CSV_COLUMNS = ["timestamp", "language", "player_name", "Q2_time", "Q3_time", "Q4_day"]
REQUIRED_FIELDS = ["player_name", "language", "Q2_time", "Q3_time", "Q4_day"]
QUESTION_FIELDS = ["Q2_time", "Q3_time", "Q4_day"]

# Per-field length caps applied when sanitizing a submission
FIELD_MAX_LENGTHS = {
    "timestamp": 64,
    "language": 32,
    "player_name": 80,
    "Q2_time": 10,
    "Q3_time": 10,
    "Q4_day": 12,
}

# Letter code -> canonical label, in display order
QUESTION_OPTIONS: dict[str, dict[str, str]] = {
    "Q2_time": {
        "A": "00:00-06:00 UTC",
        "B": "06:00-12:00 UTC",
        "C": "12:00-18:00 UTC",
        "D": "18:00-24:00 UTC",
    },
    "Q3_time": {
        "A": "30 minutes",
        "B": "1 hour",
        "C": "2 hours",
        "D": "3 hours or more",
        "E": "No preference",
    },
    "Q4_day": {
        "A": "Monday",
        "B": "Tuesday",
        "C": "Wednesday",
        "D": "Thursday",
        "E": "Friday",
        "F": "Saturday",
        "G": "Sunday",
        "H": "Any day",
    },
}

QUESTION_TITLES = {
    "Q2_time": "Preferred start time",
    "Q3_time": "Preferred duration",
    "Q4_day": "Preferred day",
}

OTHER_LABEL = "Other"

# Supported languages in display order; codes are stored lower-cased.
LANGUAGE_LABELS: dict[str, str] = {
    "en": "English",
    "de": "Deutsch",
    "nl": "Nederlands",
    "fr": "Français",
    "ru": "Русский",
    "es": "Español",
    "pt": "Português",
    "it": "Italiano",
    "zh-hans": "简体中文",
    "ja": "日本語",
    "ko": "한국어",
    "zh-hant": "繁體中文",
    "ar": "العربية",
    "th": "ไทย",
    "vi": "Tiếng Việt",
    "tr": "Türkçe",
    "pl": "Polski",
    "ms": "Bahasa Melayu",
    "id": "Bahasa Indonesia",
}

RTL_LANGUAGES = {"ar"}

UNKNOWN_LANGUAGE_LABEL = "Other/unknown"


def normalize_language(code: str | None) -> str:
    """Lower-case and trim a language code."""
    return (code or "").strip().lower()


def text_direction(code: str | None) -> str:
    return "rtl" if normalize_language(code) in RTL_LANGUAGES else "ltr"

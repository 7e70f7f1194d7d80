"""Translation table loading and language preference storage."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Protocol

from tsc_survey.data.questions import LANGUAGE_LABELS, normalize_language, text_direction

logger = logging.getLogger(__name__)

LANGUAGE_PREFERENCE_KEY = "tsc_lang"


class TranslationFileError(ValueError):
    """Raised when a translation table cannot be parsed."""


def parse_translations_tsv(text: str) -> tuple[list[str], dict[str, dict[str, str]]]:
    """
    Parse a ``key<TAB>lang<TAB>lang...`` table.

    Returns:
        (languages in header order, key -> {language -> text})
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise TranslationFileError("translations table is empty")

    header = [cell.strip() for cell in lines[0].split("\t")]
    if header[0] != "key":
        raise TranslationFileError('translations header must start with "key"')

    languages = [normalize_language(cell) for cell in header[1:]]
    table: dict[str, dict[str, str]] = {}
    for line in lines[1:]:
        cells = line.split("\t")
        key = cells[0].strip()
        if not key:
            continue
        table[key] = {
            language: cells[index + 1] if index + 1 < len(cells) else ""
            for index, language in enumerate(languages)
        }
    return languages, table


@dataclass(frozen=True)
class Translations:
    """Immutable translation table; look-ups fall back to the default language."""

    languages: tuple[str, ...] = ()
    table: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    default_language: str = "en"

    def get(self, key: str, language: str) -> Optional[str]:
        entry = self.table.get(key)
        if not entry:
            return None
        return entry.get(normalize_language(language)) or entry.get(self.default_language) or None

    def strings_for(self, language: str) -> dict[str, str]:
        """Every key resolved for ``language``; keys with no text at all are omitted."""
        resolved = {key: self.get(key, language) for key in self.table}
        return {key: value for key, value in resolved.items() if value is not None}

    def resolve_language(self, *candidates: Optional[str]) -> str:
        """
        First candidate that is a supported or translated language, else the default.

        A supported language without its own column still resolves to itself;
        its strings come from the default language.
        """
        available = set(LANGUAGE_LABELS) | set(self.languages)
        for candidate in candidates:
            code = normalize_language(candidate)
            if code and code in available:
                return code
        return self.default_language

    def direction(self, language: str) -> str:
        return text_direction(language)


def load_translations(path: Path, default_language: str = "en") -> Translations:
    """
    Load the translation table from ``path``.

    A missing or malformed file degrades to an empty table so that the form
    still works in the default language.
    """
    try:
        languages, table = parse_translations_tsv(Path(path).read_text(encoding="utf-8-sig"))
    except (OSError, TranslationFileError) as exc:
        logger.warning(f"Translations unavailable ({exc}); falling back to {default_language!r}")
        return Translations(default_language=default_language)

    logger.info(f"Loaded {len(table)} translation keys for {len(languages)} languages from {path}")
    return Translations(languages=tuple(languages), table=table, default_language=default_language)


class LanguagePreferenceStore(Protocol):
    """Key-value store for the persisted language preference."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryPreferenceStore:
    """Dictionary-backed :class:`LanguagePreferenceStore`."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

"""Tests for translation loading and the translations endpoint."""
import pytest
from httpx import AsyncClient, ASGITransport

from tsc_survey.config import get_settings
from tsc_survey.services.translation_service import (
    InMemoryPreferenceStore,
    TranslationFileError,
    Translations,
    load_translations,
    parse_translations_tsv,
)

TABLE = "key\ten\tJA\nsubmit\tSubmit\t送信\nrequired\tRequired\t\nonly_ja\t\tだけ\n"


@pytest.fixture
def translations():
    languages, table = parse_translations_tsv(TABLE)
    return Translations(languages=tuple(languages), table=table)


class TestParse:
    def test_languages_are_lower_cased(self):
        languages, table = parse_translations_tsv(TABLE)
        assert languages == ["en", "ja"]
        assert table["submit"] == {"en": "Submit", "ja": "送信"}

    def test_header_must_start_with_key(self):
        with pytest.raises(TranslationFileError):
            parse_translations_tsv("id\ten\nsubmit\tSubmit\n")

    def test_empty_table(self):
        with pytest.raises(TranslationFileError):
            parse_translations_tsv("\n\n")


class TestLookup:
    def test_get_in_requested_language(self, translations):
        assert translations.get("submit", "JA") == "送信"

    def test_missing_text_falls_back_to_default(self, translations):
        assert translations.get("required", "ja") == "Required"
        assert translations.get("submit", "fr") == "Submit"

    def test_unknown_key(self, translations):
        assert translations.get("nope", "en") is None

    def test_strings_for_omits_keys_without_text(self, translations):
        assert translations.strings_for("en") == {"submit": "Submit", "required": "Required"}
        assert translations.strings_for("ja")["only_ja"] == "だけ"

    def test_resolve_language(self, translations):
        assert translations.resolve_language(None, "xx", "ja") == "ja"
        assert translations.resolve_language("xx") == "en"

    def test_supported_language_without_column_resolves_to_itself(self, translations):
        assert translations.resolve_language("KO") == "ko"
        assert translations.strings_for("ko") == translations.strings_for("en")

    def test_empty_table_resolves_against_supported_languages(self):
        assert Translations().resolve_language("ar") == "ar"

    def test_direction(self, translations):
        assert translations.direction("ar") == "rtl"
        assert translations.direction("ja") == "ltr"


class TestLoad:
    def test_bundled_table_loads(self):
        loaded = load_translations(get_settings().translations_path)
        assert {"en", "ja", "ar"} <= set(loaded.languages)
        assert loaded.get("submitted", "en")

    def test_missing_file_degrades_to_empty(self, tmp_path):
        loaded = load_translations(tmp_path / "absent.tsv", default_language="de")
        assert loaded.table == {}
        assert loaded.default_language == "de"

    def test_malformed_file_degrades_to_empty(self, tmp_path):
        path = tmp_path / "bad.tsv"
        path.write_text("lang\ten\n", encoding="utf-8")
        assert load_translations(path).languages == ()


def test_in_memory_preference_store():
    store = InMemoryPreferenceStore({"tsc_lang": "ja"})
    assert store.get("tsc_lang") == "ja"
    store.set("tsc_lang", "ar")
    assert store.get("tsc_lang") == "ar"
    assert store.get("other") is None


@pytest.mark.asyncio
async def test_translations_endpoint(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as client:
        response = await client.get("/api/translations", params={"lang": "AR"})
        fallback = await client.get("/api/translations", params={"lang": "xx"})

    data = response.json()
    assert response.status_code == 200
    assert data["lang"] == "ar"
    assert data["dir"] == "rtl"
    assert {"code": "ja", "label": "日本語"} in data["available"]
    assert data["strings"]["submit"] == "إرسال"

    assert fallback.json()["lang"] == "en"
    assert fallback.json()["strings"]["submit"] == "Submit"


@pytest.mark.asyncio
async def test_translations_endpoint_keeps_untranslated_supported_language(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as client:
        response = await client.get("/api/translations", params={"lang": "th"})

    data = response.json()
    assert data["lang"] == "th"
    assert data["strings"]["submit"] == "Submit"
    assert len(data["available"]) == 19

"""Tests for the survey form controller."""
import json

import httpx
import pytest

from tsc_survey.client.form import (
    API_ERROR_MESSAGE,
    FormConfig,
    SubmissionInProgressError,
    SurveyFormController,
    describe_error_response,
    encode_csv_row,
)
from tsc_survey.config import get_settings
from tsc_survey.services.translation_service import (
    InMemoryPreferenceStore,
    Translations,
    load_translations,
    parse_translations_tsv,
)

API_URL = "https://survey.example/api/submit"
TABLE = (
    "key\ten\tja\n"
    "required\tRequired\t必須です\n"
    "select_one\tPlease select one option.\t1つ選択してください。\n"
    "submitted\tSubmitted. Thank you!\t送信しました\n"
    "network_error\tNetwork error. Please try again.\tネットワークエラー\n"
)


@pytest.fixture
def translations():
    languages, table = parse_translations_tsv(TABLE)
    return Translations(languages=tuple(languages), table=table)


def _controller(translations, handler=None, store=None):
    transport = httpx.MockTransport(handler) if handler else None
    config = FormConfig(api_url=API_URL, translations=translations)
    return SurveyFormController(config, store=store, transport=transport)


def _fill(controller):
    controller.update(player_name=" Alice ", Q2_time="A", Q3_time="B", Q4_day="C")


class TestInitialize:
    def test_query_language_and_prefill(self, translations):
        store = InMemoryPreferenceStore()
        controller = _controller(translations, store=store)

        values = controller.initialize("?lang=JA&q02=B&q04=%20H%20&q03=")

        assert values.language == "ja"
        assert (values.Q2_time, values.Q3_time, values.Q4_day) == ("B", "", "H")
        assert store.get("tsc_lang") == "ja"

    def test_stored_preference_used_without_query(self, translations):
        controller = _controller(translations, store=InMemoryPreferenceStore({"tsc_lang": "ja"}))
        assert controller.initialize({}).language == "ja"

    def test_unsupported_language_falls_back(self, translations):
        controller = _controller(translations, store=InMemoryPreferenceStore({"tsc_lang": "xx"}))
        assert controller.initialize("lang=qq").language == "en"

    def test_supported_language_without_strings_is_kept(self):
        """Korean has no column in the bundled table but is still recorded as Korean."""
        bundled = load_translations(get_settings().translations_path)
        controller = _controller(bundled)

        assert controller.initialize("lang=KO").language == "ko"
        assert controller.build_record()["language"] == "ko"
        assert controller.text("submit", "") == "Submit"
        assert controller.set_language("zh-hans") == "zh-hans"


class TestValidation:
    def test_empty_form_errors_in_current_language(self, translations):
        controller = _controller(translations)
        controller.set_language("ja")

        errors = controller.validate()

        assert errors == {
            "player_name": "必須です",
            "Q2_time": "1つ選択してください。",
            "Q3_time": "1つ選択してください。",
            "Q4_day": "1つ選択してください。",
        }

    def test_untranslated_messages_use_builtin_text(self):
        controller = _controller(Translations())
        assert controller.validate()["player_name"] == "Required"

    def test_unknown_field_rejected(self, translations):
        controller = _controller(translations)
        with pytest.raises(ValueError):
            controller.update(nickname="x")

    def test_reset_keeps_language(self, translations):
        controller = _controller(translations)
        controller.set_language("ja")
        _fill(controller)

        values = controller.reset()

        assert values.language == "ja"
        assert values.player_name == ""


class TestSubmit:
    @pytest.mark.asyncio
    async def test_invalid_form_sends_nothing(self, translations):
        calls = []
        controller = _controller(translations, handler=lambda request: calls.append(request))

        result = await controller.submit()

        assert result.ok is False
        assert set(result.field_errors) == {"player_name", "Q2_time", "Q3_time", "Q4_day"}
        assert calls == []

    @pytest.mark.asyncio
    async def test_success_resets_form(self, translations):
        sent = {}

        def handler(request: httpx.Request) -> httpx.Response:
            sent.update(json.loads(request.content))
            return httpx.Response(200, json={"ok": True, "message": "Submitted.", "issue": {"number": 7}})

        controller = _controller(translations, handler=handler)
        _fill(controller)

        result = await controller.submit()

        assert result.ok is True
        assert result.message == "Submitted. Thank you!"
        assert sent["player_name"] == "Alice"
        assert sent["language"] == "en"
        assert sent["timestamp"].endswith("Z")
        assert controller.values.player_name == ""
        assert not controller.is_submitting

    @pytest.mark.asyncio
    async def test_server_error_is_described(self, translations):
        body = {"ok": False, "stage": "github", "githubStatus": 422, "error": "Validation Failed"}
        controller = _controller(translations, handler=lambda request: httpx.Response(502, json=body))
        _fill(controller)

        result = await controller.submit()

        assert result.ok is False
        assert result.message == "Server error (502). [github] GitHub:422 - Validation Failed"
        assert controller.values.player_name == " Alice "

    @pytest.mark.asyncio
    async def test_ok_false_is_api_error(self, translations):
        controller = _controller(translations, handler=lambda request: httpx.Response(200, json={"ok": False}))
        _fill(controller)

        result = await controller.submit()

        assert result.message == API_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_network_error(self, translations):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        controller = _controller(translations, handler=handler)
        controller.set_language("ja")
        _fill(controller)

        result = await controller.submit()

        assert result.ok is False
        assert result.message == "ネットワークエラー"
        assert not controller.is_submitting

    @pytest.mark.asyncio
    async def test_second_submit_while_in_flight_is_rejected(self, translations):
        seen = []
        controller = None

        async def handler(request: httpx.Request) -> httpx.Response:
            with pytest.raises(SubmissionInProgressError):
                await controller.submit()
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        controller = _controller(translations, handler=handler)
        _fill(controller)

        result = await controller.submit()

        assert result.ok is True
        assert len(seen) == 1


def test_describe_error_response_without_detail():
    assert describe_error_response(500, None) == "Server error (500)."


def test_encode_csv_row_quotes_commas():
    record = {"timestamp": "t", "language": "en", "player_name": 'Carol, "the" Great', "Q2_time": "A"}
    assert encode_csv_row(record) == 't,en,"Carol, ""the"" Great",A,,'

"""Tests for the Triage Service.

Tests report generation and translation with a mocked OpenAI client to avoid
real API calls.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from openai import APIConnectionError, AsyncOpenAI

from conftest import PHOTO, make_ai_report
from dermtriage.exceptions import TriageError
from dermtriage.schemas.report import AIReport, PatientContext, TranslatedReport
from dermtriage.services.triage import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    TriageService,
    format_patient_details,
    format_report_for_translation,
)


@pytest.fixture
def patient() -> PatientContext:
    return PatientContext(age=34, gender="female", region="Kerala", skin_tone="Type IV")


def create_mock_openai_client(parsed=None, output_text: str | None = None) -> AsyncMock:
    """Create a mock AsyncOpenAI client that returns a structured response."""
    mock_client = AsyncMock()

    mock_response = MagicMock()
    mock_response.output_parsed = parsed
    mock_response.output_text = output_text
    mock_response.usage = MagicMock(input_tokens=1200, output_tokens=300)

    mock_client.responses.parse = AsyncMock(return_value=mock_response)
    return mock_client


def create_openai_client_returning(text: str) -> AsyncOpenAI:
    """Create a real AsyncOpenAI client whose Responses API returns ``text``."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "id": "resp_test",
                "object": "response",
                "created_at": 1760000000,
                "model": "gpt-4o",
                "status": "completed",
                "parallel_tool_calls": False,
                "tool_choice": "auto",
                "tools": [],
                "output": [
                    {
                        "type": "message",
                        "id": "msg_test",
                        "status": "completed",
                        "role": "assistant",
                        "content": [{"type": "output_text", "text": text, "annotations": []}],
                    }
                ],
                "usage": {
                    "input_tokens": 10,
                    "input_tokens_details": {"cached_tokens": 0},
                    "output_tokens": 5,
                    "output_tokens_details": {"reasoning_tokens": 0},
                    "total_tokens": 15,
                },
            },
        )

    return AsyncOpenAI(
        api_key="test-key",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


# =============================================================================
# Helper Function Tests
# =============================================================================


class TestFormatting:
    """Tests for prompt formatting helpers."""

    def test_patient_details_include_context(self, patient: PatientContext):
        text = format_patient_details(patient, "  Itchy red patch  ")
        assert "Age: 34" in text
        assert "Region: Kerala" in text
        assert "Skin tone: Type IV" in text
        assert "Described symptoms: Itchy red patch" in text

    def test_patient_details_without_symptoms(self, patient: PatientContext):
        assert "None provided" in format_patient_details(patient, "   ")

    def test_report_for_translation_lists_conditions(self):
        text = format_report_for_translation(make_ai_report())
        assert "Name: Eczema" in text
        assert "Name: Contact dermatitis" in text
        assert "Moisturize twice daily" in text


# =============================================================================
# TriageService Tests
# =============================================================================


class TestTriageServiceInit:
    """Tests for TriageService initialization."""

    def test_init_with_defaults(self):
        with patch("dermtriage.services.triage.settings") as mock_settings:
            mock_settings.openai_api_key = "test-key"
            mock_settings.triage_model = "gpt-4o"
            mock_settings.triage_timeout_seconds = 30.0
            with patch("dermtriage.services.triage.AsyncOpenAI") as mock_openai:
                service = TriageService()

                assert service._model == "gpt-4o"
                assert service._max_output_tokens == DEFAULT_MAX_OUTPUT_TOKENS
                mock_openai.assert_called_once_with(api_key="test-key", timeout=30.0)

    def test_init_with_custom_client(self):
        mock_client = AsyncMock()
        service = TriageService(client=mock_client, model="gpt-4.1")

        assert service._client is mock_client
        assert service._model == "gpt-4.1"

    def test_init_without_api_key_raises(self):
        with patch("dermtriage.services.triage.settings") as mock_settings:
            mock_settings.openai_api_key = ""

            with pytest.raises(ValueError, match="OPENAI_API_KEY"):
                TriageService()


class TestGenerateReport:
    """Tests for TriageService.generate_report."""

    async def test_returns_parsed_report(self, patient: PatientContext):
        expected = make_ai_report()
        mock_client = create_mock_openai_client(parsed=expected)
        service = TriageService(client=mock_client, model="test-model")

        report = await service.generate_report(PHOTO, "Itchy patch", patient)

        assert report == expected
        mock_client.responses.parse.assert_called_once()

    async def test_sends_photo_and_text(self, patient: PatientContext):
        mock_client = create_mock_openai_client(parsed=make_ai_report())
        service = TriageService(client=mock_client, model="test-model")

        await service.generate_report(PHOTO, "Itchy patch", patient)

        kwargs = mock_client.responses.parse.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["text_format"] is AIReport
        assert kwargs["max_output_tokens"] == DEFAULT_MAX_OUTPUT_TOKENS
        system, user = kwargs["input"]
        assert system["role"] == "system"
        assert "dermatology" in system["content"]
        parts = {part["type"]: part for part in user["content"]}
        assert parts["input_image"]["image_url"] == PHOTO
        assert "Itchy patch" in parts["input_text"]["text"]

    async def test_rejects_non_image_uri(self, patient: PatientContext):
        mock_client = create_mock_openai_client(parsed=make_ai_report())
        service = TriageService(client=mock_client)

        with pytest.raises(ValueError, match="image data URI"):
            await service.generate_report("data:text/plain;base64,aGk=", "", patient)
        mock_client.responses.parse.assert_not_called()

    async def test_real_client_parses_structured_output(self, patient: PatientContext):
        expected = make_ai_report()
        client = create_openai_client_returning(expected.model_dump_json(by_alias=True))
        service = TriageService(client=client)

        report = await service.generate_report(PHOTO, "Itchy patch", patient)

        assert report == expected
        await service.close()

    @pytest.mark.parametrize(
        "text",
        [json.dumps({"report": 1}), "not json at all"],
        ids=["missing-fields", "invalid-json"],
    )
    async def test_real_client_malformed_output_raises_triage_error(
        self, patient: PatientContext, text: str
    ):
        service = TriageService(client=create_openai_client_returning(text))

        with pytest.raises(TriageError, match="malformed"):
            await service.generate_report(PHOTO, "", patient)
        await service.close()

    async def test_fallback_on_none(self, patient: PatientContext):
        expected = make_ai_report()
        mock_client = create_mock_openai_client(
            parsed=None,
            output_text=expected.model_dump_json(by_alias=True),
        )
        service = TriageService(client=mock_client)

        report = await service.generate_report(PHOTO, "", patient)

        assert report == expected

    async def test_raises_on_missing_output(self, patient: PatientContext):
        mock_client = create_mock_openai_client(parsed=None, output_text=None)
        service = TriageService(client=mock_client)

        with pytest.raises(TriageError, match="no output"):
            await service.generate_report(PHOTO, "", patient)

    async def test_raises_on_malformed_output(self, patient: PatientContext):
        mock_client = create_mock_openai_client(parsed=None, output_text='{"report": 1}')
        service = TriageService(client=mock_client)

        with pytest.raises(TriageError, match="malformed"):
            await service.generate_report(PHOTO, "", patient)

    async def test_wraps_api_errors(self, patient: PatientContext):
        mock_client = AsyncMock()
        mock_client.responses.parse = AsyncMock(
            side_effect=APIConnectionError(request=MagicMock())
        )
        service = TriageService(client=mock_client)

        with pytest.raises(TriageError, match="did not complete"):
            await service.generate_report(PHOTO, "", patient)


class TestTranslateReport:
    """Tests for TriageService.translate_report."""

    async def test_english_skips_model(self):
        mock_client = create_mock_openai_client()
        service = TriageService(client=mock_client)
        report = make_ai_report()

        translated = await service.translate_report(report, "EN")

        assert translated == TranslatedReport.from_report(report)
        mock_client.responses.parse.assert_not_called()

    async def test_translates_via_model(self):
        translated = TranslatedReport(
            potential_conditions=[],
            report="Probablemente eccema.",
            home_remedies="Hidratar la piel.",
            medical_recommendation="Consulte a un dermatólogo.",
        )
        mock_client = create_mock_openai_client(parsed=translated)
        service = TriageService(client=mock_client)

        result = await service.translate_report(make_ai_report(), "es")

        assert result.report == "Probablemente eccema."
        kwargs = mock_client.responses.parse.call_args.kwargs
        assert kwargs["text_format"] is TranslatedReport
        assert "'es'" in kwargs["input"][0]["content"]

    async def test_real_client_malformed_translation_raises_triage_error(self):
        service = TriageService(client=create_openai_client_returning('{"report": "hola"}'))

        with pytest.raises(TriageError, match="malformed"):
            await service.translate_report(make_ai_report(), "es")
        await service.close()

    async def test_empty_language_raises(self):
        service = TriageService(client=create_mock_openai_client())

        with pytest.raises(ValueError, match="language"):
            await service.translate_report(make_ai_report(), "  ")


class TestTriageServiceClose:
    """Tests for TriageService.close."""

    async def test_close_calls_client_close(self):
        mock_client = AsyncMock()
        service = TriageService(client=mock_client)

        await service.close()

        mock_client.close.assert_called_once()

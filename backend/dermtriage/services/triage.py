"""Triage service: report generation and translation via a hosted model.

Both operations are single structured-output calls to the OpenAI Responses
API, parsed straight into Pydantic models. The model is treated as a black
box that may fail; failures surface as ``TriageError`` and are never retried
here. Generation always completes before anything is persisted, so a failed
call leaves no partial report behind.
"""

import json
import logging
import time
from typing import Any, TypeVar

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from dermtriage.config import settings
from dermtriage.exceptions import TriageError
from dermtriage.schemas.report import AIReport, PatientContext, TranslatedReport

logger = logging.getLogger(__name__)

# Maximum tokens for a generated or translated report
DEFAULT_MAX_OUTPUT_TOKENS = 4096

ENGLISH = "en"

_GENERATION_PROMPT = (
    "You are an AI medical assistant specializing in dermatology. Analyze the "
    "patient's skin condition from the attached photo and the information below.\n"
    "\n"
    "Instructions:\n"
    "1. Base the analysis primarily on the visual evidence in the image. Use the "
    "described symptoms only to refine it.\n"
    "2. List potential conditions that match the visual evidence. For each give "
    "'name', 'likelihood' (High, Medium or Low), 'confidence' (0.0 to 1.0) and a "
    "concise 'description'.\n"
    "3. In 'report', state the most likely diagnosis, the visual observations that "
    "support it (as a bulleted list) and an assessment of severity.\n"
    "4. Provide safe 'homeRemedies' and a clear 'medicalRecommendation'.\n"
    "5. Set 'doctorConsultationSuggestion' to true if there is any uncertainty or the "
    "condition appears serious.\n"
    "6. Present yourself as an AI assistant. State that this is not a substitute for "
    "professional medical advice and that a dermatologist should confirm the diagnosis.\n"
)

_TRANSLATION_PROMPT = (
    "You are a professional medical translator. Translate every text field of the "
    "following dermatology report from English into the language with code "
    "'{language}'. Translate medical terms accurately and do not alter the meaning "
    "or tone. Return only the translated fields."
)

T = TypeVar("T", bound=BaseModel)


def _extract_usage(response: Any) -> dict[str, int]:
    """Extract token usage from an OpenAI response, returning empty dict if unavailable."""
    usage = getattr(response, "usage", None)
    if usage is None:
        return {}
    return {
        "input_tokens": getattr(usage, "input_tokens", 0),
        "output_tokens": getattr(usage, "output_tokens", 0),
    }


def format_patient_details(patient: PatientContext, symptoms: str) -> str:
    """Render patient context as the text part of the generation request."""
    return (
        "Patient information:\n"
        f"- Age: {patient.age}\n"
        f"- Gender: {patient.gender}\n"
        f"- Region: {patient.region}\n"
        f"- Skin tone: {patient.skin_tone}\n"
        f"- Described symptoms: {symptoms.strip() or 'None provided'}"
    )


def format_report_for_translation(report: AIReport) -> str:
    """Render the prose of a report for the translation request."""
    conditions = "\n".join(
        f"- Name: {c.name}\n  Description: {c.description}"
        for c in report.potential_conditions
    )
    return (
        f"Potential conditions:\n{conditions or '- None'}\n\n"
        f"Report:\n{report.report}\n\n"
        f"Home remedies:\n{report.home_remedies}\n\n"
        f"Medical recommendation:\n{report.medical_recommendation}"
    )


class TriageService:
    """Hosted-model client for generating and translating triage reports.

    Example:
        triage = TriageService()
        report = await triage.generate_report(
            photo_data_uri="data:image/jpeg;base64,...",
            symptoms="Itchy red patch on forearm for two weeks",
            patient=PatientContext(age=34, gender="female", region="Kerala", skin_tone="Type IV"),
        )
        print(report.medical_recommendation)
    """

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        model: str | None = None,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
    ):
        """Initialize TriageService.

        Args:
            client: Optional pre-configured AsyncOpenAI client (for testing).
                   If not provided, creates one from settings.
            model: Model to use. Defaults to settings.triage_model.
            max_output_tokens: Maximum tokens in a response.

        Raises:
            ValueError: If no client provided and OPENAI_API_KEY is not configured.
        """
        if client is not None:
            self._client = client
        else:
            if not settings.openai_api_key:
                raise ValueError(
                    "OPENAI_API_KEY environment variable is required. "
                    "Set it in your .env file or environment."
                )
            self._client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.triage_timeout_seconds,
            )

        self._model = model or settings.triage_model
        self._max_output_tokens = max_output_tokens

    async def close(self) -> None:
        """Close the OpenAI client connection."""
        await self._client.close()

    async def _parse(self, input_messages: list[dict[str, Any]], schema: type[T], operation: str) -> T:
        t0 = time.perf_counter()
        try:
            response = await self._client.responses.parse(
                model=self._model,
                input=input_messages,
                text_format=schema,
                max_output_tokens=self._max_output_tokens,
            )
        except OpenAIError as e:
            logger.error("%s: model call failed: %s", operation, e)
            raise TriageError(f"{operation} failed: the model request did not complete") from e
        except (ValidationError, json.JSONDecodeError) as e:
            # The SDK validates structured output inside parse()
            logger.error("%s: model returned malformed output: %s", operation, e)
            raise TriageError(f"{operation} failed: the model returned malformed output") from e

        parsed = response.output_parsed
        if parsed is None:
            # Fallback: try to parse from raw output if structured parsing failed
            logger.warning("%s: structured parsing returned None, attempting fallback", operation)
            raw_output = getattr(response, "output_text", None)
            if not raw_output:
                raise TriageError(f"{operation} failed: the model returned no output")
            try:
                parsed = schema.model_validate_json(raw_output)
            except ValidationError as e:
                raise TriageError(f"{operation} failed: the model returned malformed output") from e

        logger.info(
            "%s complete: model=%s, %.1fs, usage=%s",
            operation, self._model, time.perf_counter() - t0,
            _extract_usage(response) or "n/a",
        )
        return parsed

    async def generate_report(
        self,
        photo_data_uri: str,
        symptoms: str,
        patient: PatientContext,
    ) -> AIReport:
        """Generate a structured preliminary report from a photo and symptoms.

        Raises:
            ValueError: If the photo is not an image data URI.
            TriageError: If the model call fails or returns unusable output.
        """
        if not photo_data_uri or not photo_data_uri.startswith("data:image/"):
            raise ValueError("photo_data_uri must be an image data URI")

        input_messages = [
            {"role": "system", "content": _GENERATION_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "input_text", "text": format_patient_details(patient, symptoms)},
                    {"type": "input_image", "image_url": photo_data_uri},
                ],
            },
        ]
        report = await self._parse(input_messages, AIReport, "generate_report")
        logger.info(
            "Generated report: conditions=%d, consultation=%s",
            len(report.potential_conditions),
            report.doctor_consultation_suggestion,
        )
        return report

    async def translate_report(self, report: AIReport, language: str) -> TranslatedReport:
        """Translate the prose of a report into ``language``.

        English is returned as-is without calling the model.

        Raises:
            ValueError: If ``language`` is empty.
            TriageError: If the model call fails or returns unusable output.
        """
        language = (language or "").strip()
        if not language:
            raise ValueError("language cannot be empty")
        if language.lower() == ENGLISH:
            return TranslatedReport.from_report(report)

        input_messages = [
            {"role": "system", "content": _TRANSLATION_PROMPT.format(language=language)},
            {"role": "user", "content": format_report_for_translation(report)},
        ]
        return await self._parse(input_messages, TranslatedReport, "translate_report")

"""Pydantic schemas for reports and the AI report contract.

``AIReport`` is the structured-output contract handed to the hosted model and
stored verbatim on each report. Its wire form keeps camelCase field names
(``potentialConditions``, ``homeRemedies``...) so stored payloads and API
responses share one shape.
"""

from datetime import datetime
from enum import Enum
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dermtriage.constants import (
    MAX_NOTES_LENGTH,
    MAX_PHOTO_DATA_URI_LENGTH,
    MAX_REPORT_NAME_LENGTH,
    MAX_SYMPTOMS_LENGTH,
)


# === Enums (match SQLAlchemy enums) ===


class ReportStatus(str, Enum):
    """Report review lifecycle states."""

    PENDING_PATIENT_INPUT = "pending-patient-input"
    PENDING_DOCTOR_REVIEW = "pending-doctor-review"
    DOCTOR_APPROVED = "doctor-approved"
    DOCTOR_MODIFIED = "doctor-modified"
    REJECTED = "rejected"


class ReportDecision(str, Enum):
    """Terminal dispositions a doctor can give a routed report."""

    DOCTOR_APPROVED = "doctor-approved"
    DOCTOR_MODIFIED = "doctor-modified"
    REJECTED = "rejected"


# === AI Report Contract ===


class PotentialCondition(BaseModel):
    """A candidate skin condition in the differential."""

    name: str = Field(description="The name of the potential skin condition.")
    likelihood: Literal["High", "Medium", "Low"] = Field(
        description="The likelihood of this condition.",
    )
    confidence: float = Field(
        ge=0,
        le=1,
        description="The confidence score from 0.0 to 1.0.",
    )
    description: str = Field(description="A brief description of the condition.")


class AIReport(BaseModel):
    """Structured preliminary report produced by the hosted model."""

    model_config = ConfigDict(populate_by_name=True)

    potential_conditions: list[PotentialCondition] = Field(
        alias="potentialConditions",
        description="Potential skin conditions identified from the image and symptoms.",
    )
    report: str = Field(
        description="A detailed analysis of the condition, including what it is, "
        "key observations, and severity.",
    )
    home_remedies: str = Field(
        alias="homeRemedies",
        description="Applicable home remedies, if any.",
    )
    medical_recommendation: str = Field(
        alias="medicalRecommendation",
        description="General medical advice or dermatologist recommendation.",
    )
    doctor_consultation_suggestion: bool = Field(
        alias="doctorConsultationSuggestion",
        description="Whether a doctor consultation is suggested.",
    )


class TranslatedCondition(BaseModel):
    """Prose-only view of a condition; scores are not translated."""

    name: str = Field(description="The translated name of the potential skin condition.")
    description: str = Field(description="The translated brief description of the condition.")


class TranslatedReport(BaseModel):
    """Translated prose of an ``AIReport``.

    Likelihood, confidence and the consultation flag are dropped because
    translation only applies to free text.
    """

    model_config = ConfigDict(populate_by_name=True)

    potential_conditions: list[TranslatedCondition] = Field(alias="potentialConditions")
    report: str = Field(description="The translated detailed analysis.")
    home_remedies: str = Field(alias="homeRemedies", description="The translated home remedies.")
    medical_recommendation: str = Field(
        alias="medicalRecommendation",
        description="The translated medical recommendation.",
    )

    @classmethod
    def from_report(cls, report: AIReport) -> "TranslatedReport":
        """Project an English report onto the translated shape unchanged."""
        return cls(
            potential_conditions=[
                TranslatedCondition(name=c.name, description=c.description)
                for c in report.potential_conditions
            ],
            report=report.report,
            home_remedies=report.home_remedies,
            medical_recommendation=report.medical_recommendation,
        )


class PatientContext(BaseModel):
    """Patient demographics passed to the model alongside the photo."""

    age: int = Field(ge=0, le=150)
    gender: str
    region: str = "N/A"
    skin_tone: str = "N/A"


# === API Request/Response Schemas ===


class ReportCreate(BaseModel):
    """Schema for submitting a photo and symptoms for analysis."""

    report_name: str = Field(min_length=1, max_length=MAX_REPORT_NAME_LENGTH)
    photo_data_uri: str = Field(
        pattern=r"^data:image/[a-zA-Z0-9.+-]+;base64,",
        max_length=MAX_PHOTO_DATA_URI_LENGTH,
        description="Photo as 'data:<mimetype>;base64,<encoded_data>'",
    )
    symptoms: str = Field(default="", max_length=MAX_SYMPTOMS_LENGTH)

    @field_validator("report_name", mode="before")
    @classmethod
    def strip_report_name(cls, value):
        # Runs before the length constraints, so a blank name is rejected
        if isinstance(value, str):
            return value.strip()
        return value


class RouteRequest(BaseModel):
    """Schema for sending a report to a doctor."""

    doctor_id: str = Field(min_length=1, max_length=128)


class DecisionRequest(BaseModel):
    """Schema for a doctor's decision on a routed report."""

    decision: ReportDecision
    notes: str = Field(default="", max_length=MAX_NOTES_LENGTH)


class AmendNotesRequest(BaseModel):
    """Schema for revising doctor notes after a decision."""

    notes: str = Field(max_length=MAX_NOTES_LENGTH)


class TranslateRequest(BaseModel):
    """Schema for translating a report."""

    language: str = Field(
        min_length=2,
        max_length=10,
        pattern=r"^[a-zA-Z]{2,3}(-[a-zA-Z0-9]{2,4})?$",
        description="Target language code (e.g., 'es', 'hi', 'pt-BR')",
    )


class TranslateResponse(BaseModel):
    """Translated report for display."""

    report_id: UUID
    language: str
    translation: TranslatedReport


class ReportSummary(BaseModel):
    """Report in list views (photo omitted)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    report_name: str
    patient_id: str
    doctor_id: str | None
    status: ReportStatus
    ai_report: AIReport
    doctor_notes: str
    created_at: datetime


class ReportResponse(ReportSummary):
    """Full report detail."""

    photo_data_uri: str | None
    prescription: str
    modified_at: datetime


class ReportListResponse(BaseModel):
    """Paginated list of reports."""

    items: list[ReportSummary]
    total: int
    skip: int
    limit: int

"""Pydantic schemas for the doctor console: case groups, stats and notes."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from dermtriage.constants import MAX_NOTES_LENGTH
from dermtriage.schemas.profile import PatientProfileResponse
from dermtriage.schemas.report import ReportSummary


class PatientGroupResponse(BaseModel):
    """All of one patient's reports as seen by the requesting doctor."""

    patient: PatientProfileResponse
    reports: list[ReportSummary] = Field(description="Newest first")
    last_update: datetime | None
    unread_count: int = Field(description="Reports awaiting this doctor's review")


class CaseListResponse(BaseModel):
    """Grouped cases plus the synchronized console selection."""

    groups: list[PatientGroupResponse]
    selected_patient_id: str | None = None
    selected_report_id: UUID | None = None
    total_reports: int


class CaseStatsResponse(BaseModel):
    """Review counters for the doctor analytics view."""

    total: int
    pending: int
    reviewed: int
    rejected: int
    weekly_activity: dict[str, int] = Field(
        description="Reports received per weekday (Mon..Sun)",
    )


class DoctorNoteUpsert(BaseModel):
    """Schema for saving a calendar note."""

    note: str = Field(max_length=MAX_NOTES_LENGTH)


class DoctorNoteResponse(BaseModel):
    """Calendar note in API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    doctor_id: str
    note_date: date
    note: str


class EmergencyResponse(BaseModel):
    """Logged emergency alert."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    patient_id: str
    created_at: datetime

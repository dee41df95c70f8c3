"""Pydantic schemas."""

from dermtriage.schemas.cases import (
    CaseListResponse,
    CaseStatsResponse,
    DoctorNoteResponse,
    DoctorNoteUpsert,
    EmergencyResponse,
    PatientGroupResponse,
)
from dermtriage.schemas.profile import (
    DoctorProfileCreate,
    DoctorProfileResponse,
    DoctorProfileUpdate,
    PatientProfileCreate,
    PatientProfileResponse,
    PatientProfileUpdate,
    ProfileMeResponse,
)
from dermtriage.schemas.report import (
    AIReport,
    AmendNotesRequest,
    DecisionRequest,
    PatientContext,
    PotentialCondition,
    ReportCreate,
    ReportDecision,
    ReportListResponse,
    ReportResponse,
    ReportStatus,
    ReportSummary,
    RouteRequest,
    TranslatedCondition,
    TranslatedReport,
    TranslateRequest,
    TranslateResponse,
)

__all__ = [
    # Report schemas
    "AIReport",
    "AmendNotesRequest",
    "DecisionRequest",
    "PatientContext",
    "PotentialCondition",
    "ReportCreate",
    "ReportDecision",
    "ReportListResponse",
    "ReportResponse",
    "ReportStatus",
    "ReportSummary",
    "RouteRequest",
    "TranslatedCondition",
    "TranslatedReport",
    "TranslateRequest",
    "TranslateResponse",
    # Profile schemas
    "DoctorProfileCreate",
    "DoctorProfileResponse",
    "DoctorProfileUpdate",
    "PatientProfileCreate",
    "PatientProfileResponse",
    "PatientProfileUpdate",
    "ProfileMeResponse",
    # Console schemas
    "CaseListResponse",
    "CaseStatsResponse",
    "DoctorNoteResponse",
    "DoctorNoteUpsert",
    "EmergencyResponse",
    "PatientGroupResponse",
]

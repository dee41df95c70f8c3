"""SQLAlchemy models."""

from dermtriage.models.activity import DoctorNote, EmergencyAlert
from dermtriage.models.auth import AuthSession
from dermtriage.models.profile import DoctorProfile, PatientProfile, VerificationStatus
from dermtriage.models.report import Report, ReportStatus

__all__ = [
    "AuthSession",
    "DoctorNote",
    "DoctorProfile",
    "EmergencyAlert",
    "PatientProfile",
    "Report",
    "ReportStatus",
    "VerificationStatus",
]

"""Report model for AI-generated dermatology triage reports.

A report is created by the patient triage flow once the hosted model has
returned a structured analysis. It is routed to exactly one doctor and then
receives a single terminal decision. Reports are never deleted.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, CheckConstraint, DateTime, Enum, Index, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from dermtriage.database import Base


class ReportStatus(str, enum.Enum):
    """Report review lifecycle states."""

    PENDING_PATIENT_INPUT = "pending-patient-input"
    PENDING_DOCTOR_REVIEW = "pending-doctor-review"
    DOCTOR_APPROVED = "doctor-approved"
    DOCTOR_MODIFIED = "doctor-modified"
    REJECTED = "rejected"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Report(Base):
    """AI triage report tied to one patient and, once routed, one doctor."""

    __tablename__ = "reports"

    # === Identity ===
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # === Ownership ===
    patient_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        index=True,
    )
    doctor_id: Mapped[str | None] = mapped_column(
        String(128),
        nullable=True,
        index=True,
        comment="Set once when the patient routes the report",
    )

    # === Status ===
    status: Mapped[ReportStatus] = mapped_column(
        Enum(
            ReportStatus,
            name="report_status",
            create_constraint=True,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ReportStatus.PENDING_PATIENT_INPUT,
        index=True,
    )

    # === Content ===
    report_name: Mapped[str] = mapped_column(String(120), nullable=False)
    ai_report: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        comment="Structured model output (AIReport); never mutated",
    )
    photo_data_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    doctor_notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    prescription: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # === Timing ===
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    modified_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    __table_args__ = (
        Index("idx_report_doctor_created", "doctor_id", "created_at"),
        Index("idx_report_patient_created", "patient_id", "created_at"),
        CheckConstraint(
            "(doctor_id IS NULL) = (status = 'pending-patient-input')",
            name="ck_report_doctor_assignment",
        ),
    )

    def __repr__(self) -> str:
        return f"<Report(id={self.id}, status={self.status}, patient_id={self.patient_id})>"

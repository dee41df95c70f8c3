"""Patient and doctor profile models.

Profiles are keyed by the identity provider's user id. They are read-mostly:
the report lifecycle and the case grouping only ever look them up.
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dermtriage.database import Base


class VerificationStatus(str, enum.Enum):
    """Doctor credential verification states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PatientProfile(Base):
    """Patient demographics used as context for report generation."""

    __tablename__ = "patient_profiles"

    uid: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    gender: Mapped[str] = mapped_column(String(50), nullable=False)
    region: Mapped[str] = mapped_column(String(120), nullable=False, default="N/A")
    skin_tone: Mapped[str] = mapped_column(String(50), nullable=False, default="N/A")
    photo_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<PatientProfile(uid={self.uid}, name={self.name})>"


class DoctorProfile(Base):
    """Doctor profile; only approved doctors can receive routed reports."""

    __tablename__ = "doctor_profiles"

    uid: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    gender: Mapped[str] = mapped_column(String(50), nullable=False)
    experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    specialization: Mapped[str] = mapped_column(
        String(120),
        nullable=False,
        default="Dermatology",
    )
    verification_status: Mapped[VerificationStatus] = mapped_column(
        Enum(
            VerificationStatus,
            name="verification_status",
            create_constraint=True,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=VerificationStatus.PENDING,
        index=True,
    )
    photo_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<DoctorProfile(uid={self.uid}, status={self.verification_status})>"

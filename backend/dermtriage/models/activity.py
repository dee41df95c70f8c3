"""Emergency alerts and doctor calendar notes."""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Date, DateTime, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from dermtriage.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EmergencyAlert(Base):
    """Logged when a patient triggers the emergency action."""

    __tablename__ = "emergency_alerts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    patient_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )


class DoctorNote(Base):
    """One free-text calendar note per doctor per day."""

    __tablename__ = "doctor_notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    doctor_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    note_date: Mapped[date] = mapped_column(Date, nullable=False)
    note: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    __table_args__ = (
        UniqueConstraint("doctor_id", "note_date", name="uq_doctor_note_day"),
    )

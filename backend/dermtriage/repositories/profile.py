"""Profile repository: patient and doctor lookups."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Literal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dermtriage.models.profile import DoctorProfile, PatientProfile, VerificationStatus
from dermtriage.schemas.profile import DoctorProfileCreate, PatientProfileCreate


class ProfileRepository:
    """Repository for patient and doctor profiles."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_patient(self, uid: str) -> PatientProfile | None:
        return await self.db.get(PatientProfile, uid)

    async def get_doctor(self, uid: str) -> DoctorProfile | None:
        return await self.db.get(DoctorProfile, uid)

    async def get_profile(
        self, uid: str
    ) -> tuple[Literal["doctor"], DoctorProfile] | tuple[Literal["patient"], PatientProfile] | None:
        """Resolve a user id to its profile, checking doctors first."""
        doctor = await self.get_doctor(uid)
        if doctor is not None:
            return "doctor", doctor
        patient = await self.get_patient(uid)
        if patient is not None:
            return "patient", patient
        return None

    async def patients_by_ids(self, uids: Iterable[str]) -> dict[str, PatientProfile]:
        """Bulk lookup used by case grouping."""
        wanted = set(uids)
        if not wanted:
            return {}
        result = await self.db.execute(
            select(PatientProfile).where(PatientProfile.uid.in_(wanted))
        )
        return {p.uid: p for p in result.scalars().all()}

    async def list_approved_doctors(self) -> list[DoctorProfile]:
        result = await self.db.execute(
            select(DoctorProfile)
            .where(DoctorProfile.verification_status == VerificationStatus.APPROVED)
            .order_by(DoctorProfile.name.asc())
        )
        return list(result.scalars().all())

    async def create_patient(self, uid: str, data: PatientProfileCreate) -> PatientProfile:
        patient = PatientProfile(
            uid=uid,
            email=data.email,
            name=data.name.strip(),
            age=data.age,
            gender=data.gender,
            region=data.region or "N/A",
            skin_tone=data.skin_tone or "N/A",
            photo_url="",
        )
        self.db.add(patient)
        await self.db.flush()
        await self.db.refresh(patient)
        return patient

    async def create_doctor(
        self,
        uid: str,
        data: DoctorProfileCreate,
        verification_status: VerificationStatus = VerificationStatus.PENDING,
    ) -> DoctorProfile:
        doctor = DoctorProfile(
            uid=uid,
            email=data.email,
            name=data.name.strip(),
            age=data.age,
            gender=data.gender,
            experience=data.experience or 0,
            specialization=data.specialization or "Dermatology",
            verification_status=verification_status,
            photo_url="",
        )
        self.db.add(doctor)
        await self.db.flush()
        await self.db.refresh(doctor)
        return doctor

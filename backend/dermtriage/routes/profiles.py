"""Profile API routes.

Profiles are created once per user after the identity provider has
registered them, in either the patient or the doctor role.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from dermtriage.auth import get_current_doctor, get_current_patient, verify_bearer_token
from dermtriage.config import settings
from dermtriage.database import get_db
from dermtriage.models.profile import DoctorProfile, PatientProfile, VerificationStatus
from dermtriage.repositories import ProfileRepository
from dermtriage.schemas.profile import (
    DoctorProfileCreate,
    DoctorProfileResponse,
    DoctorProfileUpdate,
    PatientProfileCreate,
    PatientProfileResponse,
    PatientProfileUpdate,
    ProfileMeResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profiles", tags=["profiles"])


async def _ensure_no_profile(repo: ProfileRepository, user_id: str) -> None:
    if await repo.get_profile(user_id) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Profile already exists",
        )


@router.get("/me", response_model=ProfileMeResponse)
async def get_my_profile(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(verify_bearer_token),
) -> ProfileMeResponse:
    """Get the caller's profile.

    Raises:
        HTTPException: 404 if the caller has not created a profile yet.
    """
    found = await ProfileRepository(db).get_profile(user_id)
    if found is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        )

    role, profile = found
    if role == "doctor":
        return ProfileMeResponse(role="doctor", doctor=DoctorProfileResponse.model_validate(profile))
    return ProfileMeResponse(role="patient", patient=PatientProfileResponse.model_validate(profile))


@router.post("/patient", response_model=PatientProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_patient_profile(
    profile_data: PatientProfileCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(verify_bearer_token),
) -> PatientProfileResponse:
    """Create the caller's patient profile.

    Raises:
        HTTPException: 409 if the caller already has a profile.
    """
    repo = ProfileRepository(db)
    await _ensure_no_profile(repo, user_id)
    patient = await repo.create_patient(user_id, profile_data)
    logger.info("Created patient profile %s", user_id)
    return PatientProfileResponse.model_validate(patient)


@router.patch("/patient", response_model=PatientProfileResponse)
async def update_patient_profile(
    profile_data: PatientProfileUpdate,
    db: AsyncSession = Depends(get_db),
    patient: PatientProfile = Depends(get_current_patient),
) -> PatientProfileResponse:
    """Update fields of the caller's patient profile."""
    updates = profile_data.model_dump(exclude_unset=True)
    for field, value in updates.items():
        if value is not None:
            setattr(patient, field, value)

    await db.flush()
    await db.refresh(patient)
    return PatientProfileResponse.model_validate(patient)


@router.post("/doctor", response_model=DoctorProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_doctor_profile(
    profile_data: DoctorProfileCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(verify_bearer_token),
) -> DoctorProfileResponse:
    """Create the caller's doctor profile.

    New doctors start as ``pending`` unless automatic approval is enabled.

    Raises:
        HTTPException: 409 if the caller already has a profile.
    """
    repo = ProfileRepository(db)
    await _ensure_no_profile(repo, user_id)
    verification = (
        VerificationStatus.APPROVED
        if settings.auto_approve_doctors
        else VerificationStatus.PENDING
    )
    doctor = await repo.create_doctor(user_id, profile_data, verification_status=verification)
    logger.info("Created doctor profile %s (%s)", user_id, verification.value)
    return DoctorProfileResponse.model_validate(doctor)


@router.patch("/doctor", response_model=DoctorProfileResponse)
async def update_doctor_profile(
    profile_data: DoctorProfileUpdate,
    db: AsyncSession = Depends(get_db),
    doctor: DoctorProfile = Depends(get_current_doctor),
) -> DoctorProfileResponse:
    """Update fields of the caller's doctor profile.

    Verification status is not part of the update schema and never changes here.
    """
    updates = profile_data.model_dump(exclude_unset=True)
    for field, value in updates.items():
        if value is not None:
            setattr(doctor, field, value)

    await db.flush()
    await db.refresh(doctor)
    return DoctorProfileResponse.model_validate(doctor)

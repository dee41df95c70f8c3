"""Pydantic schemas for patient and doctor profiles."""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class VerificationStatus(str, Enum):
    """Doctor credential verification states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PatientProfileCreate(BaseModel):
    """Schema for completing a patient profile after signup."""

    email: EmailStr
    name: str = Field(min_length=1, max_length=200)
    age: int = Field(ge=0, le=150)
    gender: str = Field(min_length=1, max_length=50)
    region: str | None = Field(default=None, max_length=120)
    skin_tone: str | None = Field(default=None, max_length=50)


class PatientProfileUpdate(BaseModel):
    """Schema for updating a patient profile."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    age: int | None = Field(default=None, ge=0, le=150)
    gender: str | None = Field(default=None, min_length=1, max_length=50)
    region: str | None = Field(default=None, max_length=120)
    skin_tone: str | None = Field(default=None, max_length=50)
    photo_url: str | None = None


class DoctorProfileCreate(BaseModel):
    """Schema for creating a doctor profile after signup."""

    email: EmailStr
    name: str = Field(min_length=1, max_length=200)
    age: int = Field(ge=18, le=150)
    gender: str = Field(min_length=1, max_length=50)
    experience: int | None = Field(default=None, ge=0, le=80)
    specialization: str | None = Field(default=None, max_length=120)


class DoctorProfileUpdate(BaseModel):
    """Schema for updating a doctor profile.

    Verification status is managed by credential review and is not editable here.
    """

    name: str | None = Field(default=None, min_length=1, max_length=200)
    age: int | None = Field(default=None, ge=18, le=150)
    gender: str | None = Field(default=None, min_length=1, max_length=50)
    experience: int | None = Field(default=None, ge=0, le=80)
    specialization: str | None = Field(default=None, min_length=1, max_length=120)
    photo_url: str | None = None


class PatientProfileResponse(BaseModel):
    """Patient profile in API responses."""

    model_config = ConfigDict(from_attributes=True)

    uid: str
    email: str
    name: str
    age: int
    gender: str
    region: str
    skin_tone: str
    photo_url: str
    created_at: datetime


class DoctorProfileResponse(BaseModel):
    """Doctor profile in API responses."""

    model_config = ConfigDict(from_attributes=True)

    uid: str
    email: str
    name: str
    age: int
    gender: str
    experience: int
    specialization: str
    verification_status: VerificationStatus
    photo_url: str
    created_at: datetime


class ProfileMeResponse(BaseModel):
    """The caller's own profile, whichever role it has."""

    role: Literal["patient", "doctor"]
    patient: PatientProfileResponse | None = None
    doctor: DoctorProfileResponse | None = None

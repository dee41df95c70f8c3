"""Bearer token authentication and role resolution.

Tokens are issued by the identity provider, which writes them to the
``auth_sessions`` table. This module only validates them and resolves the
caller's patient or doctor profile.
"""

from datetime import datetime, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dermtriage.database import get_db
from dermtriage.models.auth import AuthSession
from dermtriage.models.profile import DoctorProfile, PatientProfile

bearer_scheme = HTTPBearer(auto_error=False)


async def verify_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> str:
    """Validate a bearer token against the session table.

    Returns:
        The authenticated user_id.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
        )

    token = credentials.credentials
    result = await db.execute(
        select(AuthSession).where(
            AuthSession.token == token,
            AuthSession.expires_at > datetime.now(timezone.utc),
        )
    )
    session = result.scalar_one_or_none()

    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return session.user_id


async def get_current_patient(
    user_id: str = Depends(verify_bearer_token),
    db: AsyncSession = Depends(get_db),
) -> PatientProfile:
    """Resolve the caller to a patient profile.

    Raises:
        HTTPException: 403 if the caller has no patient profile.
    """
    patient = await db.get(PatientProfile, user_id)
    if patient is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Patient profile required",
        )
    return patient


async def get_current_doctor(
    user_id: str = Depends(verify_bearer_token),
    db: AsyncSession = Depends(get_db),
) -> DoctorProfile:
    """Resolve the caller to a doctor profile.

    Raises:
        HTTPException: 403 if the caller has no doctor profile.
    """
    doctor = await db.get(DoctorProfile, user_id)
    if doctor is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Doctor profile required",
        )
    return doctor

"""Emergency alert route."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from dermtriage.auth import get_current_patient
from dermtriage.database import get_db
from dermtriage.models.activity import EmergencyAlert
from dermtriage.models.profile import PatientProfile
from dermtriage.schemas.cases import EmergencyResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/emergencies", tags=["emergencies"])


@router.post("", response_model=EmergencyResponse, status_code=status.HTTP_201_CREATED)
async def log_emergency(
    db: AsyncSession = Depends(get_db),
    patient: PatientProfile = Depends(get_current_patient),
) -> EmergencyResponse:
    """Record that the caller triggered the emergency action."""
    alert = EmergencyAlert(patient_id=patient.uid)
    db.add(alert)
    await db.flush()
    await db.refresh(alert)

    logger.warning("Emergency alert %s logged for patient %s", alert.id, patient.uid)
    return EmergencyResponse.model_validate(alert)

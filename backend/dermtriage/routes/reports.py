"""Report API routes.

Patient endpoints submit photos for analysis, list and read their reports,
send a report to a doctor and translate it. Doctor endpoints record the
review decision and amend notes afterwards.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from dermtriage.auth import get_current_doctor, get_current_patient, verify_bearer_token
from dermtriage.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from dermtriage.database import get_db
from dermtriage.dependencies import get_report_events, get_triage_service
from dermtriage.exceptions import (
    AuthorizationError,
    InvalidStateError,
    ReportNotFoundError,
    TriageError,
)
from dermtriage.models.profile import DoctorProfile, PatientProfile, VerificationStatus
from dermtriage.models.report import Report
from dermtriage.repositories import ProfileRepository, ReportRepository
from dermtriage.schemas.report import (
    AIReport,
    AmendNotesRequest,
    DecisionRequest,
    PatientContext,
    ReportCreate,
    ReportListResponse,
    ReportResponse,
    ReportSummary,
    RouteRequest,
    TranslateRequest,
    TranslateResponse,
)
from dermtriage.services import lifecycle
from dermtriage.services.feed import ReportEvents
from dermtriage.services.triage import TriageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


def _transition_error(exc: Exception) -> HTTPException:
    """Map a lifecycle precondition failure to an HTTP error.

    Callers not allowed to act on a report get the same 404 as for a missing one.
    """
    if isinstance(exc, (ReportNotFoundError, AuthorizationError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


async def _get_visible_report(db: AsyncSession, report_id: uuid.UUID, user_id: str) -> Report:
    report = await ReportRepository(db).get_by_id(report_id)
    # Reports the caller may not read are indistinguishable from missing ones
    if report is None or not lifecycle.can_view(report, user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Report not found",
        )
    return report


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    report_data: ReportCreate,
    db: AsyncSession = Depends(get_db),
    patient: PatientProfile = Depends(get_current_patient),
    triage: TriageService = Depends(get_triage_service),
) -> ReportResponse:
    """Analyze a skin photo and save the resulting report.

    The report is only persisted once generation has succeeded.

    Raises:
        HTTPException: 502 if the model fails to produce a report.
    """
    try:
        ai_report = await triage.generate_report(
            photo_data_uri=report_data.photo_data_uri,
            symptoms=report_data.symptoms,
            patient=PatientContext(
                age=patient.age,
                gender=patient.gender,
                region=patient.region,
                skin_tone=patient.skin_tone,
            ),
        )
    except TriageError:
        logger.error("Report generation failed for patient %s", patient.uid, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to generate report. Please try again.",
        )

    report = await ReportRepository(db).create(
        patient_id=patient.uid,
        report_name=report_data.report_name,
        ai_report=ai_report,
        photo_data_uri=report_data.photo_data_uri,
    )
    return ReportResponse.model_validate(report)


@router.get("", response_model=ReportListResponse)
async def list_reports(
    db: AsyncSession = Depends(get_db),
    patient: PatientProfile = Depends(get_current_patient),
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> ReportListResponse:
    """List the caller's own reports, newest first."""
    reports, total = await ReportRepository(db).list_for_patient(
        patient.uid, skip=skip, limit=limit
    )
    return ReportListResponse(
        items=[ReportSummary.model_validate(r) for r in reports],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(verify_bearer_token),
) -> ReportResponse:
    """Get a report visible to the owning patient or the assigned doctor.

    Raises:
        HTTPException: 404 if the report does not exist or is not visible.
    """
    report = await _get_visible_report(db, report_id, user_id)
    return ReportResponse.model_validate(report)


@router.post("/{report_id}/route", response_model=ReportResponse)
async def route_report(
    report_id: uuid.UUID,
    route_data: RouteRequest,
    db: AsyncSession = Depends(get_db),
    patient: PatientProfile = Depends(get_current_patient),
    events: ReportEvents = Depends(get_report_events),
) -> ReportResponse:
    """Send a report to an approved doctor for review.

    Raises:
        HTTPException: 404 if the report or doctor is not found,
            409 if the report was already sent or the doctor is not approved.
    """
    await _get_visible_report(db, report_id, patient.uid)

    doctor = await ProfileRepository(db).get_doctor(route_data.doctor_id)
    if doctor is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Doctor not found",
        )
    if doctor.verification_status != VerificationStatus.APPROVED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Doctor is not verified",
        )

    try:
        report = await ReportRepository(db).route_to_doctor(
            report_id, doctor.uid, actor_id=patient.uid
        )
    except (ReportNotFoundError, AuthorizationError, InvalidStateError) as e:
        raise _transition_error(e)

    await db.commit()
    events.publish(report.doctor_id)
    return ReportResponse.model_validate(report)


@router.post("/{report_id}/translate", response_model=TranslateResponse)
async def translate_report(
    report_id: uuid.UUID,
    translate_data: TranslateRequest,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(verify_bearer_token),
    triage: TriageService = Depends(get_triage_service),
) -> TranslateResponse:
    """Translate a report's prose into another language.

    Raises:
        HTTPException: 404 if the report is not visible, 502 if translation fails.
    """
    report = await _get_visible_report(db, report_id, user_id)
    try:
        translation = await triage.translate_report(
            AIReport.model_validate(report.ai_report),
            translate_data.language,
        )
    except TriageError:
        logger.error("Translation of report %s failed", report_id, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not translate the report at this time.",
        )

    return TranslateResponse(
        report_id=report.id,
        language=translate_data.language,
        translation=translation,
    )


@router.post("/{report_id}/decision", response_model=ReportResponse)
async def decide_report(
    report_id: uuid.UUID,
    decision_data: DecisionRequest,
    db: AsyncSession = Depends(get_db),
    doctor: DoctorProfile = Depends(get_current_doctor),
    events: ReportEvents = Depends(get_report_events),
) -> ReportResponse:
    """Approve, modify or reject a report awaiting the caller's review.

    Raises:
        HTTPException: 404 if not found or not visible to the caller,
            409 if the report is not awaiting review.
    """
    await _get_visible_report(db, report_id, doctor.uid)

    try:
        report = await ReportRepository(db).decide(
            report_id,
            actor_id=doctor.uid,
            decision=decision_data.decision.value,
            notes=decision_data.notes,
        )
    except (ReportNotFoundError, AuthorizationError, InvalidStateError) as e:
        raise _transition_error(e)

    await db.commit()
    events.publish(report.doctor_id)
    return ReportResponse.model_validate(report)


@router.patch("/{report_id}/notes", response_model=ReportResponse)
async def amend_report_notes(
    report_id: uuid.UUID,
    notes_data: AmendNotesRequest,
    db: AsyncSession = Depends(get_db),
    doctor: DoctorProfile = Depends(get_current_doctor),
    events: ReportEvents = Depends(get_report_events),
) -> ReportResponse:
    """Revise doctor notes on a decided report. The status is unchanged.

    Raises:
        HTTPException: 404 if not found or not visible to the caller,
            409 if the report has no decision yet.
    """
    await _get_visible_report(db, report_id, doctor.uid)

    try:
        report = await ReportRepository(db).amend_notes(
            report_id, actor_id=doctor.uid, notes=notes_data.notes
        )
    except (ReportNotFoundError, AuthorizationError, InvalidStateError) as e:
        raise _transition_error(e)

    await db.commit()
    events.publish(report.doctor_id)
    return ReportResponse.model_validate(report)

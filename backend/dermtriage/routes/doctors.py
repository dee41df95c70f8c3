"""Doctor API routes.

Lists verified doctors for patients, and serves the doctor console: grouped
patient cases (as a one-off read or a Server-Sent Events stream), review
statistics and daily calendar notes.
"""

import calendar
import json
import logging
import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dermtriage.auth import get_current_doctor, verify_bearer_token
from dermtriage.config import settings
from dermtriage.database import get_db
from dermtriage.dependencies import get_report_events, get_session_maker
from dermtriage.models.activity import DoctorNote
from dermtriage.models.profile import DoctorProfile
from dermtriage.repositories import ProfileRepository, ReportRepository
from dermtriage.schemas.cases import (
    CaseListResponse,
    CaseStatsResponse,
    DoctorNoteResponse,
    DoctorNoteUpsert,
    PatientGroupResponse,
)
from dermtriage.schemas.profile import DoctorProfileResponse, PatientProfileResponse
from dermtriage.schemas.report import ReportSummary
from dermtriage.services.feed import CaseSnapshot, ReportEvents, load_case_groups, subscribe_cases
from dermtriage.services.grouping import select_active, summarize_reports

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/doctors", tags=["doctors"])


def _to_case_list(
    snapshot: CaseSnapshot,
    selected_patient_id: str | None = None,
    selected_report_id: uuid.UUID | None = None,
) -> CaseListResponse:
    group, report = select_active(snapshot.groups, selected_patient_id, selected_report_id)
    return CaseListResponse(
        groups=[
            PatientGroupResponse(
                patient=PatientProfileResponse.model_validate(g.patient),
                reports=[ReportSummary.model_validate(r) for r in g.reports],
                last_update=g.last_update,
                unread_count=g.unread_count,
            )
            for g in snapshot.groups
        ],
        selected_patient_id=group.patient_id if group else None,
        selected_report_id=report.id if report else None,
        total_reports=snapshot.total_reports,
    )


@router.get("", response_model=list[DoctorProfileResponse])
async def list_doctors(
    db: AsyncSession = Depends(get_db),
    _user_id: str = Depends(verify_bearer_token),
) -> list[DoctorProfileResponse]:
    """List verified doctors a report can be sent to."""
    doctors = await ProfileRepository(db).list_approved_doctors()
    return [DoctorProfileResponse.model_validate(d) for d in doctors]


@router.get("/me/cases", response_model=CaseListResponse)
async def get_cases(
    db: AsyncSession = Depends(get_db),
    doctor: DoctorProfile = Depends(get_current_doctor),
    patient_id: str | None = None,
    report_id: uuid.UUID | None = None,
) -> CaseListResponse:
    """Get the caller's reports grouped by patient.

    Args:
        patient_id: Previously selected patient, kept selected if still present.
        report_id: Previously selected report, kept selected if still present.

    Returns:
        Groups ordered by most recent activity, with the resolved selection.
    """
    snapshot = await load_case_groups(db, doctor.uid)
    return _to_case_list(snapshot, patient_id, report_id)


@router.get("/me/cases/stream")
async def stream_cases(
    doctor: DoctorProfile = Depends(get_current_doctor),
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
    events: ReportEvents = Depends(get_report_events),
) -> StreamingResponse:
    """Stream grouped cases as Server-Sent Events.

    SSE event types:
    - event: cases: a full CaseListResponse, sent first and on every change
    - event: error: error details; the stream ends afterwards
    """
    doctor_id = doctor.uid

    async def event_generator():
        try:
            async with subscribe_cases(
                session_maker,
                events,
                doctor_id,
                poll_seconds=settings.case_feed_poll_seconds,
            ) as feed:
                async for snapshot in feed:
                    payload = _to_case_list(snapshot).model_dump_json(by_alias=True)
                    yield f"event: cases\ndata: {payload}\n\n"
        except Exception:
            logger.exception("Case feed failed for doctor %s", doctor_id)
            yield f"event: error\ndata: {json.dumps({'detail': 'A problem occurred while fetching patient cases.'})}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/me/stats", response_model=CaseStatsResponse)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    doctor: DoctorProfile = Depends(get_current_doctor),
) -> CaseStatsResponse:
    """Review counters across all reports routed to the caller."""
    reports = await ReportRepository(db).list_for_doctor(doctor.uid)
    stats = summarize_reports(reports)
    return CaseStatsResponse(
        total=stats.total,
        pending=stats.pending,
        reviewed=stats.reviewed,
        rejected=stats.rejected,
        weekly_activity=stats.weekly_activity,
    )


@router.put("/me/notes/{note_date}", response_model=DoctorNoteResponse)
async def save_note(
    note_date: date,
    note_data: DoctorNoteUpsert,
    db: AsyncSession = Depends(get_db),
    doctor: DoctorProfile = Depends(get_current_doctor),
) -> DoctorNoteResponse:
    """Save the caller's calendar note for a day, replacing any existing one."""
    result = await db.execute(
        select(DoctorNote).where(
            DoctorNote.doctor_id == doctor.uid,
            DoctorNote.note_date == note_date,
        )
    )
    note = result.scalar_one_or_none()

    if note is None:
        note = DoctorNote(doctor_id=doctor.uid, note_date=note_date, note=note_data.note)
        db.add(note)
    else:
        note.note = note_data.note

    await db.flush()
    await db.refresh(note)
    return DoctorNoteResponse.model_validate(note)


@router.get("/me/notes", response_model=list[DoctorNoteResponse])
async def list_notes(
    db: AsyncSession = Depends(get_db),
    doctor: DoctorProfile = Depends(get_current_doctor),
    year: int = Query(..., ge=1900, le=9999),
    month: int = Query(..., ge=1, le=12),
) -> list[DoctorNoteResponse]:
    """List the caller's calendar notes for one month."""
    first = date(year, month, 1)
    last = date(year, month, calendar.monthrange(year, month)[1])

    result = await db.execute(
        select(DoctorNote)
        .where(
            DoctorNote.doctor_id == doctor.uid,
            DoctorNote.note_date >= first,
            DoctorNote.note_date <= last,
        )
        .order_by(DoctorNote.note_date.asc())
    )
    return [DoctorNoteResponse.model_validate(n) for n in result.scalars().all()]

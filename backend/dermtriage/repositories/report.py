"""Report repository.

Persistence for reports plus the lifecycle transitions. Each transition reads
the row (locked with ``FOR UPDATE`` where the backend supports it), applies
the lifecycle rules and flushes a single update. Committing is left to the
caller's unit of work.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dermtriage.exceptions import ReportNotFoundError
from dermtriage.models.report import Report, ReportStatus
from dermtriage.schemas.report import AIReport
from dermtriage.services import lifecycle

logger = logging.getLogger(__name__)


class ReportRepository:
    """Repository for Report operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        patient_id: str,
        report_name: str,
        ai_report: AIReport,
        photo_data_uri: str | None = None,
    ) -> Report:
        """Persist an already generated report in ``pending-patient-input``."""
        report = Report(
            patient_id=patient_id,
            doctor_id=None,
            status=ReportStatus.PENDING_PATIENT_INPUT,
            report_name=report_name,
            ai_report=ai_report.model_dump(by_alias=True),
            photo_data_uri=photo_data_uri,
            doctor_notes="",
            prescription="",
        )
        self.db.add(report)
        await self.db.flush()
        await self.db.refresh(report)

        logger.info("Created report %s for patient %s", report.id, patient_id)
        return report

    async def get_by_id(self, report_id: uuid.UUID, for_update: bool = False) -> Report | None:
        """Get report by ID."""
        query = select(Report).where(Report.id == report_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _get_or_raise(self, report_id: uuid.UUID) -> Report:
        report = await self.get_by_id(report_id, for_update=True)
        if report is None:
            raise ReportNotFoundError(f"Report {report_id} not found")
        return report

    async def list_for_patient(
        self,
        patient_id: str,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[Report], int]:
        """List a patient's reports, newest first."""
        count_query = (
            select(func.count())
            .select_from(Report)
            .where(Report.patient_id == patient_id)
        )
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            select(Report)
            .where(Report.patient_id == patient_id)
            .order_by(Report.created_at.desc(), Report.id.asc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def list_for_doctor(self, doctor_id: str) -> list[Report]:
        """All reports routed to a doctor, in any status."""
        result = await self.db.execute(
            select(Report).where(Report.doctor_id == doctor_id)
        )
        return list(result.scalars().all())

    async def route_to_doctor(
        self,
        report_id: uuid.UUID,
        doctor_id: str,
        actor_id: str | None = None,
    ) -> Report:
        """Send a report to a doctor's review queue.

        Raises:
            ReportNotFoundError: If the report does not exist.
            AuthorizationError: If ``actor_id`` is not the owning patient.
            InvalidStateError: If the report was already routed.
        """
        report = await self._get_or_raise(report_id)
        lifecycle.route_to_doctor(report, doctor_id, actor_id=actor_id)
        await self.db.flush()
        await self.db.refresh(report)

        logger.info("Report %s routed to doctor %s", report.id, doctor_id)
        return report

    async def decide(
        self,
        report_id: uuid.UUID,
        actor_id: str,
        decision: ReportStatus | str,
        notes: str,
    ) -> Report:
        """Record a doctor's decision.

        Raises:
            ReportNotFoundError: If the report does not exist.
            AuthorizationError: If ``actor_id`` is not the assigned doctor.
            InvalidStateError: If the report is not awaiting review.
        """
        report = await self._get_or_raise(report_id)
        lifecycle.decide(report, actor_id, decision, notes)
        await self.db.flush()
        await self.db.refresh(report)

        logger.info("Report %s decided by %s: %s", report.id, actor_id, report.status.value)
        return report

    async def amend_notes(self, report_id: uuid.UUID, actor_id: str, notes: str) -> Report:
        """Revise doctor notes on a decided report.

        Raises:
            ReportNotFoundError: If the report does not exist.
            AuthorizationError: If ``actor_id`` is not the assigned doctor.
            InvalidStateError: If the report has no decision yet.
        """
        report = await self._get_or_raise(report_id)
        lifecycle.amend_notes(report, actor_id, notes)
        await self.db.flush()
        await self.db.refresh(report)

        logger.info("Notes amended on report %s by %s", report.id, actor_id)
        return report

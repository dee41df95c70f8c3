"""Live case feed for the doctor console.

A doctor's console subscribes to its report set and receives a freshly
grouped snapshot whenever that set changes. Snapshots are recomputed from the
store, never patched incrementally: the latest snapshot always wins.

Changes are detected two ways. Writes made through this process publish on
``ReportEvents`` and wake the affected doctor's subscribers immediately; a
poll interval catches writes made elsewhere. The subscription is a scoped
resource: ``subscribe_cases`` always unregisters its listener on exit,
including on errors and client disconnects.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dermtriage.models.profile import PatientProfile
from dermtriage.models.report import Report
from dermtriage.repositories.profile import ProfileRepository
from dermtriage.repositories.report import ReportRepository
from dermtriage.services.grouping import (
    PatientGroup,
    group_reports_by_patient,
    snapshot_fingerprint,
    unresolved_patient_ids,
)

logger = logging.getLogger(__name__)


class ReportEvents:
    """In-process broadcaster of "this doctor's reports changed" signals."""

    def __init__(self) -> None:
        self._listeners: dict[str, set[asyncio.Event]] = {}

    def register(self, doctor_id: str) -> asyncio.Event:
        event = asyncio.Event()
        self._listeners.setdefault(doctor_id, set()).add(event)
        return event

    def unregister(self, doctor_id: str, event: asyncio.Event) -> None:
        listeners = self._listeners.get(doctor_id)
        if listeners is None:
            return
        listeners.discard(event)
        if not listeners:
            del self._listeners[doctor_id]

    def publish(self, doctor_id: str | None) -> None:
        if doctor_id is None:
            return
        for event in self._listeners.get(doctor_id, ()):
            event.set()

    def listener_count(self, doctor_id: str | None = None) -> int:
        if doctor_id is not None:
            return len(self._listeners.get(doctor_id, ()))
        return sum(len(v) for v in self._listeners.values())


@dataclass(frozen=True)
class CaseSnapshot:
    """One grouped view of a doctor's reports."""

    groups: list[PatientGroup[Report, PatientProfile]]
    total_reports: int


async def load_case_groups(db: AsyncSession, doctor_id: str) -> CaseSnapshot:
    """Query a doctor's reports and group them by patient.

    Reports whose patient profile cannot be found are left out and logged.
    """
    reports = await ReportRepository(db).list_for_doctor(doctor_id)
    profiles = await ProfileRepository(db).patients_by_ids(r.patient_id for r in reports)

    dropped = unresolved_patient_ids(reports, profiles.get)
    if dropped:
        logger.warning(
            "Dropping reports for %d unresolved patient(s) in doctor %s cases: %s",
            len(dropped), doctor_id, sorted(dropped),
        )

    return CaseSnapshot(
        groups=group_reports_by_patient(reports, profiles.get),
        total_reports=len(reports),
    )


async def _snapshots(
    session_maker: async_sessionmaker[AsyncSession],
    doctor_id: str,
    wake: asyncio.Event,
    poll_seconds: float,
) -> AsyncIterator[CaseSnapshot]:
    last = None
    while True:
        wake.clear()
        async with session_maker() as db:
            snapshot = await load_case_groups(db, doctor_id)

        fingerprint = snapshot_fingerprint(snapshot.groups)
        if fingerprint != last:
            last = fingerprint
            yield snapshot

        try:
            await asyncio.wait_for(wake.wait(), timeout=poll_seconds)
        except asyncio.TimeoutError:
            pass


@asynccontextmanager
async def subscribe_cases(
    session_maker: async_sessionmaker[AsyncSession],
    events: ReportEvents,
    doctor_id: str,
    poll_seconds: float = 5.0,
) -> AsyncIterator[AsyncIterator[CaseSnapshot]]:
    """Subscribe to a doctor's grouped cases.

    Usage:
        async with subscribe_cases(session_maker, events, doctor_id) as feed:
            async for snapshot in feed:
                render(snapshot.groups)

    The first snapshot is delivered immediately; later ones only when the
    grouping actually changed.
    """
    wake = events.register(doctor_id)
    logger.info("Case feed opened for doctor %s", doctor_id)
    stream = _snapshots(session_maker, doctor_id, wake, poll_seconds)
    try:
        yield stream
    finally:
        await stream.aclose()
        events.unregister(doctor_id, wake)
        logger.info("Case feed closed for doctor %s", doctor_id)

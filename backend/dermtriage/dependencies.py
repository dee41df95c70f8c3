"""Shared FastAPI dependencies for services held on application state."""

from collections.abc import AsyncGenerator

from fastapi import HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dermtriage.database import DatabaseNotConfiguredError
from dermtriage.services.feed import ReportEvents
from dermtriage.services.triage import TriageService


async def get_triage_service() -> AsyncGenerator[TriageService, None]:
    """Yield a TriageService for one request and close it afterwards."""
    try:
        service = TriageService()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Report generation is not configured.",
        )
    try:
        yield service
    finally:
        await service.close()


def get_report_events(request: Request) -> ReportEvents:
    """The process-wide report change broadcaster."""
    events = getattr(request.app.state, "report_events", None)
    if events is None:
        events = ReportEvents()
        request.app.state.report_events = events
    return events


def get_session_maker(request: Request) -> async_sessionmaker[AsyncSession]:
    """Session factory for long-lived work that outlives one request session."""
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise DatabaseNotConfiguredError("Database has not been initialised")
    return database.session_maker

"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from dermtriage import __version__
from dermtriage.config import settings
from dermtriage.database import Database, DatabaseNotConfiguredError
from dermtriage.routes import doctors, emergencies, profiles, reports
from dermtriage.services.feed import ReportEvents

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events for startup/shutdown."""
    # Startup: the database handle is created here, once configuration is loaded
    if not settings.database_configured:
        raise DatabaseNotConfiguredError(
            "DATABASE_URL not configured! Set DATABASE_URL environment variable."
        )
    database = Database(settings.database_url, echo=settings.debug)
    if database.url.startswith("sqlite"):
        await database.create_all()
        logger.info("SQLite schema created")

    app.state.database = database
    app.state.report_events = ReportEvents()

    try:
        yield  # Application runs here
    finally:
        # Shutdown: release pooled connections
        await database.dispose()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Referrer policy
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Permissions policy (the app never needs these browser APIs)
        response.headers["Permissions-Policy"] = (
            "geolocation=(), microphone=(), camera=()"
        )
        return response


app = FastAPI(
    title="DermTriage",
    description="AI-assisted dermatology triage with doctor review",
    version=__version__,
    lifespan=lifespan,
)

# Security headers middleware (applied to all responses)
app.add_middleware(SecurityHeadersMiddleware)

# CORS middleware for frontend
# Parse comma-separated origins from config
_cors_origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH"],
    allow_headers=["Authorization", "Content-Type"],
)

# Include API routers
app.include_router(profiles.router, prefix="/api")
app.include_router(reports.router, prefix="/api")
app.include_router(doctors.router, prefix="/api")
app.include_router(emergencies.router, prefix="/api")


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API info."""
    return {
        "name": "DermTriage API",
        "version": __version__,
        "docs": "/docs",
    }

"""DermTriage: AI-assisted dermatology triage with doctor review."""

__version__ = "0.1.0"

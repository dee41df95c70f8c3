"""Domain errors raised by the lifecycle, repositories and triage service."""


class ReportNotFoundError(ValueError):
    """Raised when a report (or a referenced profile) does not resolve."""

    pass


class InvalidStateError(ValueError):
    """Raised when a transition is attempted from the wrong status."""

    pass


class AuthorizationError(PermissionError):
    """Raised when the caller is not allowed to perform a transition."""

    pass


class TriageError(RuntimeError):
    """Raised when the hosted model fails to produce a usable report."""

    pass

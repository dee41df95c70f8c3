"""Report review lifecycle.

A report moves through a short, linear state machine::

    pending-patient-input --route--> pending-doctor-review --decide--> doctor-approved
                                                                   \\-> doctor-modified
                                                                   \\-> rejected

Each transition corresponds to one human action (the patient sends the report,
the doctor decides on it). The three decision states are terminal: the only
later write allowed is ``amend_notes``, which revises the doctor's notes and
never touches ``status``.

The functions here validate every precondition before mutating anything, so a
failed transition always leaves the report unchanged. They operate on any
object exposing ``patient_id``, ``doctor_id``, ``status`` and ``doctor_notes``
(the ORM ``Report`` in production, plain objects in tests) and perform no I/O.
"""

from typing import Protocol

from dermtriage.exceptions import AuthorizationError, InvalidStateError
from dermtriage.models.report import ReportStatus

TERMINAL_STATUSES = frozenset({
    ReportStatus.DOCTOR_APPROVED,
    ReportStatus.DOCTOR_MODIFIED,
    ReportStatus.REJECTED,
})

DECISIONS = TERMINAL_STATUSES


class ReportLike(Protocol):
    patient_id: str
    doctor_id: str | None
    status: ReportStatus
    doctor_notes: str


def _coerce_status(value: ReportStatus | str) -> ReportStatus:
    if isinstance(value, ReportStatus):
        return value
    return ReportStatus(getattr(value, "value", value))


def is_terminal(report: ReportLike) -> bool:
    """True once a doctor has decided on the report."""
    return _coerce_status(report.status) in TERMINAL_STATUSES


def has_consistent_assignment(report: ReportLike) -> bool:
    """Check the doctor-assignment invariant.

    ``doctor_id`` is unset exactly when the report is still waiting for the
    patient to send it.
    """
    unrouted = _coerce_status(report.status) == ReportStatus.PENDING_PATIENT_INPUT
    return (report.doctor_id is None) == unrouted


def can_view(report: ReportLike, user_id: str) -> bool:
    """Only the owning patient and the assigned doctor may read a report."""
    return user_id == report.patient_id or (
        report.doctor_id is not None and user_id == report.doctor_id
    )


def route_to_doctor(report: ReportLike, doctor_id: str, actor_id: str | None = None) -> None:
    """Assign a doctor and move the report into the review queue.

    Routing from any status other than ``pending-patient-input`` fails with
    ``InvalidStateError`` whoever the caller is.

    Args:
        report: The report to route.
        doctor_id: The doctor receiving the report.
        actor_id: The user performing the routing. When given it must be
            the report's patient.

    Raises:
        AuthorizationError: If ``actor_id`` is not the owning patient.
        InvalidStateError: If the report was already routed.
        ValueError: If ``doctor_id`` is empty.
    """
    if not doctor_id:
        raise ValueError("doctor_id cannot be empty")

    current = _coerce_status(report.status)
    if current != ReportStatus.PENDING_PATIENT_INPUT:
        raise InvalidStateError(
            f"Report cannot be routed from status '{current.value}'"
        )
    if actor_id is not None and actor_id != report.patient_id:
        raise AuthorizationError("Only the owning patient can send this report")

    report.doctor_id = doctor_id
    report.status = ReportStatus.PENDING_DOCTOR_REVIEW


def decide(
    report: ReportLike,
    actor_id: str,
    decision: ReportStatus | str,
    notes: str,
) -> None:
    """Record the assigned doctor's terminal decision.

    An unrouted report has no assigned doctor yet, so deciding on it is a
    state error for every caller. Once routed, callers other than the
    assigned doctor are always refused, whatever the status.

    Raises:
        ValueError: If ``decision`` is not one of the terminal states.
        InvalidStateError: If the report is not awaiting review.
        AuthorizationError: If ``actor_id`` is not the assigned doctor.
    """
    target = _coerce_status(decision)
    if target not in DECISIONS:
        raise ValueError(f"'{target.value}' is not a doctor decision")

    current = _coerce_status(report.status)
    if current == ReportStatus.PENDING_PATIENT_INPUT:
        raise InvalidStateError("Report has not been sent to a doctor yet")
    if actor_id != report.doctor_id:
        raise AuthorizationError("Only the assigned doctor can decide on this report")
    if current != ReportStatus.PENDING_DOCTOR_REVIEW:
        raise InvalidStateError(
            f"Report already has a final decision ('{current.value}')"
        )

    report.status = target
    report.doctor_notes = notes


def amend_notes(report: ReportLike, actor_id: str, notes: str) -> None:
    """Revise doctor notes on a decided report without changing its status.

    Applying the same notes twice leaves the report in the same state.

    Raises:
        InvalidStateError: If the report has no decision yet.
        AuthorizationError: If ``actor_id`` is not the assigned doctor.
    """
    current = _coerce_status(report.status)
    if current == ReportStatus.PENDING_PATIENT_INPUT:
        raise InvalidStateError("Report has not been sent to a doctor yet")
    if actor_id != report.doctor_id:
        raise AuthorizationError("Only the assigned doctor can amend these notes")
    if current not in TERMINAL_STATUSES:
        raise InvalidStateError("Notes can only be amended after a decision")

    report.doctor_notes = notes

"""Patient case grouping for the doctor console.

Turns the flat set of reports visible to one doctor into per-patient groups,
newest activity first. Everything here is pure: no I/O, no mutation of the
inputs, and the same inputs always produce the same output.
"""

from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, Protocol, TypeVar

from dermtriage.models.report import ReportStatus

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class GroupableReport(Protocol):
    id: Any
    patient_id: str
    status: ReportStatus
    created_at: datetime


R = TypeVar("R", bound=GroupableReport)
P = TypeVar("P")


@dataclass(frozen=True)
class PatientGroup(Generic[R, P]):
    """One patient's reports as seen by one doctor."""

    patient_id: str
    patient: P
    reports: tuple[R, ...]
    last_update: datetime | None
    unread_count: int


@dataclass(frozen=True)
class CaseStats:
    """Review counters for a doctor's reports."""

    total: int = 0
    pending: int = 0
    reviewed: int = 0
    rejected: int = 0
    weekly_activity: dict[str, int] = field(default_factory=dict)


def _status_value(report: GroupableReport) -> str:
    return getattr(report.status, "value", report.status)


def sort_newest_first(reports: Iterable[R]) -> list[R]:
    """Order reports by ``created_at`` descending.

    Reports with identical timestamps keep a stable order by id, so repeated
    runs never swap them.
    """
    by_id = sorted(reports, key=lambda r: str(r.id))
    return sorted(by_id, key=lambda r: r.created_at, reverse=True)


def group_reports_by_patient(
    reports: Iterable[R],
    profile_of: Callable[[str], P | None],
) -> list[PatientGroup[R, P]]:
    """Group reports per patient, dropping patients whose profile is missing.

    Args:
        reports: Reports visible to the doctor.
        profile_of: Lookup returning the patient's profile, or None.

    Returns:
        Groups sorted by their newest report (newest first, ties by patient id).
    """
    partitions: dict[str, list[R]] = {}
    for report in reports:
        if not report.patient_id:
            continue
        partitions.setdefault(report.patient_id, []).append(report)

    groups: list[PatientGroup[R, P]] = []
    for patient_id, members in partitions.items():
        profile = profile_of(patient_id)
        if profile is None:
            continue

        ordered = sort_newest_first(members)
        groups.append(
            PatientGroup(
                patient_id=patient_id,
                patient=profile,
                reports=tuple(ordered),
                last_update=ordered[0].created_at if ordered else None,
                unread_count=sum(
                    1
                    for r in ordered
                    if _status_value(r) == ReportStatus.PENDING_DOCTOR_REVIEW.value
                ),
            )
        )

    groups.sort(key=lambda g: g.patient_id)
    groups.sort(key=lambda g: g.reports[0].created_at, reverse=True)
    return groups


def unresolved_patient_ids(
    reports: Iterable[GroupableReport],
    profile_of: Callable[[str], Any],
) -> set[str]:
    """Patient ids that grouping would drop for lack of a profile."""
    return {
        r.patient_id
        for r in reports
        if r.patient_id and profile_of(r.patient_id) is None
    }


def select_active(
    groups: Sequence[PatientGroup[R, P]],
    selected_patient_id: str | None = None,
    selected_report_id: Hashable | None = None,
) -> tuple[PatientGroup[R, P] | None, R | None]:
    """Carry the console selection across a fresh snapshot.

    Keeps the previously selected patient and report when they still exist;
    falls back to that patient's newest report, then to the first group's
    newest report, then to nothing.
    """
    current = next(
        (g for g in groups if selected_patient_id is not None and g.patient_id == selected_patient_id),
        None,
    )
    if current is not None:
        report = next(
            (r for r in current.reports if selected_report_id is not None and str(r.id) == str(selected_report_id)),
            None,
        )
        return current, report or (current.reports[0] if current.reports else None)

    if groups:
        first = groups[0]
        return first, first.reports[0] if first.reports else None
    return None, None


def summarize_reports(reports: Iterable[GroupableReport]) -> CaseStats:
    """Count reports by review outcome and by weekday received."""
    weekly = dict.fromkeys(WEEKDAYS, 0)
    total = pending = reviewed = rejected = 0

    for report in reports:
        total += 1
        status = _status_value(report)
        if status == ReportStatus.PENDING_DOCTOR_REVIEW.value:
            pending += 1
        elif status in (ReportStatus.DOCTOR_APPROVED.value, ReportStatus.DOCTOR_MODIFIED.value):
            reviewed += 1
        elif status == ReportStatus.REJECTED.value:
            rejected += 1
        if report.created_at is not None:
            weekly[WEEKDAYS[report.created_at.weekday()]] += 1

    return CaseStats(
        total=total,
        pending=pending,
        reviewed=reviewed,
        rejected=rejected,
        weekly_activity=weekly,
    )


PROFILE_FINGERPRINT_FIELDS = ("name", "age", "gender", "region", "skin_tone", "photo_url")


def _profile_digest(profile: Any) -> tuple:
    if isinstance(profile, Mapping):
        return tuple(profile.get(f) for f in PROFILE_FINGERPRINT_FIELDS)
    return tuple(getattr(profile, f, None) for f in PROFILE_FINGERPRINT_FIELDS)


def snapshot_fingerprint(groups: Sequence[PatientGroup[Any, Any]]) -> tuple:
    """Comparable digest of a grouping, used to skip unchanged snapshots.

    Covers each report's status and notes plus the patient details shown
    alongside the group.
    """
    return tuple(
        (
            g.patient_id,
            _profile_digest(g.patient),
            tuple(
                (str(r.id), _status_value(r), getattr(r, "doctor_notes", None))
                for r in g.reports
            ),
        )
        for g in groups
    )

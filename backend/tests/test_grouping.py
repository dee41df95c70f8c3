"""Tests for patient case grouping."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from dermtriage.models.report import ReportStatus
from dermtriage.services.grouping import (
    WEEKDAYS,
    group_reports_by_patient,
    select_active,
    snapshot_fingerprint,
    sort_newest_first,
    summarize_reports,
    unresolved_patient_ids,
)

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)  # a Monday


@dataclass
class FakeReport:
    patient_id: str
    created_at: datetime
    status: ReportStatus = ReportStatus.PENDING_DOCTOR_REVIEW
    doctor_id: str | None = "D"
    doctor_notes: str = ""
    id: uuid.UUID = field(default_factory=uuid.uuid4)


PROFILES = {"p1": {"name": "Asha"}, "p2": {"name": "Ben"}, "p3": {"name": "Cy"}}


class TestGroupReportsByPatient:
    """Tests for group_reports_by_patient."""

    def test_single_patient_two_reports(self):
        t1, t2 = T0, T0 + timedelta(hours=1)
        older = FakeReport("p1", t1)
        newer = FakeReport("p1", t2)

        groups = group_reports_by_patient([older, newer], PROFILES.get)

        assert len(groups) == 1
        group = groups[0]
        assert group.patient_id == "p1"
        assert group.patient == {"name": "Asha"}
        assert group.unread_count == 2
        assert group.last_update == t2
        assert list(group.reports) == [newer, older]

    def test_groups_ordered_by_newest_activity(self):
        reports = [
            FakeReport("p1", T0),
            FakeReport("p2", T0 + timedelta(days=2)),
            FakeReport("p3", T0 + timedelta(days=1)),
            FakeReport("p1", T0 + timedelta(hours=3)),
        ]

        groups = group_reports_by_patient(reports, PROFILES.get)

        assert [g.patient_id for g in groups] == ["p2", "p3", "p1"]
        assert groups[2].last_update == T0 + timedelta(hours=3)

    def test_unread_counts_only_pending_review(self):
        reports = [
            FakeReport("p1", T0, status=ReportStatus.PENDING_DOCTOR_REVIEW),
            FakeReport("p1", T0 + timedelta(minutes=1), status=ReportStatus.DOCTOR_APPROVED),
            FakeReport("p1", T0 + timedelta(minutes=2), status=ReportStatus.REJECTED),
        ]

        (group,) = group_reports_by_patient(reports, PROFILES.get)

        assert group.unread_count == 1
        assert len(group.reports) == 3

    def test_missing_profile_is_dropped(self):
        reports = [FakeReport("p1", T0), FakeReport("ghost", T0 + timedelta(hours=1))]

        groups = group_reports_by_patient(reports, PROFILES.get)

        assert [g.patient_id for g in groups] == ["p1"]
        assert unresolved_patient_ids(reports, PROFILES.get) == {"ghost"}

    def test_every_report_with_a_profile_appears_exactly_once(self):
        reports = [
            FakeReport(pid, T0 + timedelta(minutes=i))
            for i, pid in enumerate(["p1", "p2", "p1", "p3", "p2", "p1"])
        ]

        groups = group_reports_by_patient(reports, PROFILES.get)

        grouped = [r.id for g in groups for r in g.reports]
        assert sorted(grouped) == sorted(r.id for r in reports)
        for g in groups:
            assert all(r.patient_id == g.patient_id for r in g.reports)

    def test_empty_input(self):
        assert group_reports_by_patient([], PROFILES.get) == []

    def test_idempotent_and_input_order_independent(self):
        reports = [
            FakeReport("p1", T0),
            FakeReport("p2", T0),
            FakeReport("p1", T0),
            FakeReport("p3", T0 + timedelta(seconds=5)),
        ]

        first = group_reports_by_patient(reports, PROFILES.get)
        second = group_reports_by_patient(list(reversed(reports)), PROFILES.get)

        assert first == second
        assert snapshot_fingerprint(first) == snapshot_fingerprint(second)

    def test_does_not_mutate_input(self):
        reports = [FakeReport("p1", T0 + timedelta(hours=1)), FakeReport("p1", T0)]
        snapshot = list(reports)

        group_reports_by_patient(reports, PROFILES.get)

        assert reports == snapshot


class TestSortNewestFirst:
    """Tests for sort_newest_first tie-breaking."""

    def test_identical_timestamps_have_stable_order(self):
        a = FakeReport("p1", T0, id=uuid.UUID(int=1))
        b = FakeReport("p1", T0, id=uuid.UUID(int=2))
        c = FakeReport("p1", T0, id=uuid.UUID(int=3))

        runs = {
            tuple(r.id for r in sort_newest_first(order))
            for order in ([a, b, c], [c, b, a], [b, a, c], [c, a, b])
        }

        assert runs == {(a.id, b.id, c.id)}

    def test_newest_first(self):
        old = FakeReport("p1", T0)
        new = FakeReport("p1", T0 + timedelta(seconds=1))
        assert sort_newest_first([old, new]) == [new, old]


class TestSelectActive:
    """Tests for select_active."""

    @pytest.fixture
    def groups(self):
        return group_reports_by_patient(
            [
                FakeReport("p1", T0 + timedelta(hours=2)),
                FakeReport("p1", T0),
                FakeReport("p2", T0 + timedelta(hours=1)),
            ],
            PROFILES.get,
        )

    def test_keeps_existing_selection(self, groups):
        p2 = groups[1]
        group, report = select_active(groups, "p2", p2.reports[0].id)
        assert group is p2
        assert report is p2.reports[0]

    def test_keeps_older_report_selected(self, groups):
        p1 = groups[0]
        older = p1.reports[1]
        group, report = select_active(groups, "p1", older.id)
        assert group is p1
        assert report is older

    def test_falls_back_to_patients_newest_report(self, groups):
        group, report = select_active(groups, "p1", uuid.uuid4())
        assert group.patient_id == "p1"
        assert report is group.reports[0]

    def test_falls_back_to_first_group(self, groups):
        group, report = select_active(groups, "gone", None)
        assert group is groups[0]
        assert report is groups[0].reports[0]

    def test_no_selection_without_groups(self):
        assert select_active([], "p1", uuid.uuid4()) == (None, None)


class TestSummarizeReports:
    """Tests for summarize_reports."""

    def test_counts_by_outcome_and_weekday(self):
        reports = [
            FakeReport("p1", T0, status=ReportStatus.PENDING_DOCTOR_REVIEW),
            FakeReport("p1", T0, status=ReportStatus.DOCTOR_APPROVED),
            FakeReport("p2", T0 + timedelta(days=1), status=ReportStatus.DOCTOR_MODIFIED),
            FakeReport("p2", T0 + timedelta(days=6), status=ReportStatus.REJECTED),
        ]

        stats = summarize_reports(reports)

        assert stats.total == 4
        assert stats.pending == 1
        assert stats.reviewed == 2
        assert stats.rejected == 1
        assert stats.weekly_activity["Mon"] == 2
        assert stats.weekly_activity["Tue"] == 1
        assert stats.weekly_activity["Sun"] == 1
        assert list(stats.weekly_activity) == list(WEEKDAYS)

    def test_empty(self):
        stats = summarize_reports([])
        assert stats.total == 0
        assert set(stats.weekly_activity.values()) == {0}


class TestSnapshotFingerprint:
    """Tests for snapshot_fingerprint."""

    def test_changes_when_status_changes(self):
        report = FakeReport("p1", T0)
        before = snapshot_fingerprint(group_reports_by_patient([report], PROFILES.get))
        report.status = ReportStatus.DOCTOR_APPROVED
        after = snapshot_fingerprint(group_reports_by_patient([report], PROFILES.get))
        assert before != after

    def test_changes_when_patient_details_change(self):
        report = FakeReport("p1", T0)
        profiles = {"p1": {"name": "Asha", "age": 34}}
        before = snapshot_fingerprint(group_reports_by_patient([report], profiles.get))
        profiles["p1"] = {"name": "Asha Rao", "age": 34}
        after = snapshot_fingerprint(group_reports_by_patient([report], profiles.get))
        assert before != after

    def test_reads_profile_attributes(self):
        report = FakeReport("p1", T0)
        before = snapshot_fingerprint(
            group_reports_by_patient([report], {"p1": SimpleNamespace(name="Asha", age=34)}.get)
        )
        after = snapshot_fingerprint(
            group_reports_by_patient([report], {"p1": SimpleNamespace(name="Asha", age=35)}.get)
        )
        assert before != after

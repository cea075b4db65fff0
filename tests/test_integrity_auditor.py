"""Tests for services/integrity_auditor.py — orphaned grade detection."""

import datetime as dt

from models.records import AssignmentRecord, GradeRecord
from services.integrity_auditor import audit, is_valid_grade, split_grades


ASSIGNMENTS = [AssignmentRecord(id="a1"), AssignmentRecord(id="a2")]


def test_no_orphans_returns_none():
    grades = [GradeRecord(id="g1", assignment_id="a1", points=80)]
    assert audit(grades, ASSIGNMENTS) is None


def test_empty_inputs_return_none():
    assert audit([], []) is None


def test_exact_orphan_count():
    grades = [
        GradeRecord(id="g1", assignment_id="a1", points=80),
        GradeRecord(id="g2", assignment_id="deleted-1", points=50),
        GradeRecord(id="g3", assignment_id="deleted-2", points=60),
        GradeRecord(id="g4", assignment_id="", points=70),
    ]
    now = dt.datetime(2025, 9, 2, tzinfo=dt.timezone.utc)
    report = audit(grades, ASSIGNMENTS, detected_at=now)
    assert report.orphaned_count == 3
    assert report.orphaned_grade_ids == ["g2", "g3", "g4"]
    assert report.detected_at == now


def test_scenario_c_single_orphan(make_snapshot):
    snapshot = make_snapshot(grades=[{"studentUsername": "s1", "assignmentId": "deleted-id", "points": 50}])
    report = audit(snapshot.grades, snapshot.assignments)
    assert report.orphaned_count == 1
    assert report.detected_at.tzinfo is not None


def test_split_grades():
    grades = [
        GradeRecord(id="ok", assignment_id="a1", points=80),
        GradeRecord(id="orphan", assignment_id="zzz", points=80),
        GradeRecord(id="bad", assignment_id="a2", points=0, has_valid_points=False),
    ]
    valid, orphaned = split_grades(grades, ASSIGNMENTS)
    assert [g.id for g in valid] == ["ok"]
    assert [g.id for g in orphaned] == ["orphan"]


def test_is_valid_grade():
    ids = frozenset({"a1"})
    assert is_valid_grade(GradeRecord(assignment_id="a1", points=0), ids)
    assert not is_valid_grade(GradeRecord(assignment_id="a1", has_valid_points=False), ids)
    assert not is_valid_grade(GradeRecord(assignment_id="a9", points=90), ids)


def test_audit_does_not_mutate_inputs():
    grades = (GradeRecord(id="g", assignment_id="zzz"),)
    audit(grades, ASSIGNMENTS)
    assert grades == (GradeRecord(id="g", assignment_id="zzz"),)

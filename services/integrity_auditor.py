"""Integrity Auditor — detects grades that reference missing assignments.

Advisory only: the report is handed to the caller next to the metrics and
source data is never touched.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable

from models.dashboard import IntegrityReport
from models.records import AssignmentRecord, GradeRecord

logger = logging.getLogger(__name__)


def _assignment_ids(assignments: Iterable[AssignmentRecord]) -> frozenset[str]:
    return frozenset(a.id for a in assignments)


def is_orphaned(grade: GradeRecord, assignment_ids: frozenset[str]) -> bool:
    return grade.assignment_id not in assignment_ids


def is_valid_grade(grade: GradeRecord, assignment_ids: frozenset[str]) -> bool:
    """A valid grade resolves to an assignment and has parseable, non-negative points."""
    return grade.has_valid_points and not is_orphaned(grade, assignment_ids)


def split_grades(
    grades: Iterable[GradeRecord],
    assignments: Iterable[AssignmentRecord],
) -> tuple[list[GradeRecord], list[GradeRecord]]:
    """Partition *grades* into ``(valid, orphaned)``.

    Grades that resolve but carry unparseable points are in neither list.
    """
    ids = _assignment_ids(assignments)
    valid: list[GradeRecord] = []
    orphaned: list[GradeRecord] = []
    for grade in grades:
        if is_orphaned(grade, ids):
            orphaned.append(grade)
        elif grade.has_valid_points:
            valid.append(grade)
    return valid, orphaned


def audit(
    grades: Iterable[GradeRecord],
    assignments: Iterable[AssignmentRecord],
    detected_at: dt.datetime | None = None,
) -> IntegrityReport | None:
    """Report orphaned grades, or ``None`` when there are none."""
    ids = _assignment_ids(assignments)
    orphaned = [g for g in grades if is_orphaned(g, ids)]
    if not orphaned:
        return None

    logger.warning(
        "Data integrity issue: %d grades reference missing assignments (%s)",
        len(orphaned),
        ", ".join(sorted({g.assignment_id or "<blank>" for g in orphaned})),
    )
    return IntegrityReport(
        orphaned_count=len(orphaned),
        orphaned_grade_ids=[g.id for g in orphaned],
        detected_at=detected_at or dt.datetime.now(dt.timezone.utc),
    )

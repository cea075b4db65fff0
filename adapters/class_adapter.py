"""Adapter for the ``classes`` and ``assignments`` sheets → internal records.

Store actions handled:
- ``getClasses``     → list[ClassRecord]
- ``getAssignments`` → list[AssignmentRecord]
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from adapters.fields import (
    coerce_number,
    first_present,
    parse_datetime,
    string_or_empty,
)
from models.records import AssignmentRecord, ClassRecord

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Row → Record conversions
# ---------------------------------------------------------------------------

def parse_class(raw: Mapping[str, Any]) -> ClassRecord | None:
    """Convert a single ``classes`` row to :class:`ClassRecord`.

    Rows without an id cannot be referenced and are dropped.
    """
    class_id = string_or_empty(first_present(raw, ("id", "classId")))
    if not class_id:
        return None
    return ClassRecord(
        id=class_id,
        name=string_or_empty(first_present(raw, ("name", "className"))),
        subject=string_or_empty(raw.get("subject")),
        description=string_or_empty(raw.get("description")),
        teacher_username=string_or_empty(raw.get("teacherUsername")),
        created_at=parse_datetime(raw.get("createdAt")),
    )


def parse_assignment(raw: Mapping[str, Any]) -> AssignmentRecord | None:
    """Convert an ``assignments`` row to :class:`AssignmentRecord`."""
    assignment_id = string_or_empty(first_present(raw, ("id", "assignmentId")))
    if not assignment_id:
        return None
    max_points = coerce_number(first_present(raw, ("maxPoints", "totalPoints")))
    return AssignmentRecord(
        id=assignment_id,
        title=string_or_empty(raw.get("title")),
        class_id=string_or_empty(raw.get("classId")),
        description=string_or_empty(raw.get("description")),
        max_points=max_points if max_points and max_points > 0 else 100,
        due_date=parse_datetime(raw.get("dueDate")),
    )


# ---------------------------------------------------------------------------
# Collection parsers
# ---------------------------------------------------------------------------

def parse_classes(rows: Iterable[Mapping[str, Any]]) -> list[ClassRecord]:
    records = [parse_class(r) for r in rows]
    kept = [r for r in records if r is not None]
    if len(kept) < len(records):
        logger.warning("parse_classes: dropped %d rows without id", len(records) - len(kept))
    return kept


def parse_assignments(rows: Iterable[Mapping[str, Any]]) -> list[AssignmentRecord]:
    records = [parse_assignment(r) for r in rows]
    kept = [r for r in records if r is not None]
    if len(kept) < len(records):
        logger.warning("parse_assignments: dropped %d rows without id", len(records) - len(kept))
    return kept

"""Adapter for the ``students`` sheet → :class:`StudentRecord`.

The sheet has carried the username under both ``username`` and
``studentUsername`` over time.  Rows where neither holds a usable value are
malformed and are filtered out here, before any join sees them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from adapters.fields import first_present, parse_datetime, string_or_empty
from models.records import StudentRecord

logger = logging.getLogger(__name__)

# Class ids that mean "not assigned to any class yet".
UNASSIGNED_CLASS_IDS = frozenset({"", "default"})


def normalize_class_id(value: Any) -> str:
    class_id = string_or_empty(value)
    return "" if class_id in UNASSIGNED_CLASS_IDS else class_id


def parse_student(raw: Mapping[str, Any]) -> StudentRecord | None:
    """Convert a ``students`` row, or return ``None`` for a malformed one."""
    username = string_or_empty(first_present(raw, ("username", "studentUsername")))
    if not username:
        return None
    return StudentRecord(
        id=string_or_empty(raw.get("id")),
        username=username,
        full_name=string_or_empty(raw.get("fullName")),
        class_id=normalize_class_id(raw.get("classId")),
        role=string_or_empty(raw.get("role")) or "student",
        joined_at=parse_datetime(raw.get("joinedAt")),
    )


def parse_students(rows: Iterable[Mapping[str, Any]]) -> list[StudentRecord]:
    records = [parse_student(r) for r in rows]
    kept = [r for r in records if r is not None]
    skipped = len(records) - len(kept)
    if skipped:
        logger.warning("parse_students: skipping %d students without username", skipped)
    return kept

"""Adapter for the ``grades`` sheet → :class:`GradeRecord`.

The numeric grade has been stored under three column names over the life
of the sheet.  :data:`POINTS_CANDIDATES` is the priority order: the first
non-empty cell wins, and only that cell is parsed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from adapters.fields import (
    coerce_number,
    first_present,
    parse_datetime,
    string_or_empty,
)
from models.records import GradeRecord

POINTS_CANDIDATES: tuple[str, ...] = ("points", "value", "score")


def coerce_points(raw: Mapping[str, Any]) -> tuple[float, bool]:
    """Return ``(points, is_valid)`` for a grade row.

    Invalid means no candidate was present, the chosen candidate did not
    parse to a finite number, or the number is negative.  Invalid grades
    carry ``0`` points.
    """
    number = coerce_number(first_present(raw, POINTS_CANDIDATES))
    if number is None or number < 0:
        return 0.0, False
    return number, True


def parse_grade(raw: Mapping[str, Any]) -> GradeRecord:
    points, valid = coerce_points(raw)
    return GradeRecord(
        id=string_or_empty(raw.get("id")),
        student_username=string_or_empty(raw.get("studentUsername")),
        assignment_id=string_or_empty(raw.get("assignmentId")),
        assignment_title=string_or_empty(first_present(raw, ("assignmentTitle", "assignment"))),
        points=points,
        has_valid_points=valid,
        feedback=string_or_empty(raw.get("feedback")),
        graded_at=parse_datetime(first_present(raw, ("gradedAt", "createdAt"))),
    )


def parse_grades(rows: Iterable[Mapping[str, Any]]) -> list[GradeRecord]:
    return [parse_grade(r) for r in rows]

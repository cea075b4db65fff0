"""Normalised snapshot records — the canonical representation of store rows.

These models decouple the engine from the spreadsheet's column names.
Adapters in ``adapters/`` convert raw sheet rows → these records; nothing
downstream of the adapters ever touches a raw dict.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import Field

from models.base import RecordModel


class AttendanceStatus(str, Enum):
    """Canonical attendance statuses after synonym normalisation."""

    PRESENT = "present"
    ABSENT = "absent"
    SICK = "sick"
    PERMISSION = "permission"


# ---------------------------------------------------------------------------
# Classes / Students / Assignments
# ---------------------------------------------------------------------------

class ClassRecord(RecordModel):
    """A classroom owned by a teacher."""
    id: str
    name: str = ""
    subject: str = ""
    description: str = ""
    teacher_username: str = ""
    created_at: dt.datetime | None = None


class StudentRecord(RecordModel):
    """A student account. ``class_id`` is empty when unassigned."""
    id: str = ""
    username: str
    full_name: str = ""
    class_id: str = ""
    role: str = "student"
    joined_at: dt.datetime | None = None


class AssignmentRecord(RecordModel):
    """An assignment given to one class."""
    id: str
    title: str = ""
    class_id: str = ""
    description: str = ""
    max_points: float = 100
    due_date: dt.datetime | None = None


# ---------------------------------------------------------------------------
# Grades / Attendance
# ---------------------------------------------------------------------------

class GradeRecord(RecordModel):
    """A grade row. ``assignment_id`` may point at a deleted assignment."""
    id: str = ""
    student_username: str = ""
    assignment_id: str = ""
    assignment_title: str = ""
    points: float = 0
    has_valid_points: bool = True
    feedback: str = ""
    graded_at: dt.datetime | None = None


class AttendanceRecord(RecordModel):
    """One student's attendance mark for one class on one day.

    ``status`` holds an :class:`AttendanceStatus` value when the source
    status was recognised, otherwise the lower-cased raw value.
    """
    id: str = ""
    date: dt.date | None = None
    class_id: str = ""
    student_username: str = ""
    status: str = ""

    @property
    def is_present(self) -> bool:
        return self.status == AttendanceStatus.PRESENT.value


# ---------------------------------------------------------------------------
# Gamification
# ---------------------------------------------------------------------------

class GamificationRecord(RecordModel):
    """Points, level and badge names for a student.

    ``points`` is ``None`` when the sheet cell was empty; such rows never
    reach the leaderboard.
    """
    student_username: str = ""
    class_id: str = ""
    points: int | None = None
    level: int = 1
    badges: tuple[str, ...] = ()
    achievements: tuple[str, ...] = ()


class BadgeDefinition(RecordModel):
    """Badge catalogue entry, keyed by ``name``."""
    id: str = ""
    name: str
    description: str = ""
    icon: str = "🏆"
    category: str = ""
    point_value: int = 0


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

class CurrentUser(RecordModel):
    """The signed-in user as reported by the identity provider."""
    username: str
    full_name: str = ""
    role: str = Field(default="student")

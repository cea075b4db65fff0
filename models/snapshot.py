"""Snapshot — the immutable result of one fetch cycle."""

from __future__ import annotations

from pydantic import Field

from models.base import RecordModel
from models.errors import DataWarning
from models.records import (
    AssignmentRecord,
    AttendanceRecord,
    BadgeDefinition,
    ClassRecord,
    GamificationRecord,
    GradeRecord,
    StudentRecord,
)

CLASSES = "classes"
STUDENTS = "students"
ASSIGNMENTS = "assignments"
GRADES = "grades"
ATTENDANCE = "attendance"
GAMIFICATION = "gamification"
BADGES = "badges"

ALL_COLLECTIONS: tuple[str, ...] = (
    CLASSES, STUDENTS, ASSIGNMENTS, GRADES, ATTENDANCE, GAMIFICATION, BADGES,
)


class Snapshot(RecordModel):
    """Normalised collections plus whatever went wrong while loading them."""

    classes: tuple[ClassRecord, ...] = ()
    students: tuple[StudentRecord, ...] = ()
    assignments: tuple[AssignmentRecord, ...] = ()
    grades: tuple[GradeRecord, ...] = ()
    attendance: tuple[AttendanceRecord, ...] = ()
    gamification: tuple[GamificationRecord, ...] = ()
    badges: tuple[BadgeDefinition, ...] = ()
    warnings: tuple[DataWarning, ...] = ()
    failed_collections: tuple[str, ...] = Field(default=())

    @property
    def is_degraded(self) -> bool:
        return bool(self.failed_collections)

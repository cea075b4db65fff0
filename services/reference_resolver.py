"""Reference Resolver — in-memory indices and left-joins over a Snapshot.

Built once per fetch cycle.  Every lookup is a dict access; nothing here
touches the network.  Joins degrade to readable labels instead of blanks so
the dashboard never renders an empty name.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from adapters.student_adapter import UNASSIGNED_CLASS_IDS
from models.records import (
    AssignmentRecord,
    BadgeDefinition,
    ClassRecord,
    GamificationRecord,
    GradeRecord,
    StudentRecord,
)
from models.snapshot import Snapshot

logger = logging.getLogger(__name__)

UNKNOWN_CLASS = "Unknown Class"
NO_CLASS = "Belum ada kelas"
UNKNOWN_ASSIGNMENT = "Unknown Assignment"


class ReferenceResolver:
    """Lookup indices over one :class:`Snapshot`."""

    def __init__(self, snapshot: Snapshot) -> None:
        self.snapshot = snapshot
        self.classes_by_id: dict[str, ClassRecord] = {}
        self.students_by_username: dict[str, StudentRecord] = {}
        self.assignments_by_id: dict[str, AssignmentRecord] = {}
        self.badges_by_name: dict[str, BadgeDefinition] = {}
        self.gamification_by_username: dict[str, GamificationRecord] = {}
        students_by_class: dict[str, list[StudentRecord]] = defaultdict(list)

        # First occurrence wins for duplicate keys
        for cls in snapshot.classes:
            self.classes_by_id.setdefault(cls.id, cls)
        for student in snapshot.students:
            students_by_class[student.class_id].append(student)
            if student.username in self.students_by_username:
                logger.warning("Duplicate student username %r; keeping first row", student.username)
                continue
            self.students_by_username[student.username] = student
        for assignment in snapshot.assignments:
            self.assignments_by_id.setdefault(assignment.id, assignment)
        for badge in snapshot.badges:
            self.badges_by_name.setdefault(badge.name, badge)
        for record in snapshot.gamification:
            if record.student_username:
                self.gamification_by_username.setdefault(record.student_username, record)

        self._students_by_class = {k: tuple(v) for k, v in students_by_class.items()}

    # -- classes -------------------------------------------------------------

    def resolve_class_name(self, class_id: str | None) -> str:
        """Class name, ``"Belum ada kelas"`` when unassigned, else ``"Unknown Class"``."""
        if class_id is None or class_id.strip() in UNASSIGNED_CLASS_IDS:
            return NO_CLASS
        cls = self.classes_by_id.get(class_id)
        if cls is None:
            return UNKNOWN_CLASS
        return cls.name or UNKNOWN_CLASS

    def students_in_class(self, class_id: str) -> tuple[StudentRecord, ...]:
        if not class_id:
            return ()
        return self._students_by_class.get(class_id, ())

    # -- assignments ---------------------------------------------------------

    def resolve_assignment(self, assignment_id: str | None) -> AssignmentRecord | None:
        if not assignment_id:
            return None
        return self.assignments_by_id.get(assignment_id)

    def resolve_assignment_title(self, grade: GradeRecord) -> str:
        assignment = self.resolve_assignment(grade.assignment_id)
        if assignment is not None and assignment.title:
            return assignment.title
        return grade.assignment_title or UNKNOWN_ASSIGNMENT

    def class_name_for_assignment(self, assignment: AssignmentRecord) -> str:
        """Like :meth:`resolve_class_name`, but an assignment always needs a class."""
        if not assignment.class_id:
            return UNKNOWN_CLASS
        return self.resolve_class_name(assignment.class_id)

    # -- students ------------------------------------------------------------

    def resolve_student(self, username: str | None) -> StudentRecord | None:
        if not username:
            return None
        return self.students_by_username.get(username)

    def resolve_student_name(self, username: str) -> str:
        """Full name, or the username itself when the student is unknown."""
        student = self.resolve_student(username)
        if student is not None and student.full_name:
            return student.full_name
        return username

    # -- gamification --------------------------------------------------------

    def resolve_gamification(self, username: str) -> GamificationRecord | None:
        return self.gamification_by_username.get(username)

    def resolve_badges(self, names: tuple[str, ...] | list[str]) -> list[BadgeDefinition]:
        """Badge catalogue entries for *names*; unknown names get a bare definition."""
        return [self.badges_by_name.get(name) or BadgeDefinition(name=name) for name in names]

"""Metrics Aggregator — per-student and per-teacher dashboard metrics.

Every function here is a pure function of the resolved snapshot and an
explicit ``now``.  Missing data yields zeros, never ``None`` or NaN, and the
same snapshot always yields the same numbers regardless of row order.

Rounding follows the dashboard's historical half-up rule
(:func:`services.grade_stats.round_half_up`).
"""

from __future__ import annotations

import datetime as dt
import math
from collections import defaultdict
from collections.abc import Sequence

from models.dashboard import (
    AssignmentStatus,
    AssignmentView,
    CharacterProfile,
    ClassSummary,
    DashboardStats,
    LeaderboardEntry,
    RpgStats,
    StudentProgress,
)
from models.records import AssignmentRecord, GradeRecord
from services.grade_stats import mean_or_none, round_half_up
from services.integrity_auditor import split_grades
from services.leaderboard import rank_of
from services.reference_resolver import ReferenceResolver

DUE_SOON_WINDOW = dt.timedelta(hours=24)
ACTIVE_WINDOW = dt.timedelta(days=7)


def _average(points: Sequence[float], digits: int) -> float:
    if not points:
        return 0
    return round_half_up(math.fsum(points) / len(points), digits)


def _valid_grades(resolver: ReferenceResolver) -> list[GradeRecord]:
    valid, _ = split_grades(resolver.snapshot.grades, resolver.snapshot.assignments)
    return valid


# ---------------------------------------------------------------------------
# Per-student view
# ---------------------------------------------------------------------------

def attendance_rate(username: str, resolver: ReferenceResolver) -> int:
    """Percentage of the student's attendance rows marked present (0-100)."""
    records = [a for a in resolver.snapshot.attendance if a.student_username == username]
    if not records:
        return 0
    present = sum(1 for a in records if a.is_present)
    return int(round_half_up(present / len(records) * 100))


def student_average_grade(username: str, resolver: ReferenceResolver) -> float:
    """Mean of the student's valid grades, 2 decimals; 0 with no valid grades."""
    points = [g.points for g in _valid_grades(resolver) if g.student_username == username]
    return _average(points, 2)


def completed_assignments(username: str, resolver: ReferenceResolver) -> int:
    """``max(distinct assignment keys, grade rows)`` over all the student's grades.

    Ids and titles share one key set, so a row carrying both adds two keys.
    Every grade row counts, orphaned ones included.
    """
    grades = [g for g in resolver.snapshot.grades if g.student_username == username]
    distinct = {g.assignment_id for g in grades if g.assignment_id}
    distinct.update(g.assignment_title for g in grades if g.assignment_title)
    return max(len(distinct), len(grades))


def compute_student_progress(
    username: str,
    resolver: ReferenceResolver,
    leaderboard: Sequence[LeaderboardEntry],
) -> StudentProgress:
    """All per-student metrics for *username*.

    Args:
        leaderboard: The full, untruncated leaderboard used for ``rank``.
    """
    student = resolver.resolve_student(username)
    record = resolver.resolve_gamification(username)
    badges = list(record.badges) if record else []

    return StudentProgress(
        username=username,
        full_name=resolver.resolve_student_name(username),
        class_name=resolver.resolve_class_name(student.class_id if student else None),
        points=(record.points or 0) if record else 0,
        level=record.level if record else 1,
        badges=badges,
        earned_badges=resolver.resolve_badges(badges),
        achievements=list(record.achievements) if record else [],
        rank=rank_of(username, leaderboard),
        total_students=len(resolver.snapshot.students),
        attendance_rate=attendance_rate(username, resolver),
        average_grade=student_average_grade(username, resolver),
        completed_assignments=completed_assignments(username, resolver),
    )


# (min level, min average grade, profile)
_CHARACTER_TIERS: list[tuple[int, float, CharacterProfile]] = [
    (10, 90, CharacterProfile(name="Archmage", icon="🧙‍♂️", color="from-purple-600 to-indigo-800")),
    (8, 85, CharacterProfile(name="Wizard", icon="🔮", color="from-blue-600 to-purple-700")),
    (6, 80, CharacterProfile(name="Scholar", icon="📚", color="from-green-600 to-blue-600")),
    (4, 75, CharacterProfile(name="Apprentice", icon="🎓", color="from-yellow-600 to-green-600")),
    (2, 0, CharacterProfile(name="Student", icon="📖", color="from-orange-600 to-yellow-600")),
]
_NOVICE = CharacterProfile(name="Novice", icon="🌱", color="from-gray-600 to-orange-600")


def character_class(level: int, average_grade: float) -> CharacterProfile:
    for min_level, min_grade, profile in _CHARACTER_TIERS:
        if level >= min_level and average_grade >= min_grade:
            return profile
    return _NOVICE


def rpg_stats(progress: StudentProgress) -> RpgStats:
    max_hp = 100 + progress.level * 20
    max_mp = 50 + progress.level * 15
    return RpgStats(
        hp=min(max_hp, max_hp * progress.attendance_rate / 100),
        max_hp=max_hp,
        mp=min(max_mp, max_mp * progress.average_grade / 100),
        max_mp=max_mp,
        exp=progress.points % 1000,
        exp_to_next=1000,
        attack=math.floor(progress.completed_assignments * 2 + progress.level * 3),
        defense=math.floor(progress.attendance_rate / 10 + progress.level * 2),
        intelligence=math.floor(progress.average_grade / 5 + progress.level * 2),
        wisdom=math.floor(len(progress.badges) * 5 + progress.level),
    )


# ---------------------------------------------------------------------------
# Per-teacher view
# ---------------------------------------------------------------------------

def pending_grades(resolver: ReferenceResolver) -> int:
    """Σ over assignments of class students without a valid grade for it."""
    graded: dict[str, set[str]] = defaultdict(set)
    for grade in _valid_grades(resolver):
        graded[grade.assignment_id].add(grade.student_username)

    total = 0
    for assignment in resolver.snapshot.assignments:
        class_students = {s.username for s in resolver.students_in_class(assignment.class_id)}
        total += len(class_students - graded.get(assignment.id, set()))
    return total


def today_attendance(resolver: ReferenceResolver, now: dt.datetime) -> int:
    today = now.astimezone(dt.timezone.utc).date()
    return sum(1 for a in resolver.snapshot.attendance if a.date == today and a.is_present)


def overdue_assignments(resolver: ReferenceResolver, now: dt.datetime) -> int:
    return sum(
        1 for a in resolver.snapshot.assignments
        if a.due_date is not None and a.due_date < now
    )


def active_students(resolver: ReferenceResolver, now: dt.datetime, window: dt.timedelta = ACTIVE_WINDOW) -> int:
    """Distinct students with attendance dated in ``[now - window, now)``."""
    since = now - window
    active: set[str] = set()
    for record in resolver.snapshot.attendance:
        if record.date is None or not record.student_username:
            continue
        day = dt.datetime(record.date.year, record.date.month, record.date.day, tzinfo=dt.timezone.utc)
        if since <= day < now:
            active.add(record.student_username)
    return len(active)


def compute_dashboard_stats(
    resolver: ReferenceResolver,
    now: dt.datetime,
    active_window: dt.timedelta = ACTIVE_WINDOW,
) -> DashboardStats:
    snapshot = resolver.snapshot
    return DashboardStats(
        total_classes=len(snapshot.classes),
        total_students=len(snapshot.students),
        total_assignments=len(snapshot.assignments),
        average_grade=_average([g.points for g in _valid_grades(resolver)], 1),
        today_attendance=today_attendance(resolver, now),
        pending_grades=pending_grades(resolver),
        overdue_assignments=overdue_assignments(resolver, now),
        active_students=active_students(resolver, now, active_window),
    )


# ---------------------------------------------------------------------------
# Classes / assignments
# ---------------------------------------------------------------------------

def assignment_status(due_date: dt.datetime | None, now: dt.datetime) -> AssignmentStatus:
    if due_date is None:
        return "unknown"
    if due_date < now:
        return "overdue"
    if due_date - now < DUE_SOON_WINDOW:
        return "due_soon"
    return "active"


def assignment_view(assignment: AssignmentRecord, resolver: ReferenceResolver, now: dt.datetime) -> AssignmentView:
    return AssignmentView(
        assignment_id=assignment.id,
        title=assignment.title,
        class_id=assignment.class_id,
        class_name=resolver.class_name_for_assignment(assignment),
        due_date=assignment.due_date,
        status=assignment_status(assignment.due_date, now),
    )


def summarize_classes(resolver: ReferenceResolver) -> list[ClassSummary]:
    """One summary per class, in snapshot order."""
    assignment_counts: dict[str, int] = defaultdict(int)
    assignment_class: dict[str, str] = {}
    for assignment in resolver.snapshot.assignments:
        assignment_counts[assignment.class_id] += 1
        assignment_class.setdefault(assignment.id, assignment.class_id)

    class_points: dict[str, list[float]] = defaultdict(list)
    for grade in _valid_grades(resolver):
        class_points[assignment_class[grade.assignment_id]].append(grade.points)

    return [
        ClassSummary(
            class_id=cls.id,
            name=cls.name,
            subject=cls.subject,
            description=cls.description,
            student_count=len(resolver.students_in_class(cls.id)),
            assignment_count=assignment_counts.get(cls.id, 0),
            average_grade=mean_or_none(class_points.get(cls.id, [])),
        )
        for cls in resolver.snapshot.classes
    ]

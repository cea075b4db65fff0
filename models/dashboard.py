"""Dashboard output models — what the engine hands to the presentation layer.

Every numeric field defaults to ``0`` so a partially loaded snapshot still
serialises to a complete, renderable payload.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Literal

from pydantic import Field

from models.base import CamelModel
from models.errors import DataWarning
from models.records import BadgeDefinition, CurrentUser


class IntegrityReport(CamelModel):
    """Advisory count of grades whose assignment no longer exists."""

    orphaned_count: int
    orphaned_grade_ids: list[str] = Field(default_factory=list)
    detected_at: dt.datetime


# ---------------------------------------------------------------------------
# Teacher dashboard
# ---------------------------------------------------------------------------

class DashboardStats(CamelModel):
    """Headline KPIs for the teacher dashboard."""

    total_classes: int = 0
    total_students: int = 0
    total_assignments: int = 0
    average_grade: float = 0
    today_attendance: int = 0
    pending_grades: int = 0
    overdue_assignments: int = 0
    active_students: int = 0


class ClassSummary(CamelModel):
    """A class with its roster size, assignment count and grade average."""

    class_id: str
    name: str
    subject: str = ""
    description: str = ""
    student_count: int = 0
    assignment_count: int = 0
    average_grade: float | None = None


AssignmentStatus = Literal["overdue", "due_soon", "active", "unknown"]


class AssignmentView(CamelModel):
    """An assignment joined with its class name and due-date status."""

    assignment_id: str
    title: str
    class_id: str = ""
    class_name: str = ""
    due_date: dt.datetime | None = None
    status: AssignmentStatus = "unknown"


class GradeStatistics(CamelModel):
    """Descriptive statistics over valid grade points."""

    count: int = 0
    mean: float = 0
    median: float = 0
    stddev: float = 0
    min: float = 0
    max: float = 0
    percentiles: dict[str, float] = Field(default_factory=dict)
    distribution: dict[str, list[Any]] = Field(default_factory=dict)


ActivityType = Literal["assignment", "grade", "attendance"]


class ActivityItem(CamelModel):
    """One entry of the merged recent-activity feed."""

    id: str
    type: ActivityType
    title: str
    time: str = ""
    timestamp: dt.datetime | None = None
    student: str | None = None
    class_name: str | None = None
    status: str | None = None


class TeacherDashboard(CamelModel):
    """Full teacher dashboard payload."""

    stats: DashboardStats = Field(default_factory=DashboardStats)
    recent_classes: list[ClassSummary] = Field(default_factory=list)
    class_summaries: list[ClassSummary] = Field(default_factory=list)
    assignments: list[AssignmentView] = Field(default_factory=list)
    activities: list[ActivityItem] = Field(default_factory=list)
    grade_statistics: GradeStatistics = Field(default_factory=GradeStatistics)
    integrity: IntegrityReport | None = None
    warnings: list[DataWarning] = Field(default_factory=list)
    generated_at: dt.datetime


# ---------------------------------------------------------------------------
# Student dashboard / gamification
# ---------------------------------------------------------------------------

class LeaderboardEntry(CamelModel):
    """A ranked student."""

    username: str
    full_name: str
    points: int = 0
    level: int = 1
    badge_count: int = 0


class RosterEntry(CamelModel):
    """A student joined with the gamification row for their class."""

    id: str
    name: str
    username: str
    class_id: str = ""
    class_name: str = ""
    points: int = 0
    level: int = 1
    badge_count: int = 0
    achievements: list[str] = Field(default_factory=list)


class StudentProgress(CamelModel):
    """Per-student metrics shown on the student dashboard."""

    username: str
    full_name: str = ""
    class_name: str = ""
    points: int = 0
    level: int = 1
    badges: list[str] = Field(default_factory=list)
    earned_badges: list[BadgeDefinition] = Field(default_factory=list)
    achievements: list[str] = Field(default_factory=list)
    rank: int = 1
    total_students: int = 0
    attendance_rate: int = 0
    average_grade: float = 0
    completed_assignments: int = 0


class CharacterProfile(CamelModel):
    """Cosmetic character class derived from level and grade average."""

    name: str
    icon: str
    color: str


class RpgStats(CamelModel):
    """Game-style stat block derived from a student's progress."""

    hp: float = 0
    max_hp: int = 0
    mp: float = 0
    max_mp: int = 0
    exp: int = 0
    exp_to_next: int = 1000
    attack: int = 0
    defense: int = 0
    intelligence: int = 0
    wisdom: int = 0


class StudentDashboard(CamelModel):
    """Full student dashboard payload."""

    user: CurrentUser
    progress: StudentProgress
    leaderboard: list[LeaderboardEntry] = Field(default_factory=list)
    available_badges: list[BadgeDefinition] = Field(default_factory=list)
    character: CharacterProfile
    rpg_stats: RpgStats = Field(default_factory=RpgStats)
    integrity: IntegrityReport | None = None
    warnings: list[DataWarning] = Field(default_factory=list)
    generated_at: dt.datetime


class LeaderboardResponse(CamelModel):
    entries: list[LeaderboardEntry] = Field(default_factory=list)
    warnings: list[DataWarning] = Field(default_factory=list)


class RosterResponse(CamelModel):
    entries: list[RosterEntry] = Field(default_factory=list)
    warnings: list[DataWarning] = Field(default_factory=list)


class IntegrityResponse(CamelModel):
    report: IntegrityReport | None = None
    warnings: list[DataWarning] = Field(default_factory=list)

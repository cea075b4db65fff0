"""Dashboard service — fetch a snapshot, resolve it, compute every view.

Each ``load_*`` call runs one full fetch cycle and recomputes everything from
scratch; nothing is cached between calls.  Transport and integrity problems
come back as ``warnings`` on the returned model, never as exceptions.  The
only raised error is :class:`IdentityNotFoundError` for per-student views.
"""

from __future__ import annotations

import datetime as dt
import logging

from config.settings import get_settings
from errors.exceptions import IdentityNotFoundError
from models.dashboard import (
    IntegrityReport,
    LeaderboardEntry,
    RosterEntry,
    StudentDashboard,
    TeacherDashboard,
)
from models.errors import DataWarning, WarningCode, make_warning
from models.snapshot import (
    ASSIGNMENTS,
    ATTENDANCE,
    BADGES,
    CLASSES,
    GAMIFICATION,
    GRADES,
    STUDENTS,
    Snapshot,
)
from services.activity_feed import build_activity_feed
from services.aggregator import (
    assignment_view,
    character_class,
    compute_dashboard_stats,
    compute_student_progress,
    rpg_stats,
    summarize_classes,
)
from services.collection_store import CollectionStore
from services.entity_fetcher import EntityFetcher
from services.grade_stats import calculate_stats
from services.identity import DashboardContext
from services.integrity_auditor import audit, split_grades
from services.leaderboard import build_gamification_roster, build_leaderboard
from services.reference_resolver import ReferenceResolver

logger = logging.getLogger(__name__)

TEACHER_COLLECTIONS = (CLASSES, STUDENTS, ASSIGNMENTS, GRADES, ATTENDANCE)
STUDENT_COLLECTIONS = (CLASSES, STUDENTS, ASSIGNMENTS, GRADES, ATTENDANCE, GAMIFICATION, BADGES)
LEADERBOARD_COLLECTIONS = (STUDENTS, GAMIFICATION)
ROSTER_COLLECTIONS = (CLASSES, STUDENTS, GAMIFICATION)
INTEGRITY_COLLECTIONS = (ASSIGNMENTS, GRADES)


def _teacher_params(context: DashboardContext) -> dict[str, dict[str, str]]:
    """Classes are scoped to the signed-in teacher by the store."""
    if context.user is None:
        return {}
    return {CLASSES: {"teacherUsername": context.user.username}}


def _integrity(snapshot: Snapshot, context: DashboardContext) -> tuple[IntegrityReport | None, list[DataWarning]]:
    warnings = list(snapshot.warnings)
    report = audit(snapshot.grades, snapshot.assignments, detected_at=context.now)
    if report is not None:
        warnings.append(make_warning(
            WarningCode.ORPHANED_GRADES,
            f"{report.orphaned_count} grades reference deleted assignments",
            GRADES,
        ))
    return report, warnings


def build_teacher_dashboard(snapshot: Snapshot, context: DashboardContext) -> TeacherDashboard:
    """Compute the teacher dashboard from an already-fetched snapshot."""
    settings = get_settings()
    resolver = ReferenceResolver(snapshot)
    report, warnings = _integrity(snapshot, context)
    valid, _ = split_grades(snapshot.grades, snapshot.assignments)
    summaries = summarize_classes(resolver)

    return TeacherDashboard(
        stats=compute_dashboard_stats(
            resolver, context.now, active_window=dt.timedelta(days=settings.active_window_days),
        ),
        recent_classes=summaries[:settings.recent_classes_limit],
        class_summaries=summaries,
        assignments=[assignment_view(a, resolver, context.now) for a in snapshot.assignments],
        activities=build_activity_feed(resolver, context.now, limit=settings.activity_feed_limit),
        grade_statistics=calculate_stats([g.points for g in valid]),
        integrity=report,
        warnings=warnings,
        generated_at=context.now,
    )


def build_student_dashboard(snapshot: Snapshot, context: DashboardContext) -> StudentDashboard:
    """Compute the student dashboard for ``context.user``.

    Raises:
        IdentityNotFoundError: When the context carries no user.
    """
    if context.user is None:
        raise IdentityNotFoundError("student dashboard")

    settings = get_settings()
    resolver = ReferenceResolver(snapshot)
    report, warnings = _integrity(snapshot, context)
    leaderboard = build_leaderboard(snapshot.gamification, resolver)
    progress = compute_student_progress(context.user.username, resolver, leaderboard)

    return StudentDashboard(
        user=context.user,
        progress=progress,
        leaderboard=leaderboard[:settings.leaderboard_size],
        available_badges=list(snapshot.badges),
        character=character_class(progress.level, progress.average_grade),
        rpg_stats=rpg_stats(progress),
        integrity=report,
        warnings=warnings,
        generated_at=context.now,
    )


# ---------------------------------------------------------------------------
# Fetch + compute entry points
# ---------------------------------------------------------------------------

async def load_teacher_dashboard(store: CollectionStore, context: DashboardContext) -> TeacherDashboard:
    snapshot = await EntityFetcher(store).fetch_snapshot(TEACHER_COLLECTIONS, _teacher_params(context))
    dashboard = build_teacher_dashboard(snapshot, context)
    logger.info(
        "Teacher dashboard computed — classes=%d students=%d pending=%d warnings=%d",
        dashboard.stats.total_classes,
        dashboard.stats.total_students,
        dashboard.stats.pending_grades,
        len(dashboard.warnings),
    )
    return dashboard


async def load_student_dashboard(store: CollectionStore, context: DashboardContext) -> StudentDashboard:
    # Fail before any network traffic when there is nobody to compute for
    if context.user is None:
        raise IdentityNotFoundError("student dashboard")
    snapshot = await EntityFetcher(store).fetch_snapshot(STUDENT_COLLECTIONS)
    dashboard = build_student_dashboard(snapshot, context)
    logger.info(
        "Student dashboard computed — user=%s rank=%d warnings=%d",
        context.user.username,
        dashboard.progress.rank,
        len(dashboard.warnings),
    )
    return dashboard


async def load_leaderboard(
    store: CollectionStore,
    limit: int | None = None,
) -> tuple[list[LeaderboardEntry], list[DataWarning]]:
    snapshot = await EntityFetcher(store).fetch_snapshot(LEADERBOARD_COLLECTIONS)
    resolver = ReferenceResolver(snapshot)
    size = get_settings().leaderboard_size if limit is None else limit
    return build_leaderboard(snapshot.gamification, resolver, limit=size), list(snapshot.warnings)


async def load_gamification_roster(store: CollectionStore) -> tuple[list[RosterEntry], list[DataWarning]]:
    snapshot = await EntityFetcher(store).fetch_snapshot(ROSTER_COLLECTIONS)
    return build_gamification_roster(ReferenceResolver(snapshot)), list(snapshot.warnings)


async def load_integrity_report(
    store: CollectionStore,
    context: DashboardContext,
) -> tuple[IntegrityReport | None, list[DataWarning]]:
    snapshot = await EntityFetcher(store).fetch_snapshot(INTEGRITY_COLLECTIONS)
    return _integrity(snapshot, context)

"""Leaderboard Builder — ranks students by gamification points.

Ordering is a total order: points descending, then username ascending.
The secondary key keeps equal-points students in the same relative order on
every run, whatever order the sheet returned them in.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from models.dashboard import LeaderboardEntry, RosterEntry
from models.records import GamificationRecord
from services.reference_resolver import ReferenceResolver


def leaderboard_key(entry: LeaderboardEntry) -> tuple[int, str]:
    return (-entry.points, entry.username)


def build_leaderboard(
    gamification: Iterable[GamificationRecord],
    resolver: ReferenceResolver,
    limit: int | None = None,
) -> list[LeaderboardEntry]:
    """Rank every gamification row that has a username and a points value.

    Zero points is kept; a missing points cell is not.  Pass *limit* to
    truncate to the top N after sorting.
    """
    entries = [
        LeaderboardEntry(
            username=record.student_username,
            full_name=resolver.resolve_student_name(record.student_username),
            points=record.points,
            level=record.level,
            badge_count=len(record.badges),
        )
        for record in gamification
        if record.student_username and record.points is not None
    ]
    entries.sort(key=leaderboard_key)
    if limit is not None:
        return entries[:max(limit, 0)]
    return entries


def rank_of(username: str, leaderboard: Sequence[LeaderboardEntry]) -> int:
    """1-based rank in *leaderboard*; ``len + 1`` when the user is not on it."""
    for position, entry in enumerate(leaderboard, start=1):
        if entry.username == username:
            return position
    return len(leaderboard) + 1


def build_gamification_roster(resolver: ReferenceResolver) -> list[RosterEntry]:
    """Every student joined with the gamification row for their own class.

    A student's row must match on both username and class id; students
    without one show zero points at level 1.
    """
    by_key = {
        (g.student_username, g.class_id): g
        for g in reversed(resolver.snapshot.gamification)  # first row wins
        if g.student_username
    }
    roster: list[RosterEntry] = []
    for student in resolver.snapshot.students:
        record = by_key.get((student.username, student.class_id))
        badges = list(record.badges) if record else []
        roster.append(RosterEntry(
            id=f"{student.class_id}-{student.username}",
            name=student.full_name or student.username,
            username=student.username,
            class_id=student.class_id,
            class_name=resolver.resolve_class_name(student.class_id),
            points=(record.points or 0) if record else 0,
            level=record.level if record else 1,
            badge_count=len(badges),
            achievements=badges + (list(record.achievements) if record else []),
        ))
    return roster

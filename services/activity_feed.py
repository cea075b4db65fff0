"""Activity Feed Builder — merges recent grades, attendance and deadlines.

Two-stage sort: each source is first cut to its own top-K (newest first),
then the union is re-sorted by one derived timestamp and truncated.  The
per-source cut bounds how much of each collection reaches the final
ordering.  Labels are Indonesian, matching the rest of the dashboard.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable

from models.dashboard import ActivityItem
from models.records import AttendanceStatus
from services.aggregator import assignment_status
from services.reference_resolver import ReferenceResolver

EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)

RECENT_GRADES = 5
RECENT_ATTENDANCE = 3
RECENT_ASSIGNMENTS = 3
ATTENDANCE_WINDOW_DAYS = 2

STATUS_LABELS = {
    AttendanceStatus.PRESENT.value: "Hadir",
    AttendanceStatus.ABSENT.value: "Tidak Hadir",
    AttendanceStatus.SICK.value: "Sakit",
    AttendanceStatus.PERMISSION.value: "Izin",
}


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def format_points(points: float) -> str:
    return str(int(points)) if float(points).is_integer() else f"{points:g}"


def format_time_ago(timestamp: dt.datetime | None, now: dt.datetime) -> str:
    """Relative Indonesian time label: ``Baru saja``, ``3 jam lalu``, ``Kemarin``..."""
    if timestamp is None:
        return ""
    hours = int((now - timestamp).total_seconds() // 3600)
    if hours < 1:
        return "Baru saja"
    if hours < 24:
        return f"{hours} jam lalu"
    if hours < 48:
        return "Kemarin"
    return f"{hours // 24} hari lalu"


def _day_start(day: dt.date) -> dt.datetime:
    return dt.datetime(day.year, day.month, day.day, tzinfo=dt.timezone.utc)


def _newest_first(items: Iterable[ActivityItem]) -> list[ActivityItem]:
    """Sort by timestamp descending, id ascending on ties."""
    ordered = sorted(items, key=lambda item: item.id)
    return sorted(ordered, key=lambda item: item.timestamp or EPOCH, reverse=True)


def grade_activities(resolver: ReferenceResolver, now: dt.datetime) -> list[ActivityItem]:
    items = [
        ActivityItem(
            id=f"grade-{grade.id}",
            type="grade",
            title=f"Nilai {resolver.resolve_assignment_title(grade)} ({format_points(grade.points)}/100)",
            time=format_time_ago(grade.graded_at, now),
            timestamp=grade.graded_at,
            student=resolver.resolve_student_name(grade.student_username),
        )
        for grade in resolver.snapshot.grades
    ]
    return _newest_first(items)[:RECENT_GRADES]


def attendance_activities(resolver: ReferenceResolver, now: dt.datetime) -> list[ActivityItem]:
    """Attendance dated today or yesterday."""
    since = now.astimezone(dt.timezone.utc).date() - dt.timedelta(days=ATTENDANCE_WINDOW_DAYS - 1)
    items = []
    for record in resolver.snapshot.attendance:
        if record.date is None or record.date < since:
            continue
        class_name = resolver.resolve_class_name(record.class_id)
        timestamp = _day_start(record.date)
        items.append(ActivityItem(
            id=f"attendance-{record.id}",
            type="attendance",
            title=f"Presensi {class_name} - {status_label(record.status)}",
            time=format_time_ago(timestamp, now),
            timestamp=timestamp,
            student=resolver.resolve_student_name(record.student_username),
            class_name=class_name,
            status=record.status,
        ))
    return _newest_first(items)[:RECENT_ATTENDANCE]


def assignment_activities(resolver: ReferenceResolver, now: dt.datetime) -> list[ActivityItem]:
    items = []
    for assignment in resolver.snapshot.assignments:
        class_name = resolver.class_name_for_assignment(assignment)
        items.append(ActivityItem(
            id=f"assignment-{assignment.id}",
            type="assignment",
            title=f'Tugas "{assignment.title}" - {class_name}',
            time=f"Deadline {format_time_ago(assignment.due_date, now)}".strip(),
            timestamp=assignment.due_date,
            class_name=class_name,
            status=assignment_status(assignment.due_date, now),
        ))
    return _newest_first(items)[:RECENT_ASSIGNMENTS]


def build_activity_feed(resolver: ReferenceResolver, now: dt.datetime, limit: int = 8) -> list[ActivityItem]:
    """Merged feed of grades, attendance and assignments, newest first."""
    merged = [
        *grade_activities(resolver, now),
        *attendance_activities(resolver, now),
        *assignment_activities(resolver, now),
    ]
    return _newest_first(merged)[:max(limit, 0)]

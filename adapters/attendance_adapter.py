"""Adapter for the ``attendance`` sheet → :class:`AttendanceRecord`.

Teachers have entered statuses both in English and Indonesian; both map to
the same canonical :class:`AttendanceStatus`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from adapters.fields import first_present, parse_date, string_or_empty
from models.records import AttendanceRecord, AttendanceStatus

STATUS_SYNONYMS: dict[str, AttendanceStatus] = {
    "present": AttendanceStatus.PRESENT,
    "hadir": AttendanceStatus.PRESENT,
    "absent": AttendanceStatus.ABSENT,
    "tidak hadir": AttendanceStatus.ABSENT,
    "alpha": AttendanceStatus.ABSENT,
    "alpa": AttendanceStatus.ABSENT,
    "sick": AttendanceStatus.SICK,
    "sakit": AttendanceStatus.SICK,
    "permission": AttendanceStatus.PERMISSION,
    "izin": AttendanceStatus.PERMISSION,
}


def normalize_status(value: Any) -> str:
    """Map a raw status to its canonical value; unknown statuses pass through lower-cased."""
    text = string_or_empty(value).lower()
    status = STATUS_SYNONYMS.get(text)
    return status.value if status is not None else text


def parse_attendance_record(raw: Mapping[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        id=string_or_empty(raw.get("id")),
        date=parse_date(raw.get("date")),
        class_id=string_or_empty(raw.get("classId")),
        student_username=string_or_empty(first_present(raw, ("studentUsername", "username"))),
        status=normalize_status(raw.get("status")),
    )


def parse_attendance(rows: Iterable[Mapping[str, Any]]) -> list[AttendanceRecord]:
    return [parse_attendance_record(r) for r in rows]

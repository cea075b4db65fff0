"""Adapter for the ``gamification`` and ``badges`` sheets.

Store actions handled:
- ``getGamification`` → list[GamificationRecord]  (rows under ``data``)
- ``getBadges``       → list[BadgeDefinition]
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from adapters.fields import (
    coerce_number,
    int_or_default,
    is_blank,
    split_list,
    string_or_empty,
)
from models.records import BadgeDefinition, GamificationRecord


def _points_or_none(value: Any) -> int | None:
    """Empty cells stay ``None``; anything else truncates to a non-negative int."""
    if is_blank(value):
        return None
    number = coerce_number(value)
    if number is None or number < 0:
        return 0
    return int(number)


def parse_gamification_record(raw: Mapping[str, Any]) -> GamificationRecord:
    return GamificationRecord(
        student_username=string_or_empty(raw.get("studentUsername")),
        class_id=string_or_empty(raw.get("classId")),
        points=_points_or_none(raw.get("points")),
        level=int_or_default(raw.get("level"), default=1, minimum=1),
        badges=split_list(raw.get("badges")),
        achievements=split_list(raw.get("achievements")),
    )


def parse_badge(raw: Mapping[str, Any]) -> BadgeDefinition | None:
    name = string_or_empty(raw.get("name"))
    if not name:
        return None
    return BadgeDefinition(
        id=string_or_empty(raw.get("id")),
        name=name,
        description=string_or_empty(raw.get("description")),
        icon=string_or_empty(raw.get("icon")) or "🏆",
        category=string_or_empty(raw.get("category")),
        point_value=int_or_default(raw.get("pointValue"), default=0, minimum=0),
    )


def parse_gamification(rows: Iterable[Mapping[str, Any]]) -> list[GamificationRecord]:
    return [parse_gamification_record(r) for r in rows]


def parse_badges(rows: Iterable[Mapping[str, Any]]) -> list[BadgeDefinition]:
    return [b for b in (parse_badge(r) for r in rows) if b is not None]

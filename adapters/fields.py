"""Shared coercion helpers for spreadsheet rows.

Sheet cells arrive as whatever Apps Script serialised: strings, numbers,
ISO timestamps, empty strings for blank cells.  Every adapter funnels raw
values through these helpers so the rules live in one place.
"""

from __future__ import annotations

import datetime as dt
import math
from collections.abc import Iterable, Mapping
from typing import Any

# Placeholder strings the frontend used to write into cells for missing values.
_NULL_STRINGS = frozenset({"none", "null", "undefined", "nan"})


def is_blank(value: Any) -> bool:
    """True for ``None``, empty/whitespace strings and placeholder strings."""
    if value is None:
        return True
    if isinstance(value, str):
        text = value.strip()
        return not text or text.lower() in _NULL_STRINGS
    return False


def string_or_empty(value: Any) -> str:
    if is_blank(value):
        return ""
    return str(value).strip()


def first_present(raw: Mapping[str, Any], candidates: Iterable[str]) -> Any:
    """Return the first non-null, non-empty value among *candidates*.

    Candidates are tried in order, so the tuple doubles as the priority list
    for historical column names, e.g. ``("points", "value", "score")``.
    """
    for key in candidates:
        value = raw.get(key)
        if not is_blank(value):
            return value
    return None


def coerce_number(value: Any) -> float | None:
    """Parse *value* to a finite float, or ``None`` when it does not parse."""
    if is_blank(value) or isinstance(value, bool):
        return None
    try:
        number = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def int_or_default(value: Any, default: int = 0, minimum: int | None = None) -> int:
    """Coerce to ``int`` (truncating), falling back to *default*."""
    number = coerce_number(value)
    if number is None:
        return default
    result = int(number)
    if minimum is not None and result < minimum:
        return default
    return result


def parse_datetime(value: Any) -> dt.datetime | None:
    """Parse an ISO date/datetime to an aware UTC datetime.

    Date-only values become midnight UTC.  Naive datetimes are assumed UTC.
    Returns ``None`` for blanks and anything that does not parse.
    """
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, dt.date):
        parsed = dt.datetime(value.year, value.month, value.day)
    elif is_blank(value):
        return None
    else:
        text = str(value).strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = dt.datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    try:
        return parsed.astimezone(dt.timezone.utc)
    except (ValueError, OverflowError):
        # offset pushes the instant outside datetime's range
        return None


def parse_date(value: Any) -> dt.date | None:
    """Parse to a calendar date (UTC) — used for attendance days."""
    parsed = parse_datetime(value)
    return parsed.date() if parsed is not None else None


def split_list(value: Any) -> tuple[str, ...]:
    """Split a comma-separated cell into trimmed, non-empty names."""
    if is_blank(value):
        return ()
    if isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        items = str(value).split(",")
    return tuple(item.strip() for item in items if item.strip())


def unwrap_rows(response: Any, key: str, aliases: Iterable[str] = ()) -> list[dict[str, Any]] | None:
    """Extract the row list for *key* from a store response.

    Returns ``None`` when the payload has no list under *key* or any alias,
    which the fetcher treats as a transport failure.  Non-dict rows are
    dropped.
    """
    if isinstance(response, list):
        rows = response
    elif isinstance(response, Mapping):
        rows = None
        for candidate in (key, *aliases):
            if isinstance(response.get(candidate), list):
                rows = response[candidate]
                break
        if rows is None:
            return None
    else:
        return None
    return [row for row in rows if isinstance(row, Mapping)]

"""Structured warning codes for degraded-mode dashboards.

Warnings never abort a dashboard computation; they travel next to the
metrics so the presentation layer can render a non-blocking banner::

    {WARNING_CODE}: {collection} — {human_readable_detail}
"""

from __future__ import annotations

from enum import Enum

from models.base import CamelModel


class WarningCode(str, Enum):
    """Non-fatal conditions surfaced alongside computed metrics."""

    TRANSPORT_FAILURE = "TRANSPORT_FAILURE"
    ORPHANED_GRADES = "ORPHANED_GRADES"
    MALFORMED_ROWS = "MALFORMED_ROWS"


class DataWarning(CamelModel):
    """A single advisory attached to a dashboard response."""

    code: WarningCode
    message: str
    collection: str | None = None


def format_warning(code: WarningCode, detail: str, collection: str | None = None) -> str:
    """Format a warning for logs and banners.

    Returns:
        ``{WARNING_CODE}: {collection} — {detail}`` or
        ``{WARNING_CODE}: {detail}`` when no collection applies.
    """
    if collection:
        return f"{code.value}: {collection} — {detail}"
    return f"{code.value}: {detail}"


def make_warning(code: WarningCode, detail: str, collection: str | None = None) -> DataWarning:
    """Build a :class:`DataWarning` whose message uses :func:`format_warning`."""
    return DataWarning(
        code=code,
        message=format_warning(code, detail, collection),
        collection=collection,
    )

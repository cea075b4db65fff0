"""Entity Fetcher — two-phase concurrent read of the store into a Snapshot.

The fetch is an explicit task graph::

    phase 1: classes, students, assignments, gamification, badges
    phase 2: grades, attendance            (after phase 1 settles)

Grades and attendance are only meaningful once the reference collections
they join against are in hand, so phase 2 waits for phase 1.  Reads inside a
phase run concurrently and fail independently: a failed collection becomes
an empty tuple plus a ``TRANSPORT_FAILURE`` warning, and the rest of the
snapshot is still produced.

Cancellation propagates: cancelling the awaiting task cancels every
in-flight read and no partial snapshot is returned.  Nothing here retries.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from adapters.attendance_adapter import parse_attendance
from adapters.class_adapter import parse_assignments, parse_classes
from adapters.fields import unwrap_rows
from adapters.gamification_adapter import parse_badges, parse_gamification
from adapters.grade_adapter import parse_grades
from adapters.student_adapter import parse_students
from models.errors import DataWarning, WarningCode, make_warning
from models.snapshot import (
    ALL_COLLECTIONS,
    ASSIGNMENTS,
    ATTENDANCE,
    BADGES,
    CLASSES,
    GAMIFICATION,
    GRADES,
    STUDENTS,
    Snapshot,
)
from services.collection_store import CollectionStore

logger = logging.getLogger(__name__)

FETCH_PHASES: tuple[tuple[str, ...], ...] = (
    (CLASSES, STUDENTS, ASSIGNMENTS, GAMIFICATION, BADGES),
    (GRADES, ATTENDANCE),
)

PARSERS: dict[str, Callable[[Iterable[Mapping[str, Any]]], list[Any]]] = {
    CLASSES: parse_classes,
    STUDENTS: parse_students,
    ASSIGNMENTS: parse_assignments,
    GRADES: parse_grades,
    ATTENDANCE: parse_attendance,
    GAMIFICATION: parse_gamification,
    BADGES: parse_badges,
}

# Alternate response keys accepted per collection
RESPONSE_ALIASES: dict[str, tuple[str, ...]] = {
    GAMIFICATION: ("data",),
}


@dataclass
class CollectionResult:
    """Outcome of reading one collection."""

    collection: str
    records: list[Any] = field(default_factory=list)
    error: str | None = None
    raw_count: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def plan_phases(collections: Iterable[str] | None = None) -> list[tuple[str, ...]]:
    """Restrict :data:`FETCH_PHASES` to *collections*, dropping empty phases.

    Raises:
        ValueError: For collection names the engine does not know.
    """
    wanted = set(ALL_COLLECTIONS if collections is None else collections)
    unknown = wanted.difference(ALL_COLLECTIONS)
    if unknown:
        raise ValueError(f"Unknown collections: {sorted(unknown)}")
    phases = [tuple(c for c in phase if c in wanted) for phase in FETCH_PHASES]
    return [phase for phase in phases if phase]


class EntityFetcher:
    """Reads collections from a :class:`CollectionStore` into a :class:`Snapshot`."""

    def __init__(self, store: CollectionStore) -> None:
        self._store = store

    async def fetch_snapshot(
        self,
        collections: Iterable[str] | None = None,
        params: Mapping[str, dict[str, Any]] | None = None,
    ) -> Snapshot:
        """Fetch *collections* (default: all) and normalise them.

        Args:
            collections: Collection names to read.  Unrequested collections
                are left empty and are not reported as failures.
            params: Per-collection store parameters, e.g.
                ``{"classes": {"teacherUsername": "guru.sari"}}``.
        """
        params = params or {}
        results: dict[str, CollectionResult] = {}
        t0 = time.monotonic()

        for index, phase in enumerate(plan_phases(collections), start=1):
            settled = await asyncio.gather(
                *(self._fetch_one(name, params.get(name)) for name in phase)
            )
            for result in settled:
                results[result.collection] = result
            logger.debug("Fetch phase %d settled: %s", index, ", ".join(phase))

        snapshot = self._build_snapshot(results)
        logger.info(
            "Snapshot fetched in %.0fms — %s%s",
            (time.monotonic() - t0) * 1000,
            ", ".join(f"{r.collection}={len(r.records)}" for r in results.values()),
            f" (failed: {', '.join(snapshot.failed_collections)})" if snapshot.failed_collections else "",
        )
        return snapshot

    async def _fetch_one(self, collection: str, params: dict[str, Any] | None) -> CollectionResult:
        """Read and parse one collection; every failure becomes a result.

        ``asyncio.CancelledError`` is a ``BaseException`` and propagates.
        """
        try:
            response = await self._store.fetch(collection, params)
        except Exception as exc:
            logger.exception("Fetching %s failed", collection)
            return CollectionResult(collection, error=str(exc) or type(exc).__name__)

        if isinstance(response, Mapping) and response.get("success") is False:
            error = str(response.get("error") or "store reported failure")
            logger.warning("Store refused %s: %s", collection, error)
            return CollectionResult(collection, error=error)

        rows = unwrap_rows(response, collection, RESPONSE_ALIASES.get(collection, ()))
        if rows is None:
            logger.warning("Store returned no %s list: %r", collection, type(response))
            return CollectionResult(collection, error="response contained no row list")

        try:
            records = PARSERS[collection](rows)
        except Exception as exc:
            logger.exception("Parsing %s failed", collection)
            return CollectionResult(collection, error=f"unparseable rows: {exc}")
        return CollectionResult(collection, records=records, raw_count=len(rows))

    @staticmethod
    def _build_snapshot(results: Mapping[str, CollectionResult]) -> Snapshot:
        warnings: list[DataWarning] = []
        failed: list[str] = []
        for name in ALL_COLLECTIONS:
            result = results.get(name)
            if result is None:
                continue
            if not result.ok:
                failed.append(name)
                warnings.append(make_warning(WarningCode.TRANSPORT_FAILURE, result.error or "", name))
            elif result.raw_count > len(result.records):
                warnings.append(make_warning(
                    WarningCode.MALFORMED_ROWS,
                    f"{result.raw_count - len(result.records)} rows skipped",
                    name,
                ))

        def records(name: str) -> tuple[Any, ...]:
            result = results.get(name)
            return tuple(result.records) if result is not None else ()

        return Snapshot(
            classes=records(CLASSES),
            students=records(STUDENTS),
            assignments=records(ASSIGNMENTS),
            grades=records(GRADES),
            attendance=records(ATTENDANCE),
            gamification=records(GAMIFICATION),
            badges=records(BADGES),
            warnings=tuple(warnings),
            failed_collections=tuple(failed),
        )

"""Shared pytest fixtures for the dashboard engine tests.

Provides:
- ``now``: fixed UTC clock (2025-09-02 10:00) matching ``services/mock_data.py``
- ``mock_store``: StaticCollectionStore serving the mock sheet rows
- ``mock_snapshot`` / ``mock_resolver``: the same rows, fetched and indexed
- ``make_snapshot``: build a Snapshot straight from raw sheet rows
"""

from __future__ import annotations

import datetime as dt

import pytest

from adapters.attendance_adapter import parse_attendance
from adapters.class_adapter import parse_assignments, parse_classes
from adapters.gamification_adapter import parse_badges, parse_gamification
from adapters.grade_adapter import parse_grades
from adapters.student_adapter import parse_students
from config.settings import get_settings
from models.snapshot import Snapshot
from services.collection_store import StaticCollectionStore
from services.entity_fetcher import EntityFetcher
from services.mock_data import COLLECTIONS
from services.reference_resolver import ReferenceResolver


NOW = dt.datetime(2025, 9, 2, 10, 0, tzinfo=dt.timezone.utc)


def build_snapshot(
    classes=(),
    students=(),
    assignments=(),
    grades=(),
    attendance=(),
    gamification=(),
    badges=(),
) -> Snapshot:
    """Snapshot from raw sheet rows, bypassing the store."""
    return Snapshot(
        classes=tuple(parse_classes(classes)),
        students=tuple(parse_students(students)),
        assignments=tuple(parse_assignments(assignments)),
        grades=tuple(parse_grades(grades)),
        attendance=tuple(parse_attendance(attendance)),
        gamification=tuple(parse_gamification(gamification)),
        badges=tuple(parse_badges(badges)),
    )


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Settings are lru_cached; drop the cache around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def now() -> dt.datetime:
    return NOW


@pytest.fixture
def make_snapshot():
    return build_snapshot


@pytest.fixture
def mock_store() -> StaticCollectionStore:
    """Fresh store per test so recorded calls never leak between tests."""
    return StaticCollectionStore(COLLECTIONS)


@pytest.fixture
async def mock_snapshot(mock_store) -> Snapshot:
    return await EntityFetcher(mock_store).fetch_snapshot()


@pytest.fixture
def mock_resolver() -> ReferenceResolver:
    return ReferenceResolver(build_snapshot(**COLLECTIONS))

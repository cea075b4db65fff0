"""Tests for services/entity_fetcher.py — two-phase fetch into a Snapshot."""

import asyncio

import httpx
import pytest

from models.errors import WarningCode
from models.snapshot import ALL_COLLECTIONS, GRADES
from services import entity_fetcher
from services.collection_store import StaticCollectionStore
from services.entity_fetcher import FETCH_PHASES, EntityFetcher, plan_phases
from services.mock_data import COLLECTIONS


class _RecordingStore:
    """Logs when each read starts and finishes."""

    def __init__(self, collections):
        self._inner = StaticCollectionStore(collections)
        self.events: list[tuple[str, str]] = []

    async def fetch(self, collection, params=None):
        self.events.append(("start", collection))
        await asyncio.sleep(0)
        result = await self._inner.fetch(collection, params)
        self.events.append(("end", collection))
        return result


# ---------------------------------------------------------------------------
# Phase planning
# ---------------------------------------------------------------------------

def test_phases_cover_every_collection_once():
    flat = [c for phase in FETCH_PHASES for c in phase]
    assert sorted(flat) == sorted(ALL_COLLECTIONS)
    assert FETCH_PHASES[-1] == ("grades", "attendance")


def test_plan_phases_subset_drops_empty_phases():
    assert plan_phases(["grades"]) == [("grades",)]
    assert plan_phases(["students", "gamification"]) == [("students", "gamification")]


def test_plan_phases_unknown_collection():
    with pytest.raises(ValueError, match="events"):
        plan_phases(["events"])


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_fetch_all_collections(mock_snapshot):
    assert len(mock_snapshot.classes) == 2
    assert len(mock_snapshot.students) == 4  # the row without a username is dropped
    assert len(mock_snapshot.grades) == 5
    assert len(mock_snapshot.gamification) == 4
    assert not mock_snapshot.is_degraded


@pytest.mark.asyncio
async def test_malformed_rows_warning(mock_snapshot):
    codes = [(w.code, w.collection) for w in mock_snapshot.warnings]
    assert codes == [(WarningCode.MALFORMED_ROWS, "students")]


@pytest.mark.asyncio
async def test_phase_two_waits_for_phase_one():
    store = _RecordingStore(COLLECTIONS)
    await EntityFetcher(store).fetch_snapshot()

    phase_one_ends = [i for i, (kind, c) in enumerate(store.events) if kind == "end" and c in FETCH_PHASES[0]]
    phase_two_starts = [i for i, (kind, c) in enumerate(store.events) if kind == "start" and c in FETCH_PHASES[1]]
    assert max(phase_one_ends) < min(phase_two_starts)


@pytest.mark.asyncio
async def test_reads_within_phase_overlap():
    store = _RecordingStore(COLLECTIONS)
    await EntityFetcher(store).fetch_snapshot()
    first_five = store.events[:len(FETCH_PHASES[0])]
    assert all(kind == "start" for kind, _ in first_five)


@pytest.mark.asyncio
async def test_params_forwarded_per_collection(mock_store):
    await EntityFetcher(mock_store).fetch_snapshot(
        ["classes", "students"], {"classes": {"teacherUsername": "guru.sari"}},
    )
    assert ("classes", {"teacherUsername": "guru.sari"}) in mock_store.calls
    assert ("students", {}) in mock_store.calls


@pytest.mark.asyncio
async def test_unrequested_collections_stay_empty(mock_store):
    snapshot = await EntityFetcher(mock_store).fetch_snapshot(["classes"])
    assert len(snapshot.classes) == 2
    assert snapshot.grades == ()
    assert snapshot.failed_collections == ()
    assert [c for c, _ in mock_store.calls] == ["classes"]


# ---------------------------------------------------------------------------
# Failure isolation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_failed_collection_becomes_empty_with_warning():
    store = StaticCollectionStore(COLLECTIONS, failures={"grades": httpx.ConnectError("refused")})
    snapshot = await EntityFetcher(store).fetch_snapshot()

    assert snapshot.grades == ()
    assert snapshot.failed_collections == ("grades",)
    assert len(snapshot.attendance) == 5
    transport = [w for w in snapshot.warnings if w.code == WarningCode.TRANSPORT_FAILURE]
    assert len(transport) == 1
    assert transport[0].collection == GRADES
    assert transport[0].message.startswith("TRANSPORT_FAILURE: grades — ")


@pytest.mark.asyncio
async def test_success_false_payload_is_a_failure():
    store = StaticCollectionStore(COLLECTIONS, failures={"classes": "Sesi tidak valid"})
    snapshot = await EntityFetcher(store).fetch_snapshot()

    assert snapshot.classes == ()
    assert "classes" in snapshot.failed_collections
    assert any("Sesi tidak valid" in w.message for w in snapshot.warnings)
    assert len(snapshot.students) == 4


@pytest.mark.asyncio
async def test_response_without_rows_is_a_failure():
    class _NoRows:
        async def fetch(self, collection, params=None):
            return {"success": True}

    snapshot = await EntityFetcher(_NoRows()).fetch_snapshot(["badges"])
    assert snapshot.failed_collections == ("badges",)


@pytest.mark.asyncio
async def test_every_collection_failing_still_returns_snapshot():
    failures = {name: RuntimeError("down") for name in ALL_COLLECTIONS}
    snapshot = await EntityFetcher(StaticCollectionStore(failures=failures)).fetch_snapshot()
    assert snapshot.failed_collections == ALL_COLLECTIONS
    assert len(snapshot.warnings) == len(ALL_COLLECTIONS)


@pytest.mark.asyncio
async def test_gamification_accepts_data_key():
    class _DataKeyStore:
        async def fetch(self, collection, params=None):
            return {"success": True, "data": [{"studentUsername": "budi", "points": 10}]}

    snapshot = await EntityFetcher(_DataKeyStore()).fetch_snapshot(["gamification"])
    assert snapshot.gamification[0].points == 10


@pytest.mark.asyncio
async def test_out_of_range_timestamp_does_not_abort_fetch():
    store = StaticCollectionStore({
        "classes": [{"id": "c1", "name": "7A"}],
        "grades": [{"id": "g1", "studentUsername": "s1", "assignmentId": "a1", "points": 70,
                    "gradedAt": "0001-01-01T00:00:00+05:00"}],
    })
    snapshot = await EntityFetcher(store).fetch_snapshot(["classes", "grades"])

    assert [c.id for c in snapshot.classes] == ["c1"]
    assert snapshot.grades[0].graded_at is None
    assert snapshot.failed_collections == ()


@pytest.mark.asyncio
async def test_parser_error_only_fails_its_collection(monkeypatch):
    def _explode(rows):
        raise RuntimeError("bad row")

    monkeypatch.setitem(entity_fetcher.PARSERS, GRADES, _explode)
    snapshot = await EntityFetcher(StaticCollectionStore(COLLECTIONS)).fetch_snapshot()

    assert snapshot.failed_collections == (GRADES,)
    assert snapshot.grades == ()
    assert len(snapshot.classes) == 2
    [warning] = [w for w in snapshot.warnings if w.code == WarningCode.TRANSPORT_FAILURE]
    assert warning.collection == GRADES
    assert "bad row" in warning.message


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cancellation_propagates():
    started = asyncio.Event()

    class _SlowStore:
        async def fetch(self, collection, params=None):
            started.set()
            await asyncio.sleep(60)
            return {"success": True, collection: []}

    task = asyncio.create_task(EntityFetcher(_SlowStore()).fetch_snapshot())
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

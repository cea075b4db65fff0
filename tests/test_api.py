"""FastAPI endpoint tests using httpx.AsyncClient."""

import pytest
from httpx import ASGITransport, AsyncClient

from main import app
from services.collection_store import StaticCollectionStore, get_collection_store
from services.mock_data import COLLECTIONS


STUDENT_HEADERS = {"X-User-Username": "budi", "X-User-Fullname": "Budi Santoso"}
TEACHER_HEADERS = {"X-User-Username": "guru.sari", "X-User-Role": "teacher"}


@pytest.fixture
def store():
    return StaticCollectionStore(COLLECTIONS)


@pytest.fixture
async def client(store):
    app.dependency_overrides[get_collection_store] = lambda: store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_request_id_echoed(client):
    resp = await client.get("/api/health", headers={"X-Request-ID": "abc123"})
    assert resp.headers["x-request-id"] == "abc123"


@pytest.mark.asyncio
async def test_teacher_dashboard(client, store):
    resp = await client.get("/api/dashboard/teacher", headers=TEACHER_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["stats"]["totalClasses"] == 2
    assert data["stats"]["pendingGrades"] == 1
    assert data["integrity"]["orphanedCount"] == 1
    assert len(data["recentClasses"]) == 2
    assert ("classes", {"teacherUsername": "guru.sari"}) in store.calls


@pytest.mark.asyncio
async def test_student_dashboard(client):
    resp = await client.get("/api/dashboard/student", headers=STUDENT_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["user"]["username"] == "budi"
    assert data["progress"]["rank"] == 2
    assert data["progress"]["attendanceRate"] == 50
    assert data["rpgStats"]["maxHp"] == 140


@pytest.mark.asyncio
async def test_student_dashboard_without_user(client, store):
    resp = await client.get("/api/dashboard/student")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "session/user not found"
    assert store.calls == []


@pytest.mark.asyncio
async def test_leaderboard(client):
    resp = await client.get("/api/leaderboard", params={"limit": 2})
    assert resp.status_code == 200
    entries = resp.json()["entries"]
    assert [e["username"] for e in entries] == ["ani", "budi"]
    assert entries[0]["badgeCount"] == 1


@pytest.mark.asyncio
async def test_leaderboard_rejects_negative_limit(client):
    resp = await client.get("/api/leaderboard", params={"limit": -1})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_gamification_roster(client):
    resp = await client.get("/api/gamification/roster")
    assert resp.status_code == 200
    entries = resp.json()["entries"]
    assert {e["username"] for e in entries} == {"budi", "ani", "citra", "dodi"}


@pytest.mark.asyncio
async def test_integrity(client):
    resp = await client.get("/api/integrity")
    assert resp.status_code == 200
    data = resp.json()
    assert data["report"]["orphanedGradeIds"] == ["g-005"]
    assert data["warnings"][-1]["code"] == "ORPHANED_GRADES"


@pytest.mark.asyncio
async def test_degraded_store_still_answers(client, store):
    store._failures["students"] = "Sheet tidak ditemukan"
    resp = await client.get("/api/leaderboard")
    assert resp.status_code == 200
    data = resp.json()
    assert [e["username"] for e in data["entries"]] == ["ani", "budi", "citra"]
    assert data["warnings"][0]["code"] == "TRANSPORT_FAILURE"

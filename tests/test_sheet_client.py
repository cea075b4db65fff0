"""Tests for services/sheet_client.py — HTTP client for the spreadsheet store."""

import time

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from errors.exceptions import UnknownCollectionError
from services.sheet_client import (
    CIRCUIT_OPEN_THRESHOLD,
    CircuitOpenError,
    SheetClient,
    SheetClientError,
    get_sheet_client,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def client():
    """Create a fresh SheetClient for each test (not the global singleton)."""
    with patch("services.sheet_client.get_settings") as mock_settings:
        s = MagicMock()
        s.sheet_api_url = "https://script.example.com/exec"
        s.sheet_timeout = 10
        s.sheet_username = "svc-dashboard"
        s.sheet_password = "secret"
        mock_settings.return_value = s
        yield SheetClient()


def _ok_response(data=None):
    r = MagicMock()
    r.status_code = 200
    r.text = '{"success":true}'
    r.json.return_value = data if data is not None else {"success": True}
    return r


def _error_response(status=500):
    r = MagicMock()
    r.status_code = status
    r.text = "Server Error"
    return r


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_start_creates_http_client(client):
    await client.start()
    assert client._http is not None
    await client.close()


@pytest.mark.asyncio
async def test_close_sets_http_none(client):
    await client.start()
    await client.close()
    assert client._http is None


def test_ensure_started_raises_without_start(client):
    with pytest.raises(RuntimeError, match="not started"):
        client._ensure_started()


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_call_posts_form_with_credentials(client):
    await client.start()
    client._http.post = AsyncMock(return_value=_ok_response({"success": True, "classes": []}))

    await client.call("getClasses", {"teacherUsername": "guru.sari", "skip": None})

    _, kwargs = client._http.post.call_args
    assert kwargs["data"] == {
        "action": "getClasses",
        "teacherUsername": "guru.sari",
        "username": "svc-dashboard",
        "password": "secret",
    }
    await client.close()


@pytest.mark.asyncio
async def test_call_params_cannot_override_credentials(client):
    await client.start()
    client._http.post = AsyncMock(return_value=_ok_response())

    await client.call("getGrades", {"username": "intruder", "action": "deleteGrade"})

    form = client._http.post.call_args.kwargs["data"]
    assert form["username"] == "svc-dashboard"
    assert form["action"] == "getGrades"
    await client.close()


@pytest.mark.asyncio
async def test_fetch_returns_rows_under_collection(client):
    await client.start()
    client._http.post = AsyncMock(return_value=_ok_response({"success": True, "grades": [{"id": "g-1"}]}))

    result = await client.fetch("grades")
    assert result == {"success": True, "grades": [{"id": "g-1"}]}
    assert client._http.post.call_args.kwargs["data"]["action"] == "getGrades"
    await client.close()


@pytest.mark.asyncio
async def test_fetch_gamification_rekeys_data(client):
    await client.start()
    client._http.post = AsyncMock(
        return_value=_ok_response({"success": True, "data": [{"studentUsername": "budi"}]})
    )

    result = await client.fetch("gamification")
    assert result["gamification"] == [{"studentUsername": "budi"}]
    await client.close()


@pytest.mark.asyncio
async def test_fetch_store_failure(client):
    await client.start()
    client._http.post = AsyncMock(return_value=_ok_response({"success": False, "error": "Sesi habis"}))

    result = await client.fetch("classes")
    assert result == {"success": False, "error": "Sesi habis"}
    await client.close()


@pytest.mark.asyncio
async def test_fetch_unknown_collection(client):
    with pytest.raises(UnknownCollectionError):
        await client.fetch("events")


# ---------------------------------------------------------------------------
# Retry logic
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_retry_on_5xx_then_success(client):
    """Should retry on 500 and succeed on 2nd attempt."""
    await client.start()
    client._http.post = AsyncMock(
        side_effect=[_error_response(500), _ok_response({"success": True, "recovered": True})]
    )

    with patch("services.sheet_client.RETRY_BASE_DELAY", 0):
        result = await client.call("getClasses")

    assert result["recovered"] is True
    assert client._http.post.call_count == 2
    assert client._consecutive_failures == 0
    await client.close()


@pytest.mark.asyncio
async def test_retry_exhausted_raises(client):
    await client.start()
    client._http.post = AsyncMock(return_value=_error_response(503))

    with patch("services.sheet_client.RETRY_BASE_DELAY", 0), \
         patch("services.sheet_client.MAX_RETRIES", 2):
        with pytest.raises(SheetClientError) as exc_info:
            await client.call("getGrades")

    assert exc_info.value.status_code == 503
    assert exc_info.value.action == "getGrades"
    assert client._http.post.call_count == 2
    await client.close()


@pytest.mark.asyncio
async def test_retry_on_network_error(client):
    await client.start()
    client._http.post = AsyncMock(
        side_effect=[httpx.ConnectError("refused"), _ok_response({"success": True})]
    )

    with patch("services.sheet_client.RETRY_BASE_DELAY", 0):
        result = await client.call("getBadges")

    assert result == {"success": True}
    await client.close()


@pytest.mark.asyncio
async def test_no_retry_on_4xx(client):
    await client.start()
    client._http.post = AsyncMock(return_value=_error_response(403))

    with pytest.raises(SheetClientError) as exc_info:
        await client.call("getStudents")

    assert exc_info.value.status_code == 403
    assert client._http.post.call_count == 1
    await client.close()


@pytest.mark.asyncio
async def test_empty_body_returns_empty_dict(client):
    await client.start()
    r = _ok_response()
    r.text = ""
    client._http.post = AsyncMock(return_value=r)

    assert await client.call("getClasses") == {}
    await client.close()


# ---------------------------------------------------------------------------
# Circuit breaker
# ---------------------------------------------------------------------------

def test_circuit_initially_closed(client):
    assert client.circuit_open is False


def test_circuit_opens_after_threshold(client):
    for _ in range(CIRCUIT_OPEN_THRESHOLD):
        client._record_failure()
    assert client.circuit_open is True


def test_circuit_resets_on_success(client):
    for _ in range(CIRCUIT_OPEN_THRESHOLD):
        client._record_failure()
    client._record_success()
    assert client.circuit_open is False
    assert client._consecutive_failures == 0


@pytest.mark.asyncio
async def test_circuit_open_raises_immediately(client):
    for _ in range(CIRCUIT_OPEN_THRESHOLD):
        client._record_failure()

    with pytest.raises(CircuitOpenError):
        await client.fetch("classes")


def test_circuit_half_open_after_timeout(client):
    for _ in range(CIRCUIT_OPEN_THRESHOLD):
        client._record_failure()
    client._circuit_opened_at = time.monotonic() - 120
    assert client.circuit_open is False


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

def test_get_sheet_client_singleton():
    import services.sheet_client as mod
    mod._client = None
    c1 = get_sheet_client()
    c2 = get_sheet_client()
    assert c1 is c2
    mod._client = None

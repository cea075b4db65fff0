"""HTTP client for the spreadsheet store (Google Apps Script web app).

Wraps ``httpx.AsyncClient`` with:
- form-encoded ``action=<name>`` POSTs (Apps Script rejects custom headers
  on cross-origin calls, so credentials travel as form fields)
- service-account ``username``/``password`` fields on every call
- retry with exponential backoff (network / 5xx errors)
- circuit breaker: fail fast after N consecutive failures
- request timing logs
- connection-pool lifecycle tied to FastAPI lifespan

This is the *external* RPC client.  Retry policy lives here; the engine in
``services/entity_fetcher.py`` never retries.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx

from config.settings import get_settings
from errors.exceptions import UnknownCollectionError
from models.snapshot import (
    ASSIGNMENTS,
    ATTENDANCE,
    BADGES,
    CLASSES,
    GAMIFICATION,
    GRADES,
    STUDENTS,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------
_client: SheetClient | None = None

# Retry / circuit breaker defaults
MAX_RETRIES = 3
RETRY_BASE_DELAY = 0.5  # seconds, doubles each attempt
CIRCUIT_OPEN_THRESHOLD = 5  # consecutive failures before circuit opens
CIRCUIT_RESET_TIMEOUT = 60  # seconds before attempting to close circuit

# Collection → Apps Script action
COLLECTION_ACTIONS: dict[str, str] = {
    CLASSES: "getClasses",
    STUDENTS: "getStudents",
    ASSIGNMENTS: "getAssignments",
    GRADES: "getGrades",
    ATTENDANCE: "getAttendance",
    GAMIFICATION: "getGamification",
    BADGES: "getBadges",
}

# Some actions answer with a different key than the collection name.
RESPONSE_KEYS: dict[str, str] = {
    GAMIFICATION: "data",
}


class SheetClientError(Exception):
    """Raised when the Apps Script endpoint returns a non-2xx response."""

    def __init__(self, status_code: int, detail: str, action: str = ""):
        self.status_code = status_code
        self.detail = detail
        self.action = action
        super().__init__(f"Sheet API {status_code}: {detail} ({action})")


class CircuitOpenError(Exception):
    """Raised when the circuit breaker is open (store deemed unavailable)."""

    def __init__(self):
        super().__init__(
            "Circuit breaker open — spreadsheet store unavailable"
        )


class SheetClient:
    """Async client for the spreadsheet store with retry and circuit breaker.

    Implements the ``CollectionStore`` protocol consumed by
    :class:`services.entity_fetcher.EntityFetcher`.
    """

    def __init__(self) -> None:
        settings = get_settings()
        self._url = settings.sheet_api_url
        self._timeout = settings.sheet_timeout
        self._username = settings.sheet_username
        self._password = settings.sheet_password
        self._http: httpx.AsyncClient | None = None

        # Circuit breaker state
        self._consecutive_failures = 0
        self._circuit_opened_at: float | None = None

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        """Create the underlying ``httpx.AsyncClient`` connection pool."""
        if self._http is not None:
            return
        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout),
            follow_redirects=True,  # Apps Script answers via a 302 to googleusercontent
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=10,
                keepalive_expiry=30,
            ),
        )
        logger.info("SheetClient started — url=%s", self._url or "<unset>")

    async def close(self) -> None:
        """Gracefully close the connection pool."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
            logger.info("SheetClient closed")

    # -- public API ----------------------------------------------------------

    async def fetch(self, collection: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Read one collection.

        Returns the store payload with rows re-keyed under *collection*:
        ``{"success": True, collection: [...]}`` or
        ``{"success": False, "error": "..."}``.

        Raises :class:`UnknownCollectionError`, :class:`SheetClientError`,
        :class:`CircuitOpenError` or ``httpx.TransportError``.
        """
        action = COLLECTION_ACTIONS.get(collection)
        if action is None:
            raise UnknownCollectionError(collection)

        body = await self.call(action, params)
        if not isinstance(body, dict):
            return {"success": False, "error": f"unexpected response type {type(body).__name__}"}
        if not body.get("success"):
            return {"success": False, "error": str(body.get("error") or "unknown store error")}

        key = RESPONSE_KEYS.get(collection, collection)
        rows = body.get(key)
        if rows is None and key != collection:
            rows = body.get(collection)
        return {"success": True, collection: rows if rows is not None else []}

    async def call(self, action: str, params: dict[str, Any] | None = None) -> Any:
        """Send one action with retry and circuit-breaker logic."""
        form: dict[str, str] = {
            key: str(value) for key, value in (params or {}).items() if value is not None
        }
        form["action"] = action
        # Service-account credentials always win over caller params
        if self._username:
            form["username"] = self._username
            form["password"] = self._password
        return await self._request_with_retry(action, form)

    # -- circuit breaker -----------------------------------------------------

    @property
    def circuit_open(self) -> bool:
        """True when the store is deemed unavailable."""
        if self._consecutive_failures < CIRCUIT_OPEN_THRESHOLD:
            return False
        # Half-open after the reset timeout: let one probe through
        if self._circuit_opened_at is not None:
            elapsed = time.monotonic() - self._circuit_opened_at
            if elapsed >= CIRCUIT_RESET_TIMEOUT:
                logger.info("Circuit breaker half-open — attempting probe request")
                return False
        return True

    def _record_success(self) -> None:
        if self._consecutive_failures > 0:
            logger.info(
                "Sheet store recovered after %d consecutive failures",
                self._consecutive_failures,
            )
        self._consecutive_failures = 0
        self._circuit_opened_at = None

    def _record_failure(self) -> None:
        self._consecutive_failures += 1
        if self._consecutive_failures >= CIRCUIT_OPEN_THRESHOLD and self._circuit_opened_at is None:
            self._circuit_opened_at = time.monotonic()
            logger.warning(
                "Circuit breaker OPEN — %d consecutive failures, "
                "will retry after %ds",
                self._consecutive_failures,
                CIRCUIT_RESET_TIMEOUT,
            )

    # -- retry logic ---------------------------------------------------------

    async def _request_with_retry(self, action: str, form: dict[str, str]) -> Any:
        """POST *form* with exponential-backoff retry.

        Retries on network errors (``httpx.TransportError``) and 5xx.
        Does NOT retry on 4xx.
        """
        if self.circuit_open:
            raise CircuitOpenError()

        client = self._ensure_started()
        last_exc: Exception | None = None

        for attempt in range(1, MAX_RETRIES + 1):
            t0 = time.monotonic()
            try:
                response = await client.post(self._url, data=form)
                elapsed_ms = (time.monotonic() - t0) * 1000
                logger.info(
                    "POST action=%s → %d (%.0fms)",
                    action, response.status_code, elapsed_ms,
                )

                if 400 <= response.status_code < 500:
                    self._record_success()  # server is alive
                    detail = response.text[:500] if response.text else f"HTTP {response.status_code}"
                    raise SheetClientError(response.status_code, detail, action)

                if response.status_code >= 500:
                    self._record_failure()
                    last_exc = SheetClientError(
                        response.status_code,
                        response.text[:200] if response.text else "",
                        action,
                    )
                    if attempt < MAX_RETRIES:
                        delay = RETRY_BASE_DELAY * (2 ** (attempt - 1))
                        logger.warning(
                            "action=%s → 5xx, retry %d/%d in %.1fs",
                            action, attempt, MAX_RETRIES, delay,
                        )
                        await asyncio.sleep(delay)
                        continue
                    raise last_exc

                self._record_success()
                if not response.text:
                    return {}
                return response.json()

            except httpx.TransportError as exc:
                elapsed_ms = (time.monotonic() - t0) * 1000
                self._record_failure()
                last_exc = exc
                logger.warning(
                    "action=%s → network error (%.0fms): %s [attempt %d/%d]",
                    action, elapsed_ms, exc, attempt, MAX_RETRIES,
                )
                if attempt < MAX_RETRIES:
                    await asyncio.sleep(RETRY_BASE_DELAY * (2 ** (attempt - 1)))
                    continue

        raise last_exc  # type: ignore[misc]

    # -- internals -----------------------------------------------------------

    def _ensure_started(self) -> httpx.AsyncClient:
        if self._http is None:
            raise RuntimeError("SheetClient not started — call await client.start() first")
        return self._http


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------

def get_sheet_client() -> SheetClient:
    """Return the module-level SheetClient singleton (create if needed)."""
    global _client
    if _client is None:
        _client = SheetClient()
    return _client

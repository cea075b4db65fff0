"""The Remote Collection Store seam.

The engine depends only on :class:`CollectionStore`.  Production wires in
:class:`services.sheet_client.SheetClient`; debug mode and tests use
:class:`StaticCollectionStore`.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from config.settings import get_settings

logger = logging.getLogger(__name__)


class CollectionStore(Protocol):
    """One read operation per collection.

    ``fetch`` returns ``{"success": True, collection: [...]}`` or
    ``{"success": False, "error": "..."}``, and may raise on transport errors.
    """

    async def fetch(self, collection: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        ...


class StaticCollectionStore:
    """In-memory store serving fixed rows.

    *failures* maps a collection name to an error message (returned as a
    ``success: false`` payload) or to an exception instance (raised).
    Every call is recorded in :attr:`calls` as ``(collection, params)``.
    """

    def __init__(
        self,
        collections: Mapping[str, Sequence[Mapping[str, Any]]] | None = None,
        failures: Mapping[str, str | Exception] | None = None,
    ) -> None:
        self._collections = {k: list(v) for k, v in (collections or {}).items()}
        self._failures = dict(failures or {})
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def fetch(self, collection: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        self.calls.append((collection, dict(params or {})))
        failure = self._failures.get(collection)
        if isinstance(failure, Exception):
            raise failure
        if failure is not None:
            return {"success": False, "error": failure}
        # Deep copy so callers can never mutate the backing rows
        rows = copy.deepcopy(self._collections.get(collection, []))
        return {"success": True, collection: rows}


def get_collection_store() -> CollectionStore:
    """Return the store the API should read from.

    Mock rows are only ever served when ``debug`` and ``use_mock_data`` are
    both on; production always talks to the spreadsheet.
    """
    settings = get_settings()
    if settings.debug and settings.use_mock_data:
        from services.mock_data import COLLECTIONS

        logger.info("Serving mock collections (debug + USE_MOCK_DATA)")
        return StaticCollectionStore(COLLECTIONS)

    from services.sheet_client import get_sheet_client
    return get_sheet_client()

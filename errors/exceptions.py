"""Domain-specific exceptions for Classroom Insight.

Only conditions the caller must act on are raised.  Transport failures and
data-integrity problems are converted into warnings by the engine and never
reach the caller as exceptions.
"""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for dashboard computation errors."""


class IdentityNotFoundError(DashboardError):
    """No current user is available for a per-student view.

    The student dashboard must not fabricate metrics for an unknown user, so
    this is fatal for that view only.  The API layer maps it to HTTP 401.
    """

    def __init__(self, view: str = "student dashboard") -> None:
        self.view = view
        super().__init__(f"session/user not found ({view})")


class CollectionFetchError(DashboardError):
    """Base for errors about reading a single collection from the store.

    Subclasses such as :class:`UnknownCollectionError` carry the collection
    name; :class:`services.entity_fetcher.EntityFetcher` turns any of them
    into a ``TRANSPORT_FAILURE`` warning.
    """

    def __init__(self, collection: str, message: str) -> None:
        self.collection = collection
        super().__init__(f"Collection '{collection}' failed: {message}")


class UnknownCollectionError(CollectionFetchError):
    """The store has no action mapped for the requested collection."""

    def __init__(self, collection: str) -> None:
        super().__init__(collection, "no store action is mapped for this collection")

"""Custom exception hierarchy for Classroom Insight."""

from errors.exceptions import (
    CollectionFetchError,
    DashboardError,
    IdentityNotFoundError,
    UnknownCollectionError,
)

__all__ = [
    "CollectionFetchError",
    "DashboardError",
    "IdentityNotFoundError",
    "UnknownCollectionError",
]

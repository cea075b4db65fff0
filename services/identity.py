"""Identity providers and the explicit per-request dashboard context.

The engine never reads session state on its own.  Callers resolve the
current user through an :class:`IdentityProvider` and pass it in a
:class:`DashboardContext` together with the clock.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

from adapters.fields import string_or_empty
from models.records import CurrentUser

USERNAME_HEADER = "x-user-username"
FULLNAME_HEADER = "x-user-fullname"
ROLE_HEADER = "x-user-role"


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class IdentityProvider(Protocol):
    def current_user(self) -> CurrentUser | None:
        ...


class StaticIdentityProvider:
    """Always reports the same user (or nobody)."""

    def __init__(self, user: CurrentUser | None = None) -> None:
        self._user = user

    def current_user(self) -> CurrentUser | None:
        return self._user


class HeaderIdentityProvider:
    """Reads the user forwarded by the authenticating gateway in request headers.

    Header names are matched case-insensitively.  A blank username means no
    user.
    """

    def __init__(self, headers: Mapping[str, str]) -> None:
        self._headers = {k.lower(): v for k, v in headers.items()}

    def current_user(self) -> CurrentUser | None:
        username = string_or_empty(self._headers.get(USERNAME_HEADER))
        if not username:
            return None
        return CurrentUser(
            username=username,
            full_name=string_or_empty(self._headers.get(FULLNAME_HEADER)),
            role=string_or_empty(self._headers.get(ROLE_HEADER)) or "student",
        )


@dataclass(frozen=True)
class DashboardContext:
    """Who is asking and what time it is, for one dashboard computation."""

    user: CurrentUser | None = None
    now: dt.datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if self.now.tzinfo is None:
            object.__setattr__(self, "now", self.now.replace(tzinfo=dt.timezone.utc))

    @classmethod
    def from_provider(cls, provider: IdentityProvider, now: dt.datetime | None = None) -> DashboardContext:
        return cls(user=provider.current_user(), now=now or utcnow())

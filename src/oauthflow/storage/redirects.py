"""Pending redirect registry for authorization code correlation.

The registry is the only link between the request that started an
authorization code flow and the later, unrelated callback request.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, MutableMapping
from typing import Any, Protocol

from oauthflow.models.redirects import PendingRedirect

logger = logging.getLogger(__name__)

DEFAULT_REDIRECT_TTL = 600.0  # Seconds an abandoned flow stays resumable


class RedirectRegistry(Protocol):
    """Protocol for pending redirect storage keyed by state token."""

    async def put(self, state: str, entry: PendingRedirect) -> None:
        """Register a pending redirect under a fresh state token."""
        ...

    async def get(self, state: str) -> PendingRedirect | None:
        """Look up a live pending redirect; expired entries are not returned."""
        ...

    async def delete(self, state: str) -> None:
        """Consume a pending redirect."""
        ...


class MappingRedirectRegistry:
    """Redirect registry backed by any mutable mapping.

    Entries older than ``ttl`` seconds are treated as absent and dropped
    on lookup, so abandoned flows do not accumulate indefinitely.
    """

    def __init__(
        self,
        mapping: MutableMapping[str, Any] | None = None,
        ttl: float = DEFAULT_REDIRECT_TTL,
        clock: Callable[[], float] = time.time,
        key_prefix: str = "oauthflow.redirect.",
    ):
        self._mapping = mapping if mapping is not None else {}
        self.ttl = ttl
        self._clock = clock
        self._key_prefix = key_prefix

    def _key(self, state: str) -> str:
        return f"{self._key_prefix}{state}"

    async def put(self, state: str, entry: PendingRedirect) -> None:
        if not entry.created_at:
            entry = entry.model_copy(update={"created_at": self._clock()})
        self._mapping[self._key(state)] = entry.model_dump(mode="json")

    async def get(self, state: str) -> PendingRedirect | None:
        data = self._mapping.get(self._key(state))
        if data is None:
            return None

        entry = PendingRedirect.model_validate(data)
        if entry.is_expired(self._clock(), self.ttl):
            logger.debug("Dropping expired pending redirect")
            self._mapping.pop(self._key(state), None)
            return None
        return entry

    async def delete(self, state: str) -> None:
        self._mapping.pop(self._key(state), None)

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        expired = [
            key
            for key, data in self._mapping.items()
            if key.startswith(self._key_prefix)
            and PendingRedirect.model_validate(data).is_expired(now, self.ttl)
        ]
        for key in expired:
            del self._mapping[key]
        return len(expired)


class InMemoryRedirectRegistry(MappingRedirectRegistry):
    """Process-local redirect registry."""

    def __init__(
        self,
        ttl: float = DEFAULT_REDIRECT_TTL,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__({}, ttl=ttl, clock=clock)

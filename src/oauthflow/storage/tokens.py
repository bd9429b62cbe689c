"""Token persistence for OAuth 2.0 clients.

The engine keeps one token record per client identity. Any key-value
medium works as long as a ``put`` followed by a ``get`` for the same key
observes the write.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any, Protocol

from oauthflow.models.tokens import TokenRecord


class TokenStore(Protocol):
    """Protocol for token storage implementations.

    Concurrent writers for the same key must at least resolve as last
    writer wins. Stores that need stronger guarantees should serialize
    the read-exchange-write sequence per key themselves.
    """

    async def get(self, client_identity: str) -> TokenRecord | None:
        """Get the stored record for a client identity."""
        ...

    async def put(self, client_identity: str, record: TokenRecord) -> None:
        """Store a record, replacing any previous one."""
        ...

    async def delete(self, client_identity: str) -> None:
        """Remove the stored record, if any."""
        ...


class MappingTokenStore:
    """Token store backed by any mutable mapping.

    Records are kept as JSON-compatible dicts so that web framework
    sessions and cache clients exposing a mapping interface can persist
    them.
    """

    def __init__(
        self,
        mapping: MutableMapping[str, Any] | None = None,
        key_prefix: str = "oauthflow.token.",
    ):
        self._mapping = mapping if mapping is not None else {}
        self._key_prefix = key_prefix

    def _key(self, client_identity: str) -> str:
        return f"{self._key_prefix}{client_identity}"

    async def get(self, client_identity: str) -> TokenRecord | None:
        data = self._mapping.get(self._key(client_identity))
        if data is None:
            return None
        return TokenRecord.model_validate(data)

    async def put(self, client_identity: str, record: TokenRecord) -> None:
        self._mapping[self._key(client_identity)] = record.model_dump(mode="json")

    async def delete(self, client_identity: str) -> None:
        self._mapping.pop(self._key(client_identity), None)


class InMemoryTokenStore(MappingTokenStore):
    """Process-local token store."""

    def __init__(self):
        super().__init__({})

"""Pending redirect models for authorization code correlation."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class OwnerTag(str, Enum):
    """Who registered a pending redirect in the shared state key space."""

    SELF = "self"
    EXTERNAL = "external"


class PendingRedirect(BaseModel):
    """Server-side record tying a state token to its post-flow destination.

    Created when an authorization code flow begins and consumed when the
    matching callback is resolved.
    """

    destination_uri: str
    extra_params: dict[str, str] = Field(default_factory=dict)
    owner_tag: OwnerTag = OwnerTag.SELF
    client_identity: str | None = None
    created_at: float = 0.0  # Unix timestamp

    def is_expired(self, now: float, ttl: float) -> bool:
        return now - self.created_at > ttl

"""Tagged results returned by the client.

The client never performs redirects itself. Every invocation returns one
of these values and the host acts on it.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TokenGranted:
    """A usable access token.

    ``redirect_to`` is set when the token was obtained by resolving an
    authorization callback; the host should send the user agent there to
    drop the protocol parameters from its address bar.
    """

    access_token: str
    token_type: str = "Bearer"
    redirect_to: str | None = None


@dataclass(frozen=True)
class AuthorizationRequired:
    """Suspend: the user agent must visit the authorization server first."""

    authorization_url: str
    state: str


@dataclass(frozen=True)
class ForwardToOwner:
    """The callback belongs to another consumer of the same state key space."""

    redirect_to: str
    state: str


AccessTokenResult = TokenGranted | AuthorizationRequired | ForwardToOwner

"""Authorization flow models for OAuth 2.0.

Contains models for authorization requests, callback parameters and the
inbound request context handed to the client on every invocation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import parse_qsl, urlencode, urlparse

# Parameters owned by the authorization code protocol itself
RESERVED_CALLBACK_PARAMS = frozenset({"code", "state"})


@dataclass(frozen=True)
class AuthorizationRequest:
    """Authorization request parameters (RFC 6749 Section 4.1.1)."""

    authorization_endpoint: str
    client_id: str
    redirect_uri: str
    state: str
    scope: str | None = None

    def build_authorization_url(self) -> str:
        """Build the complete authorization URL."""
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "state": self.state,
        }

        if self.scope:
            params["scope"] = self.scope

        separator = "&" if urlparse(self.authorization_endpoint).query else "?"
        return f"{self.authorization_endpoint}{separator}{urlencode(params)}"


@dataclass(frozen=True)
class CallbackParameters:
    """Parameters the authorization server appended to the redirect URI."""

    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None
    error_uri: str | None = None

    def is_success(self) -> bool:
        return self.error is None and self.code is not None

    def is_error(self) -> bool:
        return self.error is not None

    def is_callback(self) -> bool:
        """Check if these parameters resume an authorization flow."""
        return any((self.code, self.state, self.error))


@dataclass(frozen=True)
class RequestContext:
    """Inbound data for one invocation of the client.

    ``params`` holds the current request's query parameters, ``return_uri``
    the location the user agent should come back to once a flow started
    by this request completes.
    """

    params: dict[str, str] = field(default_factory=dict)
    return_uri: str | None = None

    @classmethod
    def from_url(cls, url: str) -> RequestContext:
        """Build a context from the full URL of the current request."""
        parsed = urlparse(url)
        params = dict(parse_qsl(parsed.query, keep_blank_values=True))
        return cls(params=params, return_uri=url)

    @property
    def callback(self) -> CallbackParameters:
        return CallbackParameters(
            code=self.params.get("code"),
            state=self.params.get("state"),
            error=self.params.get("error"),
            error_description=self.params.get("error_description"),
            error_uri=self.params.get("error_uri"),
        )

    def forwarded_params(self) -> dict[str, str]:
        """Callback parameters other than the protocol-reserved ones."""
        return {
            key: value
            for key, value in self.params.items()
            if key not in RESERVED_CALLBACK_PARAMS
        }

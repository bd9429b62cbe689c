"""Token record, token response and grant request models.

Contains the persisted token record, the token endpoint response and the
form-encoded grant requests sent to the token endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel

from oauthflow.models.errors import TokenEndpointError


class TokenRecord(BaseModel):
    """Cached access token plus the metadata needed to decide reuse.

    One record per client identity, replaced wholesale on every
    successful exchange.
    """

    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None  # As reported by the server
    scope: str | None = None
    refresh_token: str | None = None
    expiration_time: float | None = None  # Unix timestamp, computed locally

    def is_fresh(self, now: float, margin: float = 10.0) -> bool:
        """Check if the token outlives ``now`` by more than ``margin`` seconds."""
        if self.expiration_time is None:
            return True  # No expiry means token doesn't expire
        return self.expiration_time > now + margin

    def can_refresh(self) -> bool:
        """Check if token can be refreshed."""
        return bool(self.refresh_token)


class TokenResponse(BaseModel):
    """OAuth 2.0 token response (RFC 6749 Section 5).

    Represents both successful responses (Section 5.1) and error
    responses (Section 5.2).
    """

    # Success response fields (RFC 6749 Section 5.1)
    access_token: str | None = None
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    scope: str | None = None

    # Error response fields (RFC 6749 Section 5.2)
    error: str | None = None
    error_description: str | None = None
    error_uri: str | None = None

    def is_success(self) -> bool:
        return self.error is None and self.access_token is not None

    def to_token_record(self, issued_at: float) -> TokenRecord:
        """Convert a successful response into a record issued at ``issued_at``.

        Raises:
            ValueError: If response is not successful
        """
        if not self.is_success():
            raise ValueError("Cannot convert error response to TokenRecord")

        expiration_time = None
        if self.expires_in is not None:
            expiration_time = issued_at + self.expires_in

        return TokenRecord(
            access_token=self.access_token,
            token_type=self.token_type,
            expires_in=self.expires_in,
            scope=self.scope,
            refresh_token=self.refresh_token,
            expiration_time=expiration_time,
        )


@dataclass(frozen=True)
class AuthorizationCodeGrant:
    """Authorization code exchange (RFC 6749 Section 4.1.3)."""

    code: str
    redirect_uri: str

    grant_type: str = "authorization_code"

    def to_form_data(self) -> dict[str, str]:
        return {
            "grant_type": self.grant_type,
            "code": self.code,
            "redirect_uri": self.redirect_uri,
        }


@dataclass(frozen=True)
class ClientCredentialsGrant:
    """Client credentials grant (RFC 6749 Section 4.4.2)."""

    scope: str | None = None

    grant_type: str = "client_credentials"

    def to_form_data(self) -> dict[str, str]:
        data = {"grant_type": self.grant_type}
        if self.scope:
            data["scope"] = self.scope
        return data


@dataclass(frozen=True)
class PasswordGrant:
    """Resource owner password credentials grant (RFC 6749 Section 4.3.2)."""

    username: str
    password: str
    scope: str | None = None

    grant_type: str = "password"

    def to_form_data(self) -> dict[str, str]:
        data = {
            "grant_type": self.grant_type,
            "username": self.username,
            "password": self.password,
        }
        if self.scope:
            data["scope"] = self.scope
        return data


@dataclass(frozen=True)
class RefreshTokenGrant:
    """Refresh token grant (RFC 6749 Section 6)."""

    refresh_token: str
    scope: str | None = None

    grant_type: str = "refresh_token"

    def to_form_data(self) -> dict[str, str]:
        data = {
            "grant_type": self.grant_type,
            "refresh_token": self.refresh_token,
        }
        if self.scope:
            data["scope"] = self.scope
        return data


TokenGrant = (
    AuthorizationCodeGrant | ClientCredentialsGrant | PasswordGrant | RefreshTokenGrant
)


@dataclass(frozen=True)
class ExchangeResult:
    """Outcome of a single token endpoint call.

    Success and OAuth error responses are both returned as values so the
    caller decides between using the token and falling back.
    """

    grant_type: str
    status_code: int
    response: TokenResponse | None
    raw_body: str

    def is_success(self) -> bool:
        return (
            200 <= self.status_code < 300
            and self.response is not None
            and self.response.is_success()
        )

    def to_error(self) -> TokenEndpointError:
        """Build the error describing this failed exchange."""
        error = self.response.error if self.response else None
        description = self.response.error_description if self.response else None
        return TokenEndpointError(
            grant_type=self.grant_type,
            status_code=self.status_code,
            raw_body=self.raw_body,
            error=error,
            error_description=description,
        )

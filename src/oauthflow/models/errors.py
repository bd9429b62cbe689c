"""Exception hierarchy for the OAuth 2.0 client engine.

Provides specific exception types for different failure modes so callers
can tell configuration mistakes, retryable transport failures, upstream
protocol failures and correlation failures apart.
"""

from __future__ import annotations


class OAuth2Error(Exception):
    """Base exception for all OAuth 2.0 related errors."""

    pass


class ConfigError(OAuth2Error):
    """Raised when a client configuration is incomplete or unsupported."""

    pass


class TransportError(OAuth2Error):
    """Raised when the token endpoint cannot be reached.

    Covers timeouts and network failures. Retryable at the caller's
    discretion; the engine never retries on its own.
    """

    def __init__(self, message: str, grant_type: str | None = None):
        super().__init__(message)
        self.grant_type = grant_type


class ProtocolError(OAuth2Error):
    """Raised when an authorization or token endpoint answers unusably."""

    pass


class TokenEndpointError(ProtocolError):
    """Raised when the token endpoint returns a non-success status.

    Carries the requested grant type and the raw upstream payload so the
    caller can inspect exactly what the server said.
    """

    def __init__(
        self,
        grant_type: str,
        status_code: int,
        raw_body: str,
        error: str | None = None,
        error_description: str | None = None,
    ):
        detail = error or "unknown_error"
        if error_description:
            detail = f"{detail}: {error_description}"
        super().__init__(
            f"Token request ({grant_type}) failed with {status_code}: {detail}"
        )
        self.grant_type = grant_type
        self.status_code = status_code
        self.raw_body = raw_body
        self.error = error
        self.error_description = error_description


class MalformedResponseError(ProtocolError):
    """Raised when a successful token response cannot be parsed."""

    def __init__(self, message: str, grant_type: str, raw_body: str = ""):
        super().__init__(message)
        self.grant_type = grant_type
        self.raw_body = raw_body


class AuthorizationDeniedError(ProtocolError):
    """Raised when the authorization server redirects back with an error."""

    def __init__(
        self,
        error: str,
        error_description: str | None = None,
        error_uri: str | None = None,
    ):
        message = f"Authorization failed: {error}"
        if error_description:
            message = f"{message} - {error_description}"
        super().__init__(message)
        self.error = error
        self.error_description = error_description
        self.error_uri = error_uri


class AuthorizationCallbackError(ProtocolError):
    """Raised when callback data carries neither a code nor an error."""

    pass


class StateError(OAuth2Error):
    """Raised when a callback state token is missing, unknown or consumed.

    The caller has to restart the authorization flow from the beginning.
    """

    pass


class SecurityError(OAuth2Error):
    """Raised when a state token belongs to a different client identity."""

    pass

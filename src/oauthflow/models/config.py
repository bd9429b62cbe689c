"""Client configuration models.

Contains the supported grant flows and the immutable configuration a
client is bound to.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from oauthflow.models.errors import ConfigError


class GrantFlow(str, Enum):
    """Grant flows the engine can drive to obtain an access token."""

    AUTHORIZATION_CODE = "authorization_code"
    CLIENT_CREDENTIALS = "client_credentials"
    RESOURCE_OWNER_PASSWORD = "password"


@dataclass(frozen=True)
class ClientConfig:
    """Credentials and endpoints for one OAuth 2.0 client.

    Immutable once constructed. Missing flow parameters are reported
    here instead of on the first token request.
    """

    # Required fields first
    flow: GrantFlow
    client_id: str
    client_secret: str
    token_endpoint: str

    # Authorization code flow
    authorization_endpoint: str | None = None
    redirect_uri: str | None = None

    # Resource owner password flow
    username: str | None = None
    password: str | None = None

    scope: str | None = None  # Space separated
    client_identity: str | None = None  # Overrides the derived identity

    def __post_init__(self) -> None:
        """Validate that the selected flow has everything it needs."""
        try:
            flow = GrantFlow(self.flow)
        except ValueError as e:
            raise ConfigError(f"Unsupported grant flow: {self.flow!r}") from e
        object.__setattr__(self, "flow", flow)

        missing = [
            name
            for name in ("client_id", "client_secret", "token_endpoint")
            if not getattr(self, name)
        ]
        if flow is GrantFlow.AUTHORIZATION_CODE:
            missing += [
                name
                for name in ("authorization_endpoint", "redirect_uri")
                if not getattr(self, name)
            ]
        elif flow is GrantFlow.RESOURCE_OWNER_PASSWORD:
            missing += [
                name for name in ("username", "password") if not getattr(self, name)
            ]

        if missing:
            raise ConfigError(
                f"Missing required configuration for {flow.value} flow: "
                f"{', '.join(missing)}"
            )

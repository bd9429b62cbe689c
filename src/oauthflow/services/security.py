"""Security utilities for OAuth 2.0 flows.

Provides cryptographically secure state generation and the stable
identity under which a client's token is stored.
"""

from __future__ import annotations

import base64
import hashlib
import secrets

from oauthflow.models.config import ClientConfig


def generate_state() -> str:
    """Generate cryptographically secure state parameter.

    The state parameter correlates the authorization callback with the
    request that started the flow and provides CSRF protection.

    Returns:
        URL-safe random state string (43 characters, 256 bits)
    """
    return secrets.token_urlsafe(32)


def derive_client_identity(config: ClientConfig) -> str:
    """Derive the storage identity for a client configuration.

    An explicit ``client_identity`` on the config wins. Otherwise the
    identity is a hash of the token endpoint, client id and flow, so
    repeated constructions address the same stored token.
    """
    if config.client_identity:
        return config.client_identity

    material = "\n".join((config.token_endpoint, config.client_id, config.flow.value))
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def basic_auth_header(client_id: str, client_secret: str) -> str:
    """Build the HTTP Basic ``Authorization`` header value for a client."""
    credentials = f"{client_id}:{client_secret}".encode("utf-8")
    return f"Basic {base64.b64encode(credentials).decode('ascii')}"

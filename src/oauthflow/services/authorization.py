"""Authorization code flow initiation and return URL construction.

Builds the authorization server redirect URL and registers the pending
redirect that lets a later callback find its way back. No network calls.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from oauthflow.models.flow import AuthorizationRequest
from oauthflow.models.redirects import OwnerTag, PendingRedirect
from oauthflow.models.results import AuthorizationRequired
from oauthflow.services.security import generate_state
from oauthflow.storage.redirects import RedirectRegistry

logger = logging.getLogger(__name__)


class AuthorizationUrlBuilder:
    """Starts authorization code flows for one client."""

    def __init__(
        self,
        authorization_endpoint: str,
        client_id: str,
        redirect_uri: str,
        registry: RedirectRegistry,
        scope: str | None = None,
        client_identity: str | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.authorization_endpoint = authorization_endpoint
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.scope = scope
        self.client_identity = client_identity
        self._registry = registry
        self._clock = clock

    async def begin(
        self,
        destination_uri: str,
        extra_params: Mapping[str, str] | None = None,
    ) -> AuthorizationRequired:
        """Register a pending redirect and build the authorization URL.

        The pending redirect is stored before the URL is returned, so the
        callback can always be correlated.

        Args:
            destination_uri: Where the user agent returns once the flow completes
            extra_params: Extra query parameters to add to that return location

        Returns:
            AuthorizationRequired: URL the user agent must visit, and its state
        """
        state = generate_state()

        await self._registry.put(
            state,
            PendingRedirect(
                destination_uri=destination_uri,
                extra_params=dict(extra_params or {}),
                owner_tag=OwnerTag.SELF,
                client_identity=self.client_identity,
                created_at=self._clock(),
            ),
        )

        auth_request = AuthorizationRequest(
            authorization_endpoint=self.authorization_endpoint,
            client_id=self.client_id,
            redirect_uri=self.redirect_uri,
            state=state,
            scope=self.scope,
        )

        logger.info(f"Starting authorization code flow for client {self.client_id}")
        return AuthorizationRequired(
            authorization_url=auth_request.build_authorization_url(),
            state=state,
        )

    async def register_external(
        self,
        destination_uri: str,
        extra_params: Mapping[str, str] | None = None,
    ) -> str:
        """Register a redirect on behalf of another consumer of the callback.

        The client never exchanges codes for such entries; it forwards the
        callback to ``destination_uri`` instead.

        Returns:
            The state token the other consumer must send to the server
        """
        state = generate_state()
        await self._registry.put(
            state,
            PendingRedirect(
                destination_uri=destination_uri,
                extra_params=dict(extra_params or {}),
                owner_tag=OwnerTag.EXTERNAL,
                created_at=self._clock(),
            ),
        )
        return state


def build_return_url(destination_uri: str, *param_sets: Mapping[str, str]) -> str:
    """Merge query parameters into ``destination_uri``.

    The destination's own query comes first and each later mapping
    overrides keys of the earlier ones.
    """
    parsed = urlparse(destination_uri)
    params = dict(parse_qsl(parsed.query, keep_blank_values=True))
    for param_set in param_sets:
        params.update(param_set)
    return urlunparse(parsed._replace(query=urlencode(params)))

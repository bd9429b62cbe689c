"""OAuth 2.0 client orchestration.

Decides, per invocation, whether a stored token can be reused, refreshed,
or has to be acquired again, and drives the authorization code flow
across independent requests using only persisted state and the current
request's parameters.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping

import httpx

from oauthflow.models.config import ClientConfig, GrantFlow
from oauthflow.models.errors import (
    AuthorizationCallbackError,
    AuthorizationDeniedError,
    ConfigError,
    MalformedResponseError,
    SecurityError,
    StateError,
)
from oauthflow.models.flow import RequestContext
from oauthflow.models.redirects import OwnerTag
from oauthflow.models.results import (
    AccessTokenResult,
    AuthorizationRequired,
    ForwardToOwner,
    TokenGranted,
)
from oauthflow.models.tokens import (
    AuthorizationCodeGrant,
    ClientCredentialsGrant,
    PasswordGrant,
    RefreshTokenGrant,
    TokenRecord,
    TokenResponse,
)
from oauthflow.services.authorization import AuthorizationUrlBuilder, build_return_url
from oauthflow.services.security import derive_client_identity
from oauthflow.services.tokens import TokenRequester
from oauthflow.storage.redirects import InMemoryRedirectRegistry, RedirectRegistry
from oauthflow.storage.tokens import InMemoryTokenStore, TokenStore

logger = logging.getLogger(__name__)


class OAuth2Client:
    """OAuth 2.0 client bound to one configuration and client identity.

    Every call is a function of the current time, the persisted token
    record and pending redirects, and the inbound request context. The
    client holds no flow state of its own between calls.
    """

    def __init__(
        self,
        config: ClientConfig,
        token_store: TokenStore | None = None,
        redirect_registry: RedirectRegistry | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        expiry_margin: float = 10.0,
        retain_refresh_token: bool = False,
        client_identity: str | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize OAuth client.

        Args:
            config: Client credentials and endpoints
            token_store: Token persistence; process-local if omitted
            redirect_registry: Pending redirect persistence; process-local if omitted
            http_client: HTTP client used to reach the token endpoint
            timeout: HTTP request timeout in seconds
            expiry_margin: Seconds before expiry at which a token counts as stale
            retain_refresh_token: Keep the previous refresh token when a
                response does not carry a new one
            client_identity: Storage identity overriding the derived one
            clock: Source of the current Unix time
        """
        self.config = config
        self.client_identity = client_identity or derive_client_identity(config)
        self.expiry_margin = expiry_margin
        self.retain_refresh_token = retain_refresh_token
        self._clock = clock

        self.token_store = token_store or InMemoryTokenStore()
        self.redirect_registry = redirect_registry or InMemoryRedirectRegistry(
            clock=clock
        )
        self.token_requester = TokenRequester(
            config.token_endpoint,
            config.client_id,
            config.client_secret,
            http_client=http_client,
            timeout=timeout,
        )

        self.authorization: AuthorizationUrlBuilder | None = None
        if config.flow is GrantFlow.AUTHORIZATION_CODE:
            self.authorization = AuthorizationUrlBuilder(
                config.authorization_endpoint,
                config.client_id,
                config.redirect_uri,
                self.redirect_registry,
                scope=config.scope,
                client_identity=self.client_identity,
                clock=clock,
            )

    async def get_access_token(
        self, context: RequestContext | None = None
    ) -> AccessTokenResult:
        """Produce an access token, or the instruction needed to get one.

        1. A callback in ``context`` resumes the authorization code flow.
        2. A stored token that is not about to expire is reused.
        3. A stored refresh token is tried once.
        4. Otherwise the configured flow runs: a direct grant, or the
           start of an authorization code flow.

        Args:
            context: Inbound parameters of the current request

        Returns:
            TokenGranted, AuthorizationRequired or ForwardToOwner

        Raises:
            TransportError: If the token endpoint cannot be reached
            ProtocolError: If the token endpoint rejects the final attempt
            StateError: If a callback's state cannot be correlated
            SecurityError: If a callback's state belongs to another client
        """
        context = context or RequestContext()

        if (
            self.config.flow is GrantFlow.AUTHORIZATION_CODE
            and context.callback.is_callback()
        ):
            return await self.resume_from_callback(context)

        record = await self.token_store.get(self.client_identity)
        if record is not None:
            if record.is_fresh(self._clock(), self.expiry_margin):
                logger.debug(f"Reusing stored access token for {self.config.client_id}")
                return TokenGranted(record.access_token, record.token_type)

            if record.can_refresh():
                refreshed = await self._refresh(record)
                if refreshed is not None:
                    return TokenGranted(refreshed.access_token, refreshed.token_type)

        return await self._acquire(context)

    async def resume_from_callback(self, context: RequestContext) -> AccessTokenResult:
        """Resolve an authorization server callback.

        Looks up the callback's state token. Entries registered by another
        consumer are forwarded untouched; entries of this client have
        their code exchanged and are consumed whatever the outcome.

        Raises:
            ConfigError: If the client is not configured for authorization code
            StateError: If the state is missing, unknown, expired or consumed
            SecurityError: If the state was registered by another client
            AuthorizationDeniedError: If the server redirected back with an error
            AuthorizationCallbackError: If the callback carries no code
        """
        if self.authorization is None:
            raise ConfigError(
                f"Callbacks require the authorization_code flow, "
                f"client is configured for {self.config.flow.value}"
            )

        callback = context.callback
        if not callback.state:
            raise StateError("Authorization callback missing required state parameter")

        entry = await self.redirect_registry.get(callback.state)
        if entry is None:
            raise StateError("Unknown, expired or already consumed state parameter")

        if entry.owner_tag is OwnerTag.EXTERNAL:
            logger.info("Forwarding authorization callback to its registered owner")
            return ForwardToOwner(
                redirect_to=build_return_url(
                    entry.destination_uri, entry.extra_params, context.params
                ),
                state=callback.state,
            )

        if entry.client_identity and entry.client_identity != self.client_identity:
            logger.warning("State parameter was registered by a different client")
            raise SecurityError("State parameter belongs to a different client")

        try:
            if callback.is_error():
                raise AuthorizationDeniedError(
                    callback.error, callback.error_description, callback.error_uri
                )
            if not callback.is_success():
                raise AuthorizationCallbackError(
                    "Authorization callback missing both code and error"
                )

            token_response = await self.token_requester.request_token(
                AuthorizationCodeGrant(
                    code=callback.code, redirect_uri=self.config.redirect_uri
                )
            )
        finally:
            # Codes are single use, so the entry never outlives an attempt
            await self.redirect_registry.delete(callback.state)

        record = await self._store(token_response)
        logger.info(f"Authorization code flow complete for {self.config.client_id}")

        redirect_to = None
        if entry.destination_uri:
            redirect_to = build_return_url(
                entry.destination_uri, entry.extra_params, context.forwarded_params()
            )
        return TokenGranted(record.access_token, record.token_type, redirect_to)

    async def begin_authorization(
        self,
        return_uri: str,
        extra_params: Mapping[str, str] | None = None,
    ) -> AuthorizationRequired:
        """Start an authorization code flow regardless of stored tokens."""
        if self.authorization is None:
            raise ConfigError(
                f"Authorization requires the authorization_code flow, "
                f"client is configured for {self.config.flow.value}"
            )
        return await self.authorization.begin(return_uri, extra_params)

    async def forget_token(self) -> None:
        """Drop the stored token record for this client identity."""
        await self.token_store.delete(self.client_identity)

    async def _refresh(self, record: TokenRecord) -> TokenRecord | None:
        """Attempt a refresh grant; ``None`` means fall back to a full grant."""
        try:
            result = await self.token_requester.exchange(
                RefreshTokenGrant(
                    refresh_token=record.refresh_token, scope=self.config.scope
                )
            )
        except MalformedResponseError as e:
            logger.warning(
                f"Token refresh returned an unusable response ({e}), "
                f"falling back to {self.config.flow.value}"
            )
            return None

        if not result.is_success():
            logger.warning(
                f"Token refresh failed with {result.status_code}, "
                f"falling back to {self.config.flow.value}"
            )
            return None

        logger.info(f"Refreshed access token for {self.config.client_id}")
        return await self._store(result.response, previous=record)

    async def _acquire(self, context: RequestContext) -> AccessTokenResult:
        """Run the configured flow from scratch."""
        flow = self.config.flow

        if flow is GrantFlow.CLIENT_CREDENTIALS:
            grant = ClientCredentialsGrant(scope=self.config.scope)
        elif flow is GrantFlow.RESOURCE_OWNER_PASSWORD:
            grant = PasswordGrant(
                username=self.config.username,
                password=self.config.password,
                scope=self.config.scope,
            )
        else:
            return await self.authorization.begin(context.return_uri or "")

        token_response = await self.token_requester.request_token(grant)
        record = await self._store(token_response)
        return TokenGranted(record.access_token, record.token_type)

    async def _store(
        self, token_response: TokenResponse, previous: TokenRecord | None = None
    ) -> TokenRecord:
        """Persist a successful response as the record for this identity."""
        record = token_response.to_token_record(issued_at=self._clock())

        if self.retain_refresh_token and previous and not record.refresh_token:
            record = record.model_copy(update={"refresh_token": previous.refresh_token})

        await self.token_store.put(self.client_identity, record)
        return record

    async def close(self) -> None:
        """Close the underlying HTTP client if this client created it."""
        await self.token_requester.close()

    async def __aenter__(self) -> OAuth2Client:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

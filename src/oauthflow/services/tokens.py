"""OAuth 2.0 token endpoint service.

Implements RFC 6749 token endpoint interactions for the authorization
code, client credentials, resource owner password and refresh token
grants.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from oauthflow.models.errors import MalformedResponseError, TransportError
from oauthflow.models.tokens import ExchangeResult, TokenGrant, TokenResponse
from oauthflow.services.security import basic_auth_header

logger = logging.getLogger(__name__)


class TokenRequester:
    """Performs token endpoint exchanges for one client.

    Sends form-encoded POST requests authenticated with HTTP Basic client
    credentials (RFC 6749 Section 2.3.1) and parses the JSON response.

    OAuth error responses are returned as values. Only transport failures
    and unparseable success responses raise.
    """

    def __init__(
        self,
        token_endpoint: str,
        client_id: str,
        client_secret: str,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        """Initialize token requester.

        Args:
            token_endpoint: Token endpoint URL
            client_id: OAuth client identifier
            client_secret: OAuth client secret
            http_client: Optional HTTP client; one is created if omitted
            timeout: HTTP request timeout in seconds
        """
        self.token_endpoint = token_endpoint
        self.client_id = client_id
        self._client_secret = client_secret
        self.timeout = timeout
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def exchange(self, grant: TokenGrant) -> ExchangeResult:
        """Send one grant request to the token endpoint.

        Args:
            grant: Grant request parameters

        Returns:
            ExchangeResult: Success or OAuth error outcome

        Raises:
            TransportError: If the endpoint cannot be reached or times out
            MalformedResponseError: If a success response cannot be parsed
        """
        form_data = grant.to_form_data()
        headers = {
            "Authorization": basic_auth_header(self.client_id, self._client_secret),
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }

        logger.debug(
            f"Token request to {self.token_endpoint}: "
            f"grant_type={grant.grant_type}, client_id={self.client_id}, "
            f"scope={form_data.get('scope', 'none')}"
        )

        try:
            response = await self._http_client.post(
                self.token_endpoint,
                data=form_data,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Timed out during {grant.grant_type} token request: {e}",
                grant_type=grant.grant_type,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"HTTP error during {grant.grant_type} token request: {e}",
                grant_type=grant.grant_type,
            ) from e

        return self._parse_token_response(grant.grant_type, response)

    async def request_token(self, grant: TokenGrant) -> TokenResponse:
        """Send a grant request and raise unless it succeeded.

        Raises:
            TokenEndpointError: If the endpoint returned a non-success status
        """
        result = await self.exchange(grant)
        if not result.is_success():
            raise result.to_error()
        return result.response

    def _parse_token_response(
        self, grant_type: str, response: httpx.Response
    ) -> ExchangeResult:
        """Parse token endpoint response into an ExchangeResult.

        Handles both successful responses (2xx) and error responses (400+)
        according to RFC 6749 Section 5.
        """
        raw_body = response.text
        success = 200 <= response.status_code < 300

        try:
            response_data = response.json()
            if not isinstance(response_data, dict):
                raise ValueError("token response is not a JSON object")
            token_response = TokenResponse(**response_data)
        except (ValueError, ValidationError) as e:
            if success:
                raise MalformedResponseError(
                    f"Invalid token response format: {e}",
                    grant_type=grant_type,
                    raw_body=raw_body,
                ) from e
            # Non-JSON error pages are still status failures
            token_response = None

        if success:
            if not token_response.access_token:
                raise MalformedResponseError(
                    "Token response missing required access_token",
                    grant_type=grant_type,
                    raw_body=raw_body,
                )
            logger.info(f"Token request ({grant_type}) successful")
        else:
            error_code = token_response.error if token_response else None
            logger.warning(
                f"Token request ({grant_type}) failed with "
                f"{response.status_code}: {error_code or 'unknown_error'}"
            )

        return ExchangeResult(
            grant_type=grant_type,
            status_code=response.status_code,
            response=token_response,
            raw_body=raw_body,
        )

    async def close(self) -> None:
        """Close the HTTP client if this requester created it."""
        if self._owns_http_client:
            await self._http_client.aclose()

from typing import Any
from urllib.parse import parse_qsl

import httpx
import pytest

from oauthflow.models.config import ClientConfig, GrantFlow


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MockTokenEndpoint:
    """Scripted token endpoint served through httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._responses: list[httpx.Response | Exception] = []

    def respond(
        self,
        status_code: int = 200,
        json: Any = None,
        content: bytes | None = None,
    ) -> None:
        """Queue a response for the next request."""
        if json is not None:
            self._responses.append(httpx.Response(status_code, json=json))
        else:
            self._responses.append(httpx.Response(status_code, content=content or b""))

    def fail(self, error: Exception) -> None:
        """Queue a transport failure for the next request."""
        self._responses.append(error)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"Unexpected token request to {request.url}")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def forms(self) -> list[dict[str, str]]:
        """Decoded form bodies of every request received so far."""
        return [dict(parse_qsl(request.content.decode())) for request in self.requests]

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


def make_config(flow: GrantFlow = GrantFlow.CLIENT_CREDENTIALS, **overrides) -> ClientConfig:
    """Build a valid config for ``flow`` with test defaults."""
    values: dict[str, Any] = {
        "flow": flow,
        "client_id": "client-456",
        "client_secret": "secret-789",
        "token_endpoint": "https://auth.example.com/token",
    }
    if flow is GrantFlow.AUTHORIZATION_CODE:
        values["authorization_endpoint"] = "https://auth.example.com/authorize"
        values["redirect_uri"] = "https://myapp.com/callback"
    elif flow is GrantFlow.RESOURCE_OWNER_PASSWORD:
        values["username"] = "alice"
        values["password"] = "wonderland"
    values.update(overrides)
    return ClientConfig(**values)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_endpoint() -> MockTokenEndpoint:
    return MockTokenEndpoint()

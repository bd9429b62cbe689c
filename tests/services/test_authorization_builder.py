"""Tests for authorization code flow initiation.

High-impact tests covering:
- Authorization URL parameters
- Pending redirect registration before the URL is handed out
- External registrations sharing the same key space
- Return URL merging
"""

from urllib.parse import parse_qs, urlparse

from oauthflow.models.redirects import OwnerTag
from oauthflow.services.authorization import AuthorizationUrlBuilder, build_return_url
from oauthflow.storage.redirects import InMemoryRedirectRegistry
from tests.conftest import FakeClock


class TestBeginAuthorization:
    def setup_method(self):
        # Arrange
        self.clock = FakeClock()
        self.registry = InMemoryRedirectRegistry(clock=self.clock)
        self.builder = AuthorizationUrlBuilder(
            "https://auth.example.com/authorize",
            "client-456",
            "https://myapp.com/callback",
            self.registry,
            scope="read write",
            client_identity="identity-1",
            clock=self.clock,
        )

    async def test_authorization_url_carries_required_parameters(self):
        # Act
        result = await self.builder.begin("https://myapp.com/reports?page=2")

        # Assert
        parsed = urlparse(result.authorization_url)
        query_params = parse_qs(parsed.query)

        assert parsed.netloc == "auth.example.com"
        assert parsed.path == "/authorize"
        assert query_params["response_type"] == ["code"]
        assert query_params["client_id"] == ["client-456"]
        assert query_params["redirect_uri"] == ["https://myapp.com/callback"]
        assert query_params["scope"] == ["read write"]
        assert query_params["state"] == [result.state]

    async def test_state_is_registered_before_returning(self):
        # Act
        result = await self.builder.begin(
            "https://myapp.com/reports?page=2", {"tab": "summary"}
        )

        # Assert
        entry = await self.registry.get(result.state)
        assert entry is not None
        assert entry.destination_uri == "https://myapp.com/reports?page=2"
        assert entry.extra_params == {"tab": "summary"}
        assert entry.owner_tag is OwnerTag.SELF
        assert entry.client_identity == "identity-1"
        assert entry.created_at == self.clock.now

    async def test_each_flow_gets_a_new_state(self):
        # Act
        first = await self.builder.begin("https://myapp.com/")
        second = await self.builder.begin("https://myapp.com/")

        # Assert
        assert first.state != second.state
        assert await self.registry.get(first.state) is not None
        assert await self.registry.get(second.state) is not None

    async def test_scope_is_omitted_when_not_configured(self):
        # Arrange
        self.builder.scope = None

        # Act
        result = await self.builder.begin("https://myapp.com/")

        # Assert
        assert "scope" not in parse_qs(urlparse(result.authorization_url).query)

    async def test_endpoint_with_existing_query_is_extended(self):
        # Arrange
        self.builder.authorization_endpoint = "https://auth.example.com/authorize?tenant=x"

        # Act
        result = await self.builder.begin("https://myapp.com/")

        # Assert
        query_params = parse_qs(urlparse(result.authorization_url).query)
        assert query_params["tenant"] == ["x"]
        assert query_params["response_type"] == ["code"]

    async def test_register_external_tags_entry(self):
        # Act
        state = await self.builder.register_external(
            "https://other.example.com/done", {"source": "widget"}
        )

        # Assert
        entry = await self.registry.get(state)
        assert entry.owner_tag is OwnerTag.EXTERNAL
        assert entry.destination_uri == "https://other.example.com/done"
        assert entry.extra_params == {"source": "widget"}
        assert entry.client_identity is None


class TestBuildReturnUrl:
    def test_later_parameter_sets_win(self):
        # Act
        url = build_return_url(
            "https://myapp.com/reports?page=2&tab=a",
            {"tab": "b"},
            {"session_state": "xyz"},
        )

        # Assert
        parsed = urlparse(url)
        assert parsed.path == "/reports"
        assert parse_qs(parsed.query) == {
            "page": ["2"],
            "tab": ["b"],
            "session_state": ["xyz"],
        }

    def test_destination_without_parameters_is_unchanged(self):
        assert build_return_url("https://myapp.com/reports") == "https://myapp.com/reports"

"""Tests for state generation, client identity and client authentication."""

import base64

from oauthflow.models.config import GrantFlow
from oauthflow.services.security import (
    basic_auth_header,
    derive_client_identity,
    generate_state,
)
from tests.conftest import make_config


class TestGenerateState:
    def test_state_is_url_safe_and_long(self):
        state = generate_state()

        assert len(state) >= 43
        assert all(c.isalnum() or c in "-_" for c in state)

    def test_states_do_not_repeat(self):
        assert len({generate_state() for _ in range(100)}) == 100


class TestClientIdentity:
    def test_identical_configs_share_identity(self):
        assert derive_client_identity(make_config()) == derive_client_identity(
            make_config()
        )

    def test_identity_ignores_secret_and_scope(self):
        assert derive_client_identity(make_config()) == derive_client_identity(
            make_config(client_secret="rotated", scope="read")
        )

    def test_identity_depends_on_endpoint_client_and_flow(self):
        base = derive_client_identity(make_config())

        assert base != derive_client_identity(
            make_config(token_endpoint="https://other.example.com/token")
        )
        assert base != derive_client_identity(make_config(client_id="client-999"))
        assert base != derive_client_identity(
            make_config(GrantFlow.RESOURCE_OWNER_PASSWORD)
        )

    def test_explicit_identity_wins(self):
        assert derive_client_identity(make_config(client_identity="mine")) == "mine"


def test_basic_auth_header():
    header = basic_auth_header("client-456", "secret:789")

    assert header.startswith("Basic ")
    assert base64.b64decode(header[6:]) == b"client-456:secret:789"

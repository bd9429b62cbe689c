"""Tests for inbound request context parsing."""

from oauthflow.models.flow import CallbackParameters, RequestContext


class TestRequestContextFromUrl:
    def test_query_parameters_and_return_uri(self):
        # Act
        context = RequestContext.from_url(
            "https://myapp.com/callback?code=c1&state=s1&session_state=abc"
        )

        # Assert
        assert context.return_uri == (
            "https://myapp.com/callback?code=c1&state=s1&session_state=abc"
        )
        assert context.params == {"code": "c1", "state": "s1", "session_state": "abc"}
        assert context.callback.code == "c1"
        assert context.callback.state == "s1"

    def test_blank_parameters_are_kept(self):
        # Act
        context = RequestContext.from_url("https://myapp.com/callback?state=s1&foo=")

        # Assert
        assert context.params == {"state": "s1", "foo": ""}
        assert context.forwarded_params() == {"foo": ""}

    def test_url_without_query_has_no_callback(self):
        # Act
        context = RequestContext.from_url("https://myapp.com/reports")

        # Assert
        assert context.params == {}
        assert not context.callback.is_callback()


class TestCallbackParameters:
    def test_code_without_error_is_success(self):
        assert CallbackParameters(code="c1", state="s1").is_success()

    def test_error_or_missing_code_is_not_success(self):
        assert not CallbackParameters(state="s1", error="access_denied").is_success()
        assert not CallbackParameters(state="s1").is_success()

"""
Unit tests for delivering payloads to Loki
"""
from unittest.mock import Mock, patch

import pytest
import requests

from logpush_loki.models.records import Line
from logpush_loki.services.errors import ForwardError
from logpush_loki.services.forwarder import (
    ForwarderConfig,
    LokiForwarder,
    log_backend_response,
    read_response_body,
)
from logpush_loki.services.transformer import transform

PUSH_URL = 'https://loki.example.com/loki/api/v1/push'


@pytest.fixture
def payload(arrival_ns):
    return transform([Line(text='{"EdgeStartTimestamp":123}'), Line(text='plain')], "cf", arrival_ns)


class TestForward:
    """Test the outbound POST."""

    def test_posts_payload_with_credential(self, forwarder, mock_session, payload):
        forwarder.forward(payload, "Bearer abc")

        mock_session.post.assert_called_once()
        args, kwargs = mock_session.post.call_args
        assert args[0] == PUSH_URL
        assert kwargs['json'] == payload.to_loki()
        assert kwargs['headers'] == {
            'Authorization': 'Bearer abc',
            'Content-Type': 'application/json'
        }
        assert kwargs['timeout'] is None

    def test_credential_is_sent_verbatim(self, forwarder, mock_session, payload):
        credential = "Basic MTIzNDU2OmdsY19leUp2SWpvaU1USXpJbjA9  "

        forwarder.forward(payload, credential)

        assert mock_session.post.call_args.kwargs['headers']['Authorization'] == credential

    def test_timeout_is_passed_through(self, mock_session, payload):
        forwarder = LokiForwarder(ForwarderConfig(push_url=PUSH_URL, timeout=2.5), session_factory=lambda: mock_session)

        forwarder.forward(payload, "Bearer abc")

        assert mock_session.post.call_args.kwargs['timeout'] == 2.5

    def test_returns_backend_response_unmodified(self, forwarder, mock_session, backend_response, payload):
        rejected = backend_response(400, b'{"message":"entry too far behind"}')
        mock_session.post.return_value = rejected

        response = forwarder.forward(payload, "Bearer abc")

        assert response is rejected
        assert response.status_code == 400

    def test_network_failure_raises_forward_error(self, forwarder, mock_session, payload):
        mock_session.post.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(ForwardError) as exc_info:
            forwarder.forward(payload, "Bearer abc")

        assert exc_info.value.reason == "failed to reach log backend"
        # No retry
        assert mock_session.post.call_count == 1

    def test_timeout_raises_forward_error(self, forwarder, mock_session, payload):
        mock_session.post.side_effect = requests.Timeout("read timed out")

        with pytest.raises(ForwardError):
            forwarder.forward(payload, "Bearer abc")

    def test_missing_endpoint(self, mock_session, payload):
        forwarder = LokiForwarder(ForwarderConfig(), session_factory=lambda: mock_session)

        with pytest.raises(ForwardError) as exc_info:
            forwarder.forward(payload, "Bearer abc")

        assert exc_info.value.reason == "backend endpoint is not configured"
        mock_session.post.assert_not_called()

    def test_default_session_factory(self):
        forwarder = LokiForwarder(ForwarderConfig(push_url=PUSH_URL))
        assert forwarder.session_factory is requests.Session

    def test_uses_requests_session_post(self, payload, backend_response):
        """A real session is used when no factory is injected."""
        with patch.object(requests.Session, 'post', return_value=backend_response()) as mock_post:
            LokiForwarder(ForwarderConfig(push_url=PUSH_URL)).forward(payload, "Bearer abc")

        mock_post.assert_called_once()
        assert mock_post.call_args.kwargs['headers']['Authorization'] == "Bearer abc"

    def test_new_session_per_forward(self, mock_session, payload):
        factory = Mock(return_value=mock_session)
        forwarder = LokiForwarder(ForwarderConfig(push_url=PUSH_URL), session_factory=factory)

        forwarder.forward(payload, "Bearer tenant-a")
        forwarder.forward(payload, "Bearer tenant-b")

        assert factory.call_count == 2
        assert mock_session.close.call_count == 2

    def test_session_closed_on_network_failure(self, mock_session, payload):
        mock_session.post.side_effect = requests.ConnectionError("connection refused")
        forwarder = LokiForwarder(ForwarderConfig(push_url=PUSH_URL), session_factory=lambda: mock_session)

        with pytest.raises(ForwardError):
            forwarder.forward(payload, "Bearer abc")

        mock_session.close.assert_called_once()

    def test_cookies_do_not_leak_between_callers(self, payload, backend_response):
        """A cookie set by the backend for one caller is not sent on the next push."""
        cookie_counts = []

        def fake_post(session, url, **kwargs):
            cookie_counts.append(len(session.cookies))
            session.cookies.set('lb', 'tenant-a')
            return backend_response()

        forwarder = LokiForwarder(ForwarderConfig(push_url=PUSH_URL), on_response=None)
        with patch.object(requests.Session, 'post', autospec=True, side_effect=fake_post):
            forwarder.forward(payload, "Bearer tenant-a")
            forwarder.forward(payload, "Bearer tenant-b")

        assert cookie_counts == [0, 0]


class TestResponseHook:
    """Test the diagnostic read of the backend response."""

    def test_hook_receives_parsed_json(self, mock_session, backend_response, payload):
        hook = Mock()
        mock_session.post.return_value = backend_response(400, b'{"message":"bad"}')
        forwarder = LokiForwarder(ForwarderConfig(push_url=PUSH_URL), session_factory=lambda: mock_session, on_response=hook)

        response = forwarder.forward(payload, "Bearer abc")

        hook.assert_called_once_with(response, {"message": "bad"})

    def test_hook_receives_none_for_empty_body(self, mock_session, payload):
        hook = Mock()
        forwarder = LokiForwarder(ForwarderConfig(push_url=PUSH_URL), session_factory=lambda: mock_session, on_response=hook)

        response = forwarder.forward(payload, "Bearer abc")

        hook.assert_called_once_with(response, None)

    def test_failing_hook_does_not_break_delivery(self, mock_session, payload):
        hook = Mock(side_effect=RuntimeError("boom"))
        forwarder = LokiForwarder(ForwarderConfig(push_url=PUSH_URL), session_factory=lambda: mock_session, on_response=hook)

        response = forwarder.forward(payload, "Bearer abc")

        assert response.status_code == 204

    def test_hook_disabled(self, mock_session, payload):
        forwarder = LokiForwarder(ForwarderConfig(push_url=PUSH_URL), session_factory=lambda: mock_session, on_response=None)

        assert forwarder.forward(payload, "Bearer abc").status_code == 204

    def test_default_hook_logs_rejection(self, backend_response, caplog):
        with caplog.at_level('WARNING', logger='logpush_loki.services.forwarder'):
            log_backend_response(backend_response(401, b'unauthorized'), None)

        assert "401" in caplog.text
        assert "unauthorized" in caplog.text


class TestReadResponseBody:

    def test_json_body(self, backend_response):
        assert read_response_body(backend_response(200, b'{"ok": true}')) == {"ok": True}

    def test_empty_body(self, backend_response):
        assert read_response_body(backend_response(204, b'')) is None

    def test_non_json_body(self, backend_response):
        assert read_response_body(backend_response(500, b'<html>gateway</html>')) is None


class TestForwarderConfig:

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValueError):
            ForwarderConfig(push_url=PUSH_URL, timeout=0)

"""
Test configuration and fixtures for unit tests
"""
import gzip
import os
import zlib
from unittest.mock import Mock

import pytest
import requests

from logpush_loki.services.forwarder import ForwarderConfig, LokiForwarder

TEST_PUSH_URL = 'https://loki.example.com/loki/api/v1/push'

# Fixed arrival time used across tests (2024-01-01T00:00:00Z in nanoseconds)
ARRIVAL_NS = 1704067200000 * 1_000_000


@pytest.fixture
def environment_variables():
    """Set up test environment variables."""
    test_env = {
        'LOKI_PUSH_URL': TEST_PUSH_URL,
        'LOKI_PUSH_TIMEOUT': '5',
        'LOG_LEVEL': 'DEBUG'
    }

    # Store original values
    original_env = {}
    for key, value in test_env.items():
        original_env[key] = os.environ.get(key)
        os.environ[key] = value

    yield test_env

    # Restore original values
    for key, value in original_env.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


@pytest.fixture
def arrival_ns():
    return ARRIVAL_NS


@pytest.fixture
def gzip_text():
    """Compress text the way Logpush does (gzip framing, latin-1 bytes)"""
    def _compress(text: str) -> bytes:
        return gzip.compress(text.encode('latin-1'))
    return _compress


@pytest.fixture
def zlib_text():
    def _compress(text: str) -> bytes:
        return zlib.compress(text.encode('latin-1'))
    return _compress


@pytest.fixture
def logpush_lines():
    """Two Logpush http_requests records as newline-delimited JSON"""
    return (
        '{"EdgeStartTimestamp":1704067200123456789,"ClientIP":"192.0.2.1","EdgeResponseStatus":200}\n'
        '{"EdgeStartTimestamp":1704067201000000000,"ClientIP":"192.0.2.2","EdgeResponseStatus":404}\n'
    )


@pytest.fixture
def backend_response():
    """Factory for fake Loki responses"""
    def _response(status_code: int = 204, body: bytes = b'') -> requests.Response:
        response = requests.Response()
        response.status_code = status_code
        response._content = body
        response.url = TEST_PUSH_URL
        return response
    return _response


@pytest.fixture
def mock_session(backend_response):
    """A requests session whose post returns an empty 204"""
    session = Mock(spec=requests.Session)
    session.post.return_value = backend_response()
    return session


@pytest.fixture
def forwarder(mock_session):
    """A forwarder bound to the test endpoint with a mocked session"""
    return LokiForwarder(ForwarderConfig(push_url=TEST_PUSH_URL), session_factory=lambda: mock_session)

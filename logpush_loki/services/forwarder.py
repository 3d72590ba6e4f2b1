"""
Delivery of Loki push payloads over HTTP
"""

import logging
from typing import Any, Callable, Optional

import requests
from pydantic import BaseModel, Field

from logpush_loki.models.records import IngestionPayload
from logpush_loki.services.errors import ForwardError

logger = logging.getLogger(__name__)

ResponseHook = Callable[[requests.Response, Any], None]
SessionFactory = Callable[[], requests.Session]


class ForwarderConfig(BaseModel):
    """Where and how to push batches"""
    push_url: Optional[str] = Field(default=None, description="Loki push endpoint, e.g. https://host/loki/api/v1/push")
    timeout: Optional[float] = Field(default=None, gt=0, description="Request timeout in seconds, None for no timeout")


def read_response_body(response: requests.Response) -> Any:
    """Parse a backend response body as JSON, or None if it is empty or not JSON"""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        logger.debug(f"Backend response body is not JSON ({len(response.content)} bytes)")
        return None


def log_backend_response(response: requests.Response, body: Any) -> None:
    """Default diagnostic hook: record what the backend said"""
    if response.ok:
        logger.info(f"Loki responded {response.status_code}: {body}")
    else:
        logger.warning(f"Loki rejected batch with {response.status_code}: {body if body is not None else response.text[:500]}")


class LokiForwarder:
    """
    Pushes payloads to a configured Loki endpoint with the caller's credential

    Each forward call opens and closes its own session, so cookies and
    connections never carry over from one caller's push to another's.
    """

    def __init__(
        self,
        config: ForwarderConfig,
        session_factory: Optional[SessionFactory] = None,
        on_response: Optional[ResponseHook] = log_backend_response
    ):
        self.config = config
        self.session_factory = session_factory or requests.Session
        self.on_response = on_response

    def forward(self, payload: IngestionPayload, credential: str) -> requests.Response:
        """
        POST a payload to the Loki push endpoint

        Args:
            payload: Payload to deliver
            credential: Authorization header value, sent verbatim

        Returns:
            The backend response, unmodified. Its status code is not interpreted.

        Raises:
            ForwardError: If no endpoint is configured or the request cannot complete
        """
        if not self.config.push_url:
            logger.error("Cannot forward batch: LOKI_PUSH_URL is not configured")
            raise ForwardError("backend endpoint is not configured")

        logger.info(f"Forwarding {payload.entry_count} entries to {self.config.push_url}")

        session = self.session_factory()
        try:
            response = session.post(
                self.config.push_url,
                json=payload.to_loki(),
                headers={
                    'Authorization': credential,
                    'Content-Type': 'application/json'
                },
                timeout=self.config.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Failed to reach Loki at {self.config.push_url}: {str(e)}")
            raise ForwardError("failed to reach log backend")
        finally:
            session.close()

        self._notify(response)
        return response

    def _notify(self, response: requests.Response) -> None:
        if self.on_response is None:
            return
        try:
            self.on_response(response, read_response_body(response))
        except Exception as e:
            logger.warning(f"Response hook failed: {str(e)}")

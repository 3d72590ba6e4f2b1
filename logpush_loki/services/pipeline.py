"""
The decode -> transform -> forward pipeline for one pushed batch
"""

import logging
from typing import Optional

from pydantic import BaseModel

from logpush_loki.models.records import RawBatch
from logpush_loki.services.decoder import decode
from logpush_loki.services.forwarder import LokiForwarder
from logpush_loki.services.transformer import arrival_time_ns, transform

logger = logging.getLogger(__name__)


class PipelineResult(BaseModel):
    """Outcome of a forwarded batch"""
    entries: int
    job: str
    backend_status: int


def process_batch(
    batch: RawBatch,
    credential: str,
    forwarder: LokiForwarder,
    arrival_ns: Optional[int] = None
) -> PipelineResult:
    """
    Decode, transform and forward one batch

    Args:
        batch: The pushed request body and its metadata
        credential: Authorization header value passed through to Loki
        forwarder: Forwarder bound to the backend endpoint
        arrival_ns: Fallback timestamp; taken from the wall clock when omitted

    Returns:
        PipelineResult describing the forwarded batch

    Raises:
        DecodeError: If the body cannot be decoded; nothing is forwarded
        ForwardError: If the backend cannot be reached
    """
    if arrival_ns is None:
        arrival_ns = arrival_time_ns()

    records = decode(batch.body, batch.declared_encoding)
    payload = transform(records, batch.job_label, arrival_ns)
    response = forwarder.forward(payload, credential)

    stream = payload.streams[0]
    return PipelineResult(
        entries=len(stream.entries),
        job=stream.labels['job'],
        backend_status=response.status_code
    )

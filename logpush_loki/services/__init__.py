"""
Decode, transform and forward services for the ingestion pipeline
"""

from logpush_loki.services.errors import LogpushError, DecodeError, ForwardError

__all__ = ['LogpushError', 'DecodeError', 'ForwardError']

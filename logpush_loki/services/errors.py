"""
Exception classes raised by the ingestion pipeline
"""


class LogpushError(Exception):
    """Base class for pipeline failures that map to a caller-visible message"""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class DecodeError(LogpushError):
    """Raised when the request body cannot be decompressed or parsed"""
    pass


class ForwardError(LogpushError):
    """Raised when the batch cannot be delivered to the Loki backend"""
    pass

"""
Pydantic models for log batches moving through the decode/transform/forward pipeline
"""

from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class RawBatch(BaseModel):
    """A single pushed request body, as received"""
    model_config = ConfigDict(frozen=True)

    body: bytes = Field(..., description="Raw request body")
    declared_encoding: Optional[str] = Field(default=None, description="Value of the content-encoding header")
    job_label: Optional[str] = Field(default=None, description="Value of the job query parameter")


class Line(BaseModel):
    """One raw text line from a decompressed newline-delimited body"""
    model_config = ConfigDict(frozen=True)

    text: str


class Document(BaseModel):
    """The whole request body parsed as one JSON document"""
    model_config = ConfigDict(frozen=True)

    value: Any = None


LogRecord = Union[Line, Document]


class TimestampedEntry(BaseModel):
    """A log line paired with its nanosecond timestamp"""
    model_config = ConfigDict(frozen=True)

    timestamp_ns: int = Field(..., ge=0, description="Nanoseconds since the Unix epoch")
    line: str = Field(..., description="Log line text")

    def to_loki(self) -> Tuple[str, str]:
        return str(self.timestamp_ns), self.line


class LogStream(BaseModel):
    """Entries sharing one label set"""
    model_config = ConfigDict(frozen=True)

    labels: Dict[str, str] = Field(..., description="Stream labels, e.g. {'job': 'cloudflare_logpush'}")
    entries: Tuple[TimestampedEntry, ...] = Field(default=(), description="Entries in source order")

    def to_loki(self) -> Dict[str, Any]:
        return {
            'stream': dict(self.labels),
            'values': [list(entry.to_loki()) for entry in self.entries]
        }


class IngestionPayload(BaseModel):
    """Loki push request body"""
    model_config = ConfigDict(frozen=True)

    streams: Tuple[LogStream, ...] = Field(..., min_length=1)

    @property
    def entry_count(self) -> int:
        return sum(len(stream.entries) for stream in self.streams)

    def to_loki(self) -> Dict[str, Any]:
        """
        Render the payload in the Loki JSON push format

        Returns:
            Dictionary of the form {"streams": [{"stream": {...}, "values": [["<ns>", "<line>"], ...]}]}
        """
        return {'streams': [stream.to_loki() for stream in self.streams]}

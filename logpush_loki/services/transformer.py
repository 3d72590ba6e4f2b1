"""
Mapping of decoded log records onto the Loki push payload
"""

import json
import logging
import re
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from logpush_loki.models.records import (
    Document, IngestionPayload, Line, LogRecord, LogStream, TimestampedEntry
)

logger = logging.getLogger(__name__)

DEFAULT_JOB_LABEL = 'cloudflare_logpush'

# Logpush field carrying the edge request start time
EDGE_TIMESTAMP_FIELD = 'EdgeStartTimestamp'

NANOS_PER_SECOND = 1_000_000_000
NANOS_PER_MILLI = 1_000_000

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

RFC3339_PATTERN = re.compile(
    r'^(?P<base>\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2})'
    r'(?:\.(?P<fraction>\d+))?'
    r'(?P<offset>[Zz]|[+-]\d{2}:\d{2})?$'
)


def arrival_time_ns() -> int:
    """
    Current wall clock time in nanoseconds, at millisecond precision

    Computed once per request and used for every entry without its own timestamp.
    """
    return int(time.time() * 1000) * NANOS_PER_MILLI


def resolve_job_label(job_label: Optional[str]) -> str:
    return job_label if job_label else DEFAULT_JOB_LABEL


def parse_rfc3339_ns(value: str) -> Optional[int]:
    """
    Convert an RFC 3339 timestamp string to nanoseconds since the epoch

    Fractional seconds are kept to nanosecond precision. A value without an
    offset is taken as UTC.

    Returns:
        Nanoseconds since the epoch, or None if the string is not RFC 3339
        or falls before the epoch
    """
    match = RFC3339_PATTERN.match(value.strip())
    if not match:
        return None

    offset = match.group('offset') or '+00:00'
    if offset in ('Z', 'z'):
        offset = '+00:00'

    base = match.group('base').replace('t', 'T').replace(' ', 'T')
    try:
        dt = datetime.fromisoformat(base + offset)
    except ValueError:
        return None

    seconds = (dt - EPOCH) // timedelta(seconds=1)
    fraction = (match.group('fraction') or '')[:9].ljust(9, '0')
    nanos = seconds * NANOS_PER_SECOND + int(fraction)
    return nanos if nanos >= 0 else None


def coerce_timestamp_ns(value: Any) -> Optional[int]:
    """
    Interpret an EdgeStartTimestamp value as nanoseconds since the epoch

    Handles Logpush's unixnano integers, digit strings and RFC 3339 strings.
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value if value >= 0 else None

    if isinstance(value, float):
        if value.is_integer() and value >= 0:
            return int(value)
        return None

    if isinstance(value, str):
        stripped = value.strip()
        if stripped.isdigit():
            return int(stripped)
        return parse_rfc3339_ns(stripped)

    return None


def extract_edge_timestamp(line: str) -> Optional[int]:
    """
    Read EdgeStartTimestamp from a line holding a JSON object

    A zero timestamp counts as missing.

    Returns:
        Timestamp in nanoseconds, or None when the line is not a JSON object
        or carries no usable timestamp
    """
    # Quick check before paying for a full parse
    if not line.lstrip().startswith('{'):
        return None

    try:
        parsed = json.loads(line)
    except (ValueError, RecursionError):
        return None

    if not isinstance(parsed, dict) or EDGE_TIMESTAMP_FIELD not in parsed:
        return None

    return coerce_timestamp_ns(parsed[EDGE_TIMESTAMP_FIELD]) or None


def serialize_document(value: Any) -> str:
    """Compact JSON text for a parsed document"""
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False)


def to_entry(record: LogRecord, arrival_ns: int) -> TimestampedEntry:
    if isinstance(record, Document):
        return TimestampedEntry(timestamp_ns=arrival_ns, line=serialize_document(record.value))

    if isinstance(record, Line):
        timestamp = extract_edge_timestamp(record.text)
        return TimestampedEntry(
            timestamp_ns=arrival_ns if timestamp is None else timestamp,
            line=record.text
        )

    raise TypeError(f"Unsupported log record type: {type(record).__name__}")


def transform(records: Iterable[LogRecord], job_label: Optional[str], arrival_ns: int) -> IngestionPayload:
    """
    Build the Loki push payload for one decoded batch

    Args:
        records: Decoded records in source order
        job_label: Job label from the request, if any
        arrival_ns: Fallback timestamp for entries without their own

    Returns:
        Payload with exactly one stream labelled with the job
    """
    entries = tuple(to_entry(record, arrival_ns) for record in records)
    job = resolve_job_label(job_label)

    logger.debug(f"Built stream job={job} with {len(entries)} entries")

    return IngestionPayload(streams=(LogStream(labels={'job': job}, entries=entries),))

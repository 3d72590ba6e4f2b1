"""
Request body decoding for pushed log batches

Gzip bodies are newline-delimited text and decode to one Line per line.
Any other body is a single JSON document and decodes to one Document.
"""

import gzip
import json
import logging
import zlib
from typing import List, Optional

from logpush_loki.models.records import Document, Line, LogRecord
from logpush_loki.services.errors import DecodeError

logger = logging.getLogger(__name__)

GZIP_ENCODING = 'gzip'

GZIP_MAGIC = b'\x1f\x8b'


def is_gzip_encoding(declared_encoding: Optional[str]) -> bool:
    """Check whether a content-encoding header value names gzip"""
    if not declared_encoding:
        return False
    return declared_encoding.strip().lower() == GZIP_ENCODING


def decompress_body(body: bytes) -> bytes:
    """
    Inflate a gzip (or zlib) compressed body

    Concatenated gzip members are all read. Trailing bytes that are not
    another gzip member are rejected.

    Args:
        body: Compressed bytes

    Returns:
        Decompressed bytes

    Raises:
        DecodeError: If the stream is malformed or truncated
    """
    try:
        if body[:2] == GZIP_MAGIC:
            return gzip.decompress(body)
        return inflate_zlib(body)
    except (OSError, EOFError, zlib.error) as e:
        # BadGzipFile is an OSError; a truncated member raises EOFError
        logger.warning(f"Failed to decompress body of {len(body)} bytes: {str(e)}")
        raise DecodeError("invalid compressed payload")


def inflate_zlib(body: bytes) -> bytes:
    """Inflate one zlib-framed stream, rejecting truncation and trailing bytes"""
    decompressor = zlib.decompressobj(zlib.MAX_WBITS)
    data = decompressor.decompress(body)
    data += decompressor.flush()

    if not decompressor.eof:
        raise EOFError("zlib stream ended before the end of stream marker")
    if decompressor.unused_data:
        raise zlib.error(f"{len(decompressor.unused_data)} trailing bytes after zlib stream")

    return data


def split_lines(data: bytes) -> List[Line]:
    """
    Split decompressed bytes into lines

    Bytes are mapped one-to-one onto characters (latin-1) rather than decoded
    as UTF-8. A trailing empty line after a final newline is kept.
    """
    text = data.decode('latin-1')
    return [Line(text=line) for line in text.split('\n')]


def parse_document(body: bytes) -> Document:
    """Parse the whole body as a single JSON document"""
    try:
        return Document(value=json.loads(body))
    except (ValueError, RecursionError) as e:
        # JSONDecodeError and UnicodeDecodeError are both ValueErrors;
        # RecursionError comes from pathologically deep nesting
        logger.warning(f"Failed to parse body of {len(body)} bytes as JSON: {str(e)}")
        raise DecodeError("invalid json payload")


def decode(body: bytes, declared_encoding: Optional[str] = None) -> List[LogRecord]:
    """
    Decode a request body into an ordered list of log records

    Args:
        body: Raw request body
        declared_encoding: content-encoding header value, if any

    Returns:
        List of Line records for gzip bodies, or a single Document otherwise

    Raises:
        DecodeError: If decompression or JSON parsing fails
    """
    if is_gzip_encoding(declared_encoding):
        data = decompress_body(body)
        records = split_lines(data)
        logger.debug(f"Decompressed {len(body)} bytes to {len(data)} bytes, {len(records)} lines")
        return records

    document = parse_document(body)
    logger.debug(f"Parsed {len(body)} byte body as a single JSON document")
    return [document]

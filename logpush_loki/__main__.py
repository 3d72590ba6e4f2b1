"""
Standalone entry point
Supports serving the HTTP adapter and a manual input mode for development
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from logpush_loki.models.records import RawBatch
from logpush_loki.services.decoder import decode
from logpush_loki.services.errors import LogpushError
from logpush_loki.services.forwarder import LokiForwarder
from logpush_loki.services.pipeline import process_batch
from logpush_loki.services.transformer import arrival_time_ns, transform
from logpush_loki.utils.config import load_settings
from logpush_loki.utils.logger import setup_logging

logger = logging.getLogger(__name__)


def serve_mode(host: str, port: int) -> None:
    """Run the HTTP adapter with uvicorn"""
    import uvicorn
    from logpush_loki.app import app

    uvicorn.run(app, host=host, port=port)


def manual_input_mode(args: argparse.Namespace) -> int:
    """
    Manual input mode for development/testing
    Reads one batch from a file or stdin and runs it through the pipeline
    """
    if args.file:
        with open(args.file, 'rb') as f:
            body = f.read()
    else:
        logger.debug("Manual input mode - reading batch from stdin")
        body = sys.stdin.buffer.read()

    batch = RawBatch(body=body, declared_encoding=args.encoding, job_label=args.job)

    try:
        if args.dry_run:
            payload = transform(decode(batch.body, batch.declared_encoding), batch.job_label, arrival_time_ns())
            json.dump(payload.to_loki(), sys.stdout)
            sys.stdout.write('\n')
            return 0

        if not args.credential:
            logger.error("--credential is required unless --dry-run is given")
            return 1

        settings = load_settings()
        result = process_batch(batch, args.credential, LokiForwarder(settings.forwarder))
        logger.info(f"Forwarded {result.entries} entries for job={result.job}, backend status {result.backend_status}")
        return 0

    except LogpushError as e:
        logger.error(f"Error processing manual input: {e.reason}")
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for standalone execution
    """
    parser = argparse.ArgumentParser(description='Cloudflare Logpush to Loki adapter')
    parser.add_argument('--mode', choices=['serve', 'manual'], default='serve',
                        help='Execution mode: serve (HTTP adapter) or manual (one batch from file/stdin)')
    parser.add_argument('--host', default='0.0.0.0', help='Bind address for serve mode')
    parser.add_argument('--port', type=int, default=8000, help='Port for serve mode')
    parser.add_argument('--encoding', default=None, help='Content encoding of the batch, e.g. gzip')
    parser.add_argument('--job', default=None, help='Job label for the Loki stream')
    parser.add_argument('--credential', default=None, help='Authorization header value for Loki')
    parser.add_argument('--dry-run', action='store_true', help='Print the Loki payload instead of forwarding it')
    parser.add_argument('file', nargs='?', default=None, help='Batch file (defaults to stdin)')

    args = parser.parse_args(argv)
    setup_logging()

    if args.mode == 'serve':
        serve_mode(args.host, args.port)
        return 0

    return manual_input_mode(args)


if __name__ == '__main__':
    sys.exit(main())

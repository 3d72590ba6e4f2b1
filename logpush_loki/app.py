"""
HTTP entry point: receives Logpush batches and relays them to Loki
"""

from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from mangum import Mangum
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from logpush_loki import __version__
from logpush_loki.handlers.health import get_health_status
from logpush_loki.models.records import RawBatch
from logpush_loki.models.responses import (
    error_response, internal_error_response, method_not_allowed_response,
    success_response, unauthenticated_response
)
from logpush_loki.services.errors import DecodeError, ForwardError
from logpush_loki.services.forwarder import LokiForwarder
from logpush_loki.services.pipeline import process_batch
from logpush_loki.utils.config import load_settings
from logpush_loki.utils.logger import setup_logging

settings = load_settings()

# Set up logging
logger = setup_logging(settings.log_level)

app = FastAPI(
    title="Logpush to Loki Adapter",
    description="Receives Cloudflare Logpush batches and forwards them to a Loki push endpoint",
    version=__version__,
    docs_url=None,
    redoc_url=None
)

if not settings.loki_push_url:
    logger.warning("LOKI_PUSH_URL is not set; batches will be rejected until it is configured")

forwarder = LokiForwarder(settings.forwarder)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    """Answer methods outside ALL_METHODS (TRACE, WebDAV verbs, ...) with the same envelope"""
    if exc.status_code == 405:
        logger.info(f"Rejecting {request.method} {request.url.path}: only POST is accepted")
        return method_not_allowed_response()
    return await http_exception_handler(request, exc)


@app.get("/health")
async def health_check():
    """Health check endpoint - no authentication required"""
    return get_health_status(settings)


@app.api_route("/{path:path}", methods=ALL_METHODS)
async def ingest_logs(request: Request, path: str):
    """Accept a pushed batch on any path and forward it to Loki"""
    if request.method != "POST":
        logger.info(f"Rejecting {request.method} /{path}: only POST is accepted")
        return method_not_allowed_response()

    credential = request.headers.get("authorization")
    if not credential:
        logger.info(f"Rejecting POST /{path}: missing authorization header")
        return unauthenticated_response()

    batch = RawBatch(
        body=await request.body(),
        declared_encoding=request.headers.get("content-encoding"),
        job_label=request.query_params.get("job")
    )

    try:
        # requests is blocking; keep it off the event loop
        result = await run_in_threadpool(process_batch, batch, credential, forwarder)
    except DecodeError as e:
        logger.warning(f"Rejecting batch on /{path}: {e.reason}")
        return error_response(e.reason, status_code=400)
    except ForwardError as e:
        logger.error(f"Failed to forward batch on /{path}: {e.reason}")
        return error_response(e.reason, status_code=502)
    except Exception as e:
        logger.error(f"Unexpected error processing batch on /{path}: {str(e)}", exc_info=True)
        return internal_error_response()

    logger.info(f"Forwarded {result.entries} entries for job={result.job}, backend status {result.backend_status}")
    return success_response()


# Lambda handler using Mangum
def lambda_handler(event: Dict[str, Any], context) -> Dict[str, Any]:
    """
    AWS Lambda handler using Mangum to adapt FastAPI to Lambda

    Args:
        event: API Gateway or function URL event
        context: Lambda context

    Returns:
        API Gateway response
    """
    handler = Mangum(app, lifespan="off")
    return handler(event, context)

"""
Request context for logs.

Every request gets a request id (taken from ``X-Request-ID`` when the caller
sends one) bound into the structlog context. Gateway deliveries also carry
the provider id so every event of a callback can be grouped.
"""
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from structlog.contextvars import bind_contextvars, clear_contextvars

from .logging_config import get_logger

logger = get_logger(__name__)

WEBHOOK_PREFIX = "/v1/webhooks/"


async def request_context_middleware(request: Request, call_next: Callable) -> Response:
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    path = request.url.path

    clear_contextvars()
    bind_contextvars(request_id=request_id, path=path)
    if path.startswith(WEBHOOK_PREFIX):
        bind_contextvars(provider_id=path[len(WEBHOOK_PREFIX):].strip("/"))

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("request_failed", duration_ms=round((time.perf_counter() - started) * 1000, 2))
        raise
    else:
        logger.info(
            "request_completed",
            method=request.method,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        clear_contextvars()

"""Request latency logging middleware."""

import logging
import time
from typing import Callable

from fastapi import Request, Response

logger = logging.getLogger(__name__)

SLOW_REQUEST_THRESHOLD_MS = 1000
HEALTH_PATHS = ("/health", "/health/ready")


async def request_logging_middleware(request: Request, call_next: Callable) -> Response:
    """Log method, path, status and latency of every request.

    Slow requests and client errors log as warnings, server errors as
    errors. Health probes log at debug level.

    Args:
        request: The incoming request.
        call_next: The next middleware/handler in the chain.

    Returns:
        Response: The response from the handler.
    """
    start_time = time.perf_counter()
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        latency_ms = (time.perf_counter() - start_time) * 1000
        status_code = response.status_code if response else 500
        log_msg = f"{request.method} {request.url.path} - {status_code} - {latency_ms:.2f}ms"
        log_data = {
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "latency_ms": round(latency_ms, 2),
        }

        if request.url.path in HEALTH_PATHS:
            logger.debug(log_msg, extra=log_data)
        elif status_code >= 500:
            logger.error(log_msg, extra=log_data)
        elif latency_ms > SLOW_REQUEST_THRESHOLD_MS:
            logger.warning("SLOW REQUEST: %s", log_msg, extra=log_data)
        elif status_code >= 400:
            logger.warning(log_msg, extra=log_data)
        else:
            logger.info(log_msg, extra=log_data)

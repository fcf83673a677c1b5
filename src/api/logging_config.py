"""Logging configuration for the FastAPI application.

Log records are emitted as one JSON object per line so they can be shipped to
a log aggregator unchanged. Context passed through ``extra=`` becomes
top-level keys of the object.
"""

import json
import logging
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"

# Attributes every LogRecord has; anything else was passed via ``extra``
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application-wide logging with JSON formatting.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(JSONFormatter())
    logger.addHandler(console_handler)

    # Requests are already logged by RequestLoggingMiddleware
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with its status and duration.

    An incoming ``X-Request-ID`` header is reused; otherwise a new id is
    generated. Either way it is echoed back on the response.
    """

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        start_time = time.perf_counter()
        logger = logging.getLogger("src.api.requests")

        context = {
            "request_id": request_id,
            "method": request.method,
            "path": str(request.url.path),
        }
        logger.info(
            "Incoming request",
            extra={
                **context,
                "query_params": str(request.query_params),
                "client_host": request.client.host if request.client else None,
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                extra={
                    **context,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
                },
                exc_info=True,
            )
            raise

        logger.info(
            "Request completed",
            extra={
                **context,
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
            },
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

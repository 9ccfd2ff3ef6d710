"""
Structured logging for the API and the note pipeline

Every record is one JSON line. Request handlers bind a request id with
``bind_request`` so pipeline events (generation attempts, embedding calls)
can be joined back to the HTTP request that caused them.
"""
import functools
import logging
import os
import sys
import time
import uuid

import structlog

QUIET_LOGGERS = ("sqlalchemy", "urllib3", "httpx", "openai", "multipart")


def configure_logging():
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = None):
    return structlog.get_logger(name)


def bind_request(request) -> str:
    """Start a fresh log context for one HTTP request and return its id."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    return request_id


def log_performance(operation: str):
    """Decorator: log duration and outcome of a pipeline operation"""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger("performance")
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    "operation_failed",
                    operation=operation,
                    duration_seconds=round(time.perf_counter() - start, 4),
                    error_type=type(e).__name__,
                    error=str(e),
                )
                raise
            logger.info(
                "operation_completed",
                operation=operation,
                duration_seconds=round(time.perf_counter() - start, 4),
            )
            return result
        return wrapper
    return decorator


def log_api_request(request, response=None, error=None, duration=None):
    logger = get_logger("api")

    # path only; query strings and headers may carry credentials
    log_data = {
        "method": request.method,
        "path": request.url.path,
        "client_ip": request.client.host if request.client else "unknown",
    }

    if response is not None:
        logger.info("api_request_completed", status_code=response.status_code,
                    duration_seconds=duration, **log_data)
    elif error is not None:
        logger.error("api_request_failed", error_type=type(error).__name__,
                     error=str(error), **log_data)
    else:
        logger.info("api_request_started", **log_data)

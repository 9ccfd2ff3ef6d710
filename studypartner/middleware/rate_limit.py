"""
Rate limiting using slowapi
"""
import os

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
import structlog

logger = structlog.get_logger()

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000/hour", "100/minute"],
    enabled=os.getenv("RATE_LIMIT_ENABLED", "1") != "0",
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Answer 429 with the limit that was hit"""
    client = request.client.host if request.client else "unknown"
    logger.warning("rate_limit_exceeded", client_ip=client, limit=str(exc.detail))
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}. Please try again later."},
    )


def generation_limit():
    """Rate limit for study material generation endpoints"""
    return limiter.limit(os.getenv("GENERATION_RATE_LIMIT", "5/minute"))


def upload_limit():
    """Rate limit for uploads, which may call the embedding backend"""
    return limiter.limit(os.getenv("UPLOAD_RATE_LIMIT", "30/minute"))


def search_limit():
    """Rate limit for note search, which may embed the query"""
    return limiter.limit(os.getenv("SEARCH_RATE_LIMIT", "30/minute"))

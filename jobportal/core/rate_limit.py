"""
Simple in-memory rate limiter for public and credential endpoints.
"""
import logging
import time
from collections import defaultdict
from typing import Dict
from fastapi import Request, HTTPException, status

from jobportal.core.config import RATE_LIMIT_WINDOW_SECONDS

logger = logging.getLogger(__name__)

# Store for rate limit tracking: {"<scope>:<ip>": [timestamps]}
rate_limit_store: Dict[str, list] = defaultdict(list)


def get_client_ip(request: Request) -> str:
    """Extract client IP address from request."""
    # Check for forwarded IP (from proxy/load balancer)
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take the first IP in the chain
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"


def check_rate_limit(
    request: Request,
    scope: str,
    max_requests: int = 10,
    window_seconds: int = RATE_LIMIT_WINDOW_SECONDS
) -> None:
    """
    Check if client has exceeded rate limit for a scope.

    Args:
        request: FastAPI request object
        scope: Bucket name, so login and coupon checks are counted apart
        max_requests: Maximum number of requests allowed
        window_seconds: Time window in seconds

    Raises:
        HTTPException: 429 if rate limit exceeded
    """
    key = f"{scope}:{get_client_ip(request)}"
    now = time.time()

    # Clean old entries (older than window)
    cutoff = now - window_seconds
    rate_limit_store[key] = [
        timestamp for timestamp in rate_limit_store[key]
        if timestamp > cutoff
    ]

    request_count = len(rate_limit_store[key])

    if request_count >= max_requests:
        logger.warning(f"Rate limit exceeded: key={key} ({request_count} requests in {window_seconds}s)")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Rate limit exceeded. Maximum {max_requests} requests per {window_seconds} seconds."
        )

    rate_limit_store[key].append(now)


def rate_limited(scope: str, max_requests: int):
    """Dependency factory wrapping check_rate_limit for a route."""

    def limiter(request: Request) -> None:
        check_rate_limit(request, scope, max_requests=max_requests)

    return limiter

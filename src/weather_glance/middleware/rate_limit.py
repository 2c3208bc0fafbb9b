"""Rate limiting middleware."""

import logging
from typing import Callable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from weather_glance.config import RATE_LIMIT_ENABLED
from weather_glance.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject clients that exceed the per-client request rate with HTTP 429."""

    # Paths that should bypass rate limiting
    BYPASS_PATHS = {
        "/weather/health",
        "/weather/info",
        "/docs",
        "/redoc",
        "/openapi.json",
        "/favicon.ico",
    }

    def __init__(
        self,
        app,
        calls: int = 20,
        enabled: bool = RATE_LIMIT_ENABLED,
        rate_limiter: Optional[RateLimiter] = None
    ):
        """Initialize rate limit middleware.

        Args:
            app: FastAPI application instance
            calls: Maximum requests per second for each client
            enabled: Turn limiting on or off
            rate_limiter: Limiter to use (a Redis backed one by default)
        """
        super().__init__(app)
        self.enabled = enabled
        self.rate_limiter = (rate_limiter or RateLimiter(max_requests=calls)) if enabled else None
        logger.info(f"Rate limit enabled: {self.enabled}, limit: {calls} req/sec per client")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request through rate limiting check.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/endpoint in chain

        Returns:
            HTTP response (either rate limit error or continued response)
        """
        if not self.enabled or request.url.path in self.BYPASS_PATHS:
            return await call_next(request)

        client_id = request.client.host if request.client else "unknown"
        is_allowed, retry_after = await self.rate_limiter.is_allowed(client_id)

        if not is_allowed:
            logger.warning(f"Rate limit exceeded for {client_id} accessing {request.method} {request.url.path}")
            return JSONResponse(
                status_code=429,
                content={
                    "detail": "Rate limit exceeded. Please try again later.",
                    "retry_after": retry_after
                },
                headers={"Retry-After": str(retry_after)}
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.rate_limiter.max_requests)
        return response

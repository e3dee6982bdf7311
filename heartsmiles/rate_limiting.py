"""In-memory rate limiting for the HeartSmiles API."""

import math
import threading
import time
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable

from fastapi import HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from .config import Settings
from .metrics import record_rate_limited
from .request_utils import get_client_ip


class RateLimiter:
    """In-memory rate limiter using a sliding window per client."""

    def __init__(
        self,
        window_seconds: int,
        max_requests: int,
        message: str,
        exempt_paths: Iterable[str] = (),
        trusted_hops: int = 1,
        clock: Callable[[], float] = time.time,
    ):
        # Store request timestamps for each client
        self._requests: dict[str, list[float]] = defaultdict(list)
        self._lock = threading.Lock()
        self._clock = clock
        self._last_sweep = clock()
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.message = message
        self.exempt_paths = frozenset(exempt_paths)
        self.trusted_hops = trusted_hops
        # Flag to disable rate limiting (for testing)
        self._enabled: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "RateLimiter":
        return cls(
            window_seconds=settings.rate_limit_window_seconds,
            max_requests=settings.rate_limit_max_requests,
            message=settings.rate_limit_message,
            exempt_paths=settings.rate_limit_exempt_paths,
            trusted_hops=settings.trusted_proxy_hops,
        )

    def disable(self) -> None:
        """Disable rate limiting (for testing)."""
        self._enabled = False

    def enable(self) -> None:
        """Enable rate limiting."""
        self._enabled = True

    def reset(self) -> None:
        """Reset all rate limiting data."""
        with self._lock:
            self._requests.clear()

    def get_request_count(self, client_id: str) -> int:
        """Get current request count for a client (for testing)."""
        with self._lock:
            self._clean_old_requests(client_id)
            return len(self._requests.get(client_id, []))

    def add_request_timestamp(self, client_id: str, timestamp: float) -> None:
        """Add a request timestamp for testing purposes."""
        with self._lock:
            self._requests[client_id].append(timestamp)

    def is_exempt(self, request: Request) -> bool:
        """Check whether the request path bypasses rate limiting."""
        return not self._enabled or request.url.path in self.exempt_paths

    def client_id(self, request: Request) -> str:
        return get_client_ip(request, self.trusted_hops)

    def get_rate_limit_info(self, client_id: str) -> tuple[int, int, int]:
        """Get rate limit information for a client.

        Args:
            client_id: Client identity

        Returns:
            Tuple of (limit, remaining, seconds_until_reset)
        """
        with self._lock:
            self._clean_old_requests(client_id)
            timestamps = self._requests.get(client_id, [])
            remaining = max(0, self.max_requests - len(timestamps))
            return self.max_requests, remaining, self._seconds_until_reset(timestamps)

    def _seconds_until_reset(self, timestamps: list[float]) -> int:
        """Seconds until the oldest request in the window expires."""
        if not timestamps:
            return self.window_seconds
        expires_at = timestamps[0] + self.window_seconds
        return max(1, math.ceil(expires_at - self._clock()))

    def tracked_clients(self) -> int:
        """Number of clients with requests inside the window bookkeeping."""
        with self._lock:
            return len(self._requests)

    def _sweep_expired(self) -> None:
        """Drop every client whose requests all fell out of the window.

        Runs at most once per window, so clients that never return do not
        stay in memory.
        """
        now = self._clock()
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        cutoff_time = now - self.window_seconds
        expired = [
            client_id
            for client_id, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= cutoff_time
        ]
        for client_id in expired:
            del self._requests[client_id]

    def _clean_old_requests(self, client_id: str) -> None:
        """Remove requests older than the time window."""
        if client_id not in self._requests:
            return
        cutoff_time = self._clock() - self.window_seconds
        recent = [
            timestamp
            for timestamp in self._requests[client_id]
            if timestamp > cutoff_time
        ]
        if recent:
            self._requests[client_id] = recent
        else:
            del self._requests[client_id]

    def check_rate_limit(self, request: Request) -> None:
        """Record the request, or raise if the client is over its limit.

        Checking and recording happen under one lock so concurrent bursts
        from the same client cannot slip past the limit.
        """
        if self.is_exempt(request):
            return

        client_ip = self.client_id(request)

        with self._lock:
            self._sweep_expired()
            self._clean_old_requests(client_ip)
            timestamps = self._requests[client_ip]
            current_requests = len(timestamps)

            if current_requests >= self.max_requests:
                retry_after = self._seconds_until_reset(timestamps)
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail={
                        "error": "Too many requests",
                        "message": self.message,
                        "retry_after": retry_after,
                    },
                    headers={
                        "Retry-After": str(retry_after),
                        "RateLimit-Limit": str(self.max_requests),
                        "RateLimit-Remaining": "0",
                        "RateLimit-Reset": str(retry_after),
                    },
                )

            # Record this request
            timestamps.append(self._clock())


async def rate_limit_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Rate limiting middleware for FastAPI."""
    rate_limiter: RateLimiter = request.app.state.rate_limiter

    try:
        rate_limiter.check_rate_limit(request)
    except HTTPException as e:
        record_rate_limited(request.url.path)
        return JSONResponse(
            status_code=e.status_code,
            content=e.detail,
            headers=e.headers or {},
        )

    # Process the request
    response = await call_next(request)

    # Standard RateLimit-* headers on every counted response
    if not rate_limiter.is_exempt(request):
        limit, remaining, reset_after = rate_limiter.get_rate_limit_info(
            rate_limiter.client_id(request)
        )
        response.headers["RateLimit-Limit"] = str(limit)
        response.headers["RateLimit-Remaining"] = str(remaining)
        response.headers["RateLimit-Reset"] = str(reset_after)

    return response

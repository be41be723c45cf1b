# rate_limit.py
# Fixed window per client IP
import logging
import time
from threading import Lock
from typing import Dict, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

# Expired windows are pruned once this many clients are tracked
MAX_TRACKED_CLIENTS = 10000


class RateLimiter:
    """Fixed-window request counter keyed by client address."""

    def __init__(self, max_requests: int, window_seconds: float):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._windows: Dict[str, Tuple[float, int]] = {}  # client -> (window_start, count)
        self._lock = Lock()

    def hit(self, client: str, now: Optional[float] = None) -> bool:
        """Count one request for ``client``; True if it is within the limit."""
        if now is None:
            now = time.monotonic()
        with self._lock:
            start, count = self._windows.get(client, (now, 0))
            if now - start >= self.window_seconds:
                start, count = now, 0
            count += 1
            self._windows[client] = (start, count)
            if len(self._windows) > MAX_TRACKED_CLIENTS:
                self._prune(now)
            return count <= self.max_requests

    def _prune(self, now: float) -> None:
        expired = [
            client for client, (start, _) in self._windows.items()
            if now - start >= self.window_seconds
        ]
        for client in expired:
            del self._windows[client]

    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._windows)


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiter: RateLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next):
        client = request.client.host if request.client else "unknown"
        if not self.limiter.hit(client):
            logger.warning("Rate limit exceeded for %s on %s", client, request.url.path)
            return JSONResponse(
                status_code=429,
                content={"error": "Too many requests"},
                headers={"Retry-After": str(int(self.limiter.window_seconds))},
            )
        return await call_next(request)

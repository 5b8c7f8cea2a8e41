"""Sliding-window limiter guarding the credential endpoints (register, login)."""
import time
from typing import Dict, List, Optional

from fastapi import HTTPException, Request, status

from telecare.core.config import settings


class SlidingWindowLimiter:
    """Request timestamps per key; keys whose window has emptied are dropped."""

    def __init__(self) -> None:
        self._hits: Dict[str, List[float]] = {}

    def allow(self, key: str, max_requests: int, window_seconds: int, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        window_start = now - window_seconds
        recent = [t for t in self._hits.get(key, []) if t > window_start]
        if len(recent) >= max_requests:
            self._hits[key] = recent
            return False
        recent.append(now)
        self._hits[key] = recent
        return True

    def sweep(self, now: Optional[float] = None) -> int:
        """Forget clients with no hits inside the current window."""
        now = time.time() if now is None else now
        window_start = now - settings.RATE_LIMIT_PERIOD_SECONDS
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in stale:
            del self._hits[key]
        return len(stale)

    def reset(self) -> None:
        self._hits.clear()

    def __len__(self) -> int:
        return len(self._hits)


auth_limiter = SlidingWindowLimiter()


def _client_key(request: Request) -> str:
    client = request.client
    host = client.host if client and client.host else "unknown"
    # register and login share one budget per client
    return f"auth:{host}"


async def rate_limit(request: Request):
    if not settings.RATE_LIMIT_ENABLED:
        return True

    now = time.time()
    auth_limiter.sweep(now)
    if not auth_limiter.allow(
        _client_key(request), settings.RATE_LIMIT_REQUESTS, settings.RATE_LIMIT_PERIOD_SECONDS, now=now
    ):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please slow down.",
        )
    return True

import time
from collections import defaultdict, deque
from typing import Deque, Dict, Iterable

import redis
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse


DEFAULT_EXCLUDES = ("/health", "/metrics", "/docs", "/openapi.json")
# Routes under /auth/ share a tighter ceiling regardless of the global limit.
AUTH_LIMIT_PER_MINUTE = 20


def _too_many(retry_after: int) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"error": {"code": "rate_limited", "message": "Too many requests", "details": {"retry_after": retry_after}}},
        headers={"Retry-After": str(retry_after)},
    )


class _LimiterBase(BaseHTTPMiddleware):
    def __init__(self, app, limit_per_minute: int = 60, auth_boost: int = 2, exclude_paths: Iterable[str] | None = None, auth_limit_per_minute: int = AUTH_LIMIT_PER_MINUTE):
        super().__init__(app)
        self.limit_per_minute = limit_per_minute
        self.auth_limit_per_minute = auth_limit_per_minute
        self.auth_boost = auth_boost
        self.exclude_paths = set(exclude_paths or DEFAULT_EXCLUDES)

    def _key(self, request: Request) -> str:
        auth = request.headers.get("authorization")
        if auth:
            return f"token:{auth[-24:]}"
        client = request.client.host if request.client else "unknown"
        return f"ip:{client}"

    def _limit_for(self, request: Request) -> int:
        base = self.limit_per_minute
        if request.url.path.startswith("/auth/"):
            return min(base, self.auth_limit_per_minute)
        if request.headers.get("authorization"):
            base *= self.auth_boost
        return base


class SlidingWindowLimiter(_LimiterBase):
    """Per-process limiter keyed by bearer token or client address."""

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self.window_seconds = 60
        self.store: Dict[str, Deque[float]] = defaultdict(deque)

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.exclude_paths:
            return await call_next(request)
        now = time.time()
        limit = self._limit_for(request)
        dq = self.store[self._key(request)]
        while dq and now - dq[0] > self.window_seconds:
            dq.popleft()
        if len(dq) >= limit:
            return _too_many(max(1, int(self.window_seconds - (now - dq[0]))))
        dq.append(now)
        return await call_next(request)


class RedisRateLimiter(_LimiterBase):
    """Fixed one-minute windows counted in Redis; shared across workers."""

    def __init__(self, app, redis_url: str, prefix: str = "rl_youlin", **kwargs):
        super().__init__(app, **kwargs)
        self.redis = redis.from_url(redis_url, decode_responses=True)
        self.prefix = prefix

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.exclude_paths:
            return await call_next(request)
        now = int(time.time())
        key = f"{self.prefix}:{self._key(request)}:{now // 60}"
        try:
            count = self.redis.incr(key)
            if count == 1:
                self.redis.expire(key, 70)
        except redis.RedisError:
            # fail open
            return await call_next(request)
        if count > self._limit_for(request):
            return _too_many(60 - (now % 60))
        return await call_next(request)

import time

import sentry_sdk
from fastapi import FastAPI, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from youlin_shared import RedisRateLimiter, SlidingWindowLimiter

from .config import settings
from .database import engine
from .errors import AppError, app_error_handler, http_exception_handler, validation_exception_handler
from .middleware_api_key import ApiKeyMiddleware
from .middleware_request_id import RequestIDMiddleware
from .models import Base
from .routers import auth as auth_router
from .routers import cities as cities_router
from .routers import conversations as conversations_router
from .routers import listings as listings_router
from .routers import profile as profile_router


REQ = Counter("http_requests_total", "HTTP requests", ["method", "path", "status"])
REQ_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10),
)


def create_app() -> FastAPI:
    if settings.SENTRY_DSN:
        sentry_sdk.init(dsn=settings.SENTRY_DSN, traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE)
    app = FastAPI(title="Youlin API", version="0.1.0", docs_url="/docs")

    if settings.PUBLIC_API_KEY:
        app.add_middleware(ApiKeyMiddleware, api_key=settings.PUBLIC_API_KEY)

    # CORS wraps the key gate so preflights never need the key
    allowed_origins = settings.ALLOWED_ORIGINS or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate limit
    if settings.RATE_LIMIT_BACKEND.lower() == "redis":
        app.add_middleware(
            RedisRateLimiter,
            redis_url=settings.REDIS_URL,
            limit_per_minute=settings.RATE_LIMIT_PER_MINUTE,
            auth_boost=settings.RATE_LIMIT_AUTH_BOOST,
            auth_limit_per_minute=settings.RATE_LIMIT_AUTH_PER_MINUTE,
            prefix=settings.RATE_LIMIT_REDIS_PREFIX,
        )
    else:
        app.add_middleware(
            SlidingWindowLimiter,
            limit_per_minute=settings.RATE_LIMIT_PER_MINUTE,
            auth_boost=settings.RATE_LIMIT_AUTH_BOOST,
            auth_limit_per_minute=settings.RATE_LIMIT_AUTH_PER_MINUTE,
        )

    # Request ID + JSON logs; wraps the limiters so rejected requests are logged too
    app.add_middleware(RequestIDMiddleware)

    if settings.AUTO_CREATE_SCHEMA:
        Base.metadata.create_all(bind=engine)

    @app.get("/health")
    def health():
        with engine.connect() as conn:
            conn.execute(text("select 1"))
        return {"status": "ok", "env": settings.ENV, "energy_policy": settings.ENERGY_POLICY}

    @app.middleware("http")
    async def _metrics_mw(request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start
        # templated route keeps label cardinality bounded
        route = getattr(request.scope.get("route"), "path", None) or request.url.path
        REQ.labels(request.method, route, str(response.status_code)).inc()
        REQ_DURATION.labels(request.method, route).observe(duration)
        return response

    @app.get("/metrics")
    def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(auth_router.router)
    app.include_router(listings_router.router)
    app.include_router(conversations_router.router)
    app.include_router(profile_router.router)
    app.include_router(cities_router.router)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    return app


app = create_app()

import secrets

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse


OPEN_PATHS = ("/health", "/metrics", "/docs", "/openapi.json")


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """Require the public API key in the `apikey` header."""

    def __init__(self, app, api_key: str):
        super().__init__(app)
        self.api_key = api_key

    async def dispatch(self, request: Request, call_next):
        if request.url.path in OPEN_PATHS:
            return await call_next(request)
        supplied = request.headers.get("apikey", "")
        if not secrets.compare_digest(supplied, self.api_key):
            return JSONResponse(
                status_code=401,
                content={"error": {"code": "invalid_api_key", "message": "Invalid API key", "details": {}}},
            )
        return await call_next(request)

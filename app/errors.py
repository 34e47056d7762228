import logging

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder


logger = logging.getLogger("youlin.errors")


class AppError(Exception):
    """Domain error rendered as {"error": {"code", "message", "details"}}."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "bad_request"
    message = "Bad request"

    def __init__(self, message: str | None = None, *, code: str | None = None, status_code: int | None = None, details: dict | None = None):
        self.message = message or self.message
        self.code = code or self.code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationFailed(AppError):
    code = "validation_error"
    message = "Invalid input"


class InsufficientEnergy(AppError):
    code = "energy_insufficient"
    message = "Not enough energy to post a seek request"


class SelfChatNotAllowed(AppError):
    code = "cannot_chat_with_self"
    message = "You cannot start a chat about your own listing"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    message = "Not found"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    message = "Forbidden"


class RateLimited(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "rate_limited"
    message = "Too many requests"


def _envelope(code: str, message: str, details: dict | None = None) -> dict:
    return {"error": {"code": code, "message": message, "details": details or {}}}


async def app_error_handler(request: Request, exc: AppError):
    logger.info("app error %s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=_envelope(exc.code, exc.message, exc.details))


async def http_exception_handler(request: Request, exc: HTTPException):
    detail = exc.detail
    if isinstance(detail, dict):
        code = str(detail.get("code", "http_error"))
        message = str(detail.get("message", code))
    else:
        code = str(detail).lower().replace(" ", "_")
        message = str(detail)
    return JSONResponse(status_code=exc.status_code, content=_envelope(code, message), headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", [])[1:]) or "body"
    message = f"{field}: {first.get('msg', 'invalid')}"
    return JSONResponse(status_code=422, content=_envelope("validation_error", message, {"errors": errors}))

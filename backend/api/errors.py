"""
Exception handlers.

Every error leaves the API as a JSON object of user-facing messages:
``{"message": "..."}`` or, for invalid fields, ``{"<field>": "..."}``.
Internal details are logged, never returned.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.exceptions import AuthorizationError, ConvoError
from shared.log import alarm

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "The requested resource was not found"
INTERNAL_MESSAGE = "Something went wrong"

DEFAULT_MESSAGES = {
    400: "The request was invalid",
    401: "Unauthorized",
    404: NOT_FOUND_MESSAGE,
    405: "Method not allowed",
    415: "Unsupported content type",
}

REQUEST_LOCATIONS = {"body", "query", "path", "header", "form", "cookie"}
VALUE_ERROR_PREFIX = "Value error, "


def _default_message(status_code: int) -> str:
    return DEFAULT_MESSAGES.get(status_code, INTERNAL_MESSAGE)


def error_body(exc: ConvoError) -> dict[str, str]:
    """User-facing body for a domain error."""
    if isinstance(exc, AuthorizationError):
        return {"message": NOT_FOUND_MESSAGE}
    if exc.status_code >= 500:
        return {"message": INTERNAL_MESSAGE}
    return dict(exc.messages) or {"message": _default_message(exc.status_code)}


def validation_messages(exc: RequestValidationError) -> dict[str, str]:
    """Map pydantic errors to ``{field: message}`` using the JSON field names."""
    messages: dict[str, str] = {}
    for error in exc.errors():
        names = [str(part) for part in error.get("loc", ()) if str(part) not in REQUEST_LOCATIONS]
        field = next((name for name in reversed(names) if not name.isdigit()), "message")
        message = str(error.get("msg", "")).removeprefix(VALUE_ERROR_PREFIX)
        messages.setdefault(field, message)
    return messages or {"message": _default_message(400)}


async def convo_error_handler(request: Request, exc: ConvoError) -> JSONResponse:
    if exc.status_code >= 500:
        alarm(exc.with_op(f"{request.method} {request.url.path}"))
    else:
        logger.info(
            "%s %s -> %d [%s] %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.code,
            exc.message,
        )
    return JSONResponse(status_code=exc.status_code, content=error_body(exc))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("%s %s -> 400 %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content=validation_messages(exc))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = _default_message(exc.status_code) if exc.status_code in DEFAULT_MESSAGES else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"message": message}, headers=exc.headers)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": INTERNAL_MESSAGE})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ConvoError, convo_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

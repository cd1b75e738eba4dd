"""
Mapping of exceptions to JSON error responses.

Every error body has the shape ``{"error": ..., "detail": ...}`` plus any
extra fields of the domain error (``missingIds``, ``limit``, ...). Error
responses bypass CORSMiddleware, so allowed origins are echoed here.
"""
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
import logging

from gallery_api.config import settings
from gallery_api.exceptions import GalleryError

logger = logging.getLogger(__name__)


def with_cors(response: JSONResponse, request: Request) -> JSONResponse:
    origin = request.headers.get("origin")
    if origin and (origin in settings.CORS_ORIGINS or "*" in settings.CORS_ORIGINS):
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Vary"] = "Origin"
    return response


def error_response(request: Request, status_code: int, content: dict, headers=None) -> JSONResponse:
    return with_cors(JSONResponse(status_code=status_code, content=content, headers=headers), request)


def _where(request: Request) -> str:
    return f"{request.method} {request.url.path}"


async def handle_gallery_error(request: Request, exc: GalleryError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {_where(request)}: {exc.detail} {exc.extra}")
    else:
        logger.warning(f"{type(exc).__name__} on {_where(request)}: {exc.detail}")
    return error_response(request, exc.status_code, exc.to_dict())


async def handle_http_exception(request: Request, exc: HTTPException):
    """Auth failures and other HTTPExceptions; dict details are passed through."""
    logger.warning(f"HTTP {exc.status_code} on {_where(request)}: {exc.detail}")
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": exc.detail, "detail": str(exc.detail)}
    return error_response(request, exc.status_code, content, headers=exc.headers)


async def handle_request_validation(request: Request, exc: RequestValidationError):
    """Malformed bodies and query strings are client errors (400), not 422."""
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    logger.warning(f"Rejected request {_where(request)}: {errors}")
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        {"error": "Validation error", "detail": errors},
    )


async def handle_rate_limit(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit hit on {_where(request)}: {exc.detail}")
    return error_response(
        request,
        status.HTTP_429_TOO_MANY_REQUESTS,
        {"error": "Too many requests", "detail": f"Rate limit exceeded: {exc.detail}"},
    )


async def handle_unexpected(request: Request, exc: Exception):
    logger.error(f"Unhandled {type(exc).__name__} on {_where(request)}: {str(exc)}", exc_info=True)
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"error": "Internal server error", "detail": "An unexpected error occurred"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GalleryError, handle_gallery_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(RateLimitExceeded, handle_rate_limit)
    app.add_exception_handler(Exception, handle_unexpected)

"""
Unified error handling for consistent API error responses.

All API errors use the same response body:
{
    "error": "Human-readable message"
}
"""

import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.exceptions import BookGraphError

logger = logging.getLogger(__name__)


class APIError(HTTPException):
    """Base API error class for consistent error responses."""

    def __init__(
        self,
        status_code: int,
        message: str,
        headers: dict[str, str] | None = None,
    ):
        self.message = message
        super().__init__(status_code=status_code, detail=message, headers=headers)


class ValidationError(APIError):
    """Invalid input (400)."""

    def __init__(self, message: str):
        super().__init__(status_code=400, message=message)


class NotFoundError(APIError):
    """Resource not found (404)."""

    def __init__(self, resource: str = "Book"):
        super().__init__(status_code=404, message=f"{resource} not found")


class MethodNotAllowedError(APIError):
    """HTTP method not supported (405)."""

    def __init__(self, allowed: str = "GET"):
        super().__init__(
            status_code=405,
            message="Method not allowed",
            headers={"Allow": allowed},
        )


class InternalServerError(APIError):
    """Unhandled pipeline failure (500)."""

    def __init__(self, message: str):
        super().__init__(status_code=500, message=message)


def error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """
    FastAPI exception handler for APIError.

    Converts APIError exceptions to consistent JSON responses.
    """
    return error_response(exc.status_code, exc.message, exc.headers)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework-raised HTTP errors (404 route, 405 method) in the same shape."""
    if exc.status_code == 405:
        return error_response(405, "Method not allowed", exc.headers)
    return error_response(exc.status_code, str(exc.detail), exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map malformed query parameters to 400."""
    names = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("query", "path", "body")]
        if loc and loc[0] not in names:
            names.append(loc[0])

    if "book_id" in names:
        return error_response(400, "Missing book_id parameter")
    message = ", ".join(f"Invalid {name} parameter" for name in names) or "Invalid request"
    return error_response(400, message)


async def domain_error_handler(request: Request, exc: BookGraphError) -> JSONResponse:
    """Pipeline failures surface as 500 with their message."""
    logger.error(f"Graph pipeline error on {request.url.path}: {exc.message}")
    return error_response(500, exc.message)

"""Exceptions and API error handling for LogBridge."""

from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

# =============================================================================
# Error Response Model
# =============================================================================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: str | None = None
    message: str
    code: str | None = None


class ErrorResponse(BaseModel):
    """Standardized error response format."""

    error: str  # Error type/category
    message: str  # Human-readable message
    code: str  # Machine-readable error code
    status_code: int
    request_id: str
    details: list[ErrorDetail] | None = None
    path: str | None = None


# =============================================================================
# Custom Exceptions
# =============================================================================


class LogBridgeException(Exception):
    """Base exception for LogBridge errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


class MalformedEventError(LogBridgeException):
    """The input is not a valid log4j XML event block."""

    def __init__(self, message: str = "The log event is not a valid log4j XML block"):
        super().__init__(
            message=message,
            code="MALFORMED_EVENT",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )


class StreamClosedError(LogBridgeException, ConnectionError):
    """The input stream ended before a complete event was read."""

    def __init__(self, message: str = "Stream closed before a complete event was read"):
        super().__init__(
            message=message,
            code="STREAM_CLOSED",
            status_code=status.HTTP_502_BAD_GATEWAY,
        )


class DuplicateReceiverError(LogBridgeException):
    """Two receiver kinds were registered under the same identifier."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(
            message=f"Receiver identifier '{identifier}' registered more than once",
            code="DUPLICATE_RECEIVER",
        )


class NotFoundError(LogBridgeException):
    """Resource not found error."""

    def __init__(self, resource: str, identifier: str | None = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} '{identifier}' not found"
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
        )


# =============================================================================
# Exception Handlers
# =============================================================================


def create_error_response(
    request: Request,
    error: str,
    message: str,
    code: str,
    status_code: int,
    details: list[ErrorDetail] | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    response = ErrorResponse(
        error=error,
        message=message,
        code=code,
        status_code=status_code,
        request_id=request.headers.get("X-Request-ID", str(uuid4())),
        details=details,
        path=str(request.url.path),
    )

    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(exclude_none=True),
    )


async def logbridge_exception_handler(request: Request, exc: LogBridgeException) -> JSONResponse:
    """Handle LogBridge exceptions."""
    return create_error_response(
        request=request,
        error=exc.__class__.__name__,
        message=exc.message,
        code=exc.code,
        status_code=exc.status_code,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report request body validation failures per field."""
    details = [
        ErrorDetail(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            code=error["type"],
        )
        for error in exc.errors()
    ]

    return create_error_response(
        request=request,
        error="ValidationError",
        message="Request validation failed",
        code="VALIDATION_ERROR",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details=details,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle routing errors such as unknown paths or methods."""
    code = "NOT_FOUND" if exc.status_code == 404 else f"HTTP_{exc.status_code}"
    return create_error_response(
        request=request,
        error="HTTPError",
        message=str(exc.detail),
        code=code,
        status_code=exc.status_code,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(LogBridgeException, logbridge_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

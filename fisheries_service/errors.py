import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import DEBUG_MODE

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error that is reported to the client in the standard response envelope."""

    status_code = 500

    def __init__(self, message, status_code=None, errors=None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors
        super().__init__(message)

    def to_dict(self):
        body = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class NotFoundError(ApiError):
    status_code = 404


class SyncError(Exception):
    """A single unit of a synchronization job (one location, one fish type) failed."""


class WeatherFetchError(SyncError):
    pass


class PredictionError(SyncError):
    pass


def format_validation_errors(errors):
    """Turn pydantic error dicts into readable messages, one per violation."""
    messages = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location)
        message = error.get("msg", "Invalid value")
        messages.append(f"{field}: {message}" if field else message)
    return messages


def register_error_handlers(app: FastAPI):
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "message": "Validation failed",
                "errors": format_validation_errors(exc.errors()),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Route {request.method} {request.url.path} not found"
            logger.warning(message)
        else:
            message = str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body = {"success": False, "message": str(exc) if DEBUG_MODE else "Internal server error"}
        return JSONResponse(status_code=500, content=body)

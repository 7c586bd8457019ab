# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/middleware/permission_errors.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Permission Error Middleware.
Turns authorization errors raised by the guards anywhere below it into clean
JSON responses carrying the error body, instead of tracebacks.
"""

# Third-Party
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

# First-Party
from helpdeskauthz.errors import AuthorizationError
from helpdeskauthz.services.logging_service import LoggingService

# Initialize logging service first
logging_service = LoggingService()
logger = logging_service.get_logger(__name__)


def _log_denial(request: Request, exc: AuthorizationError) -> None:
    logger.warning(f"{exc.code.value} ({exc.status_code}) on {request.method} {request.url.path}: {exc.message}")


async def permission_error_handler(request: Request, exc: AuthorizationError) -> JSONResponse:
    """FastAPI exception handler for ``AuthorizationError``.

    Args:
        request: FastAPI request object
        exc: Error raised by a guard

    Returns:
        JSONResponse: Error body with the error's status code
    """
    _log_denial(request, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_error_response())


def register_exception_handlers(app: FastAPI) -> None:
    """Install ``permission_error_handler`` on an application.

    Args:
        app: FastAPI application

    Examples:
        >>> app = FastAPI()
        >>> register_exception_handlers(app)
        >>> AuthorizationError in app.exception_handlers
        True
    """
    app.add_exception_handler(AuthorizationError, permission_error_handler)


class PermissionErrorMiddleware:
    """Middleware mapping authorization errors to JSON responses.

    Examples:
        >>> middleware = PermissionErrorMiddleware()
        >>> isinstance(middleware, PermissionErrorMiddleware)
        True
    """

    async def __call__(self, request: Request, call_next):
        """Run the next handler and report authorization errors.

        Args:
            request: FastAPI request object
            call_next: Next middleware/handler in chain

        Returns:
            Response from next handler, or a JSONResponse for an
            ``AuthorizationError`` or ``HTTPException``
        """
        try:
            return await call_next(request)
        except AuthorizationError as exc:
            _log_denial(request, exc)
            return JSONResponse(status_code=exc.status_code, content=exc.to_error_response())
        except HTTPException as exc:
            # Return clean JSON response instead of traceback
            return JSONResponse(
                status_code=exc.status_code,
                content={"detail": exc.detail},
            )


# Create middleware instance
permission_error_middleware = PermissionErrorMiddleware()

"""
Error Handling Middleware
=========================

Catch-all for exceptions that no FastAPI exception handler claimed. Gateway
exceptions (ManifestGatewayError) are rendered by the handlers registered in
app.py; everything that reaches this middleware is a bug, so it is logged
with the full stack trace and answered with a generic 500 in the uniform
error body shape.

Tracebacks are included in the response only in development.
"""

import traceback
from collections.abc import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from manifest_gateway.core.exceptions import utc_timestamp
from manifest_gateway.core.logging.logger import get_logger

logger = get_logger(__name__)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Last line of defense: no unhandled exception reaches the server.

    Internal details stay in the logs; clients get a generic message.
    """

    def __init__(self, app, include_traceback: bool = False):
        """
        Args:
            app: The ASGI application
            include_traceback: Whether to include stack traces in error responses
                              (False in production)
        """
        super().__init__(app)
        self.include_traceback = include_traceback

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            method = request.method
            path = request.url.path
            error_type = type(e).__name__

            logger.error(
                f"Unhandled exception in request: {method} {path}",
                method=method,
                path=path,
                error_type=error_type,
                error_message=str(e),
                exc_info=True,
            )

            body = {
                "error": "internal_error",
                "message": "An unexpected error occurred while processing your request",
                "timestamp": utc_timestamp(),
            }
            if self.include_traceback:
                body["details"] = {
                    "error_type": error_type,
                    "detail": str(e),
                    "traceback": traceback.format_exc(),
                }
            return JSONResponse(status_code=500, content=body)

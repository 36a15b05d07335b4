"""
Request Context Middleware
==========================

Outermost middleware. For every request it:

1. Reuses the caller's X-Request-Id when it is a sane token, otherwise
   generates a UUID4
2. Puts the ID in the logging context so every log line carries it
3. Logs the request outcome with its duration
4. Echoes the ID on the response
"""

import re
import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from manifest_gateway.core.config.constants import HEADER_REQUEST_ID
from manifest_gateway.core.logging.logger import clear_request_id, get_logger, set_request_id

logger = get_logger(__name__)

_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

# Paths polled by orchestrators; logged at debug to keep logs readable
QUIET_PATH_SUFFIXES = ("/health/live", "/health/ready", "/metrics")


def resolve_request_id(incoming: str | None) -> str:
    if incoming and _REQUEST_ID_PATTERN.match(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request.headers.get(HEADER_REQUEST_ID))
        request.state.request_id = request_id
        set_request_id(request_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers[HEADER_REQUEST_ID] = request_id

            path = request.url.path
            log = logger.debug if path.endswith(QUIET_PATH_SUFFIXES) else logger.info
            log(
                "Request completed",
                method=request.method,
                path=path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                cache=response.headers.get("X-Cache"),
            )
            return response
        finally:
            clear_request_id()

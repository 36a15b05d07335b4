"""
CORS Gatekeeper Middleware
==========================

Decides which browser origins may read responses. Starlette's
CORSMiddleware is not used because the allow-list needs wildcard-subdomain
and hostname-suffix rules, and because an allowed origin must always be
echoed verbatim (never ``*``) when credentials are enabled.

Behavior:
- ``Vary: Origin`` on every response
- Allowed origin: ``Access-Control-Allow-Origin: <origin>`` (+ credentials)
- Disallowed or missing origin: no Allow-Origin header at all
- Preflight (OPTIONS carrying Access-Control-Request-Method): answered here
  with 204 and the generic method/header lists, for every path, whether or
  not the origin is allowed. A plain OPTIONS goes to the router.
"""

from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from manifest_gateway.core.config.constants import (
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
    CORS_EXPOSE_HEADERS,
    CORS_MAX_AGE_SECONDS,
    Stage,
)
from manifest_gateway.core.config.origins import OriginAllowList
from manifest_gateway.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


def cors_headers(origin: str | None, allow_list: OriginAllowList, allow_credentials: bool) -> dict[str, str]:
    """Headers for a response to a request carrying ``origin``."""
    headers = {"Vary": "Origin"}
    if origin and allow_list.is_allowed(origin):
        headers["Access-Control-Allow-Origin"] = origin
        headers["Access-Control-Expose-Headers"] = CORS_EXPOSE_HEADERS
        if allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"
    return headers


def _merge_vary(response: Response) -> None:
    existing = response.headers.get("Vary")
    if existing and "origin" not in existing.lower():
        response.headers["Vary"] = f"{existing}, Origin"
    elif not existing:
        response.headers["Vary"] = "Origin"


class CORSGatekeeperMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, allow_list: OriginAllowList, allow_credentials: bool = True):
        super().__init__(app)
        self.allow_list = allow_list
        self.allow_credentials = allow_credentials

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        origin = request.headers.get("Origin")
        headers = cors_headers(origin, self.allow_list, self.allow_credentials)

        if request.method == "OPTIONS" and "Access-Control-Request-Method" in request.headers:
            if origin and "Access-Control-Allow-Origin" not in headers:
                log_stage(
                    logger, Stage.ORIGIN_CHECK, "Preflight from origin outside allow-list",
                    level="debug", origin=origin, path=request.url.path,
                )
            headers.update(
                {
                    "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
                    "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
                    "Access-Control-Max-Age": str(CORS_MAX_AGE_SECONDS),
                }
            )
            return Response(status_code=204, headers=headers)

        response = await call_next(request)
        for name, value in headers.items():
            if name == "Vary":
                _merge_vary(response)
            else:
                response.headers[name] = value
        return response

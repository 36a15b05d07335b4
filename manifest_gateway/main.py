"""
ASGI entry point.

    uvicorn manifest_gateway.main:app
    manifest-gateway            (console script)
"""

import uvicorn

from manifest_gateway.application.app import create_app
from manifest_gateway.core.config.settings import get_settings

app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "manifest_gateway.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()

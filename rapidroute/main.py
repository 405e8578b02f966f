"""
Application assembly.

Builds a FastAPI application serving a Router's routes through the
request pipeline, with logging, Request ID middleware and uniform error
handlers.
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI

from .api.transport import include_routes
from .config import config
from .core.logging_config import setup_logging
from .exceptions import register_exception_handlers
from .middleware import request_id_middleware
from .router import Router

logger = logging.getLogger("rapidroute.main")


async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


def create_app(router: Router, **fastapi_kwargs) -> FastAPI:
    """
    Create a FastAPI application for ``router``.

    Keyword arguments are passed to ``FastAPI`` and override the configured
    title and root path.
    """
    setup_logging(config.LOG_CONFIG_PATH, config.LOG_LEVEL)

    fastapi_kwargs.setdefault("title", config.APP_TITLE)
    fastapi_kwargs.setdefault("root_path", config.root_path)
    app = FastAPI(**fastapi_kwargs)

    app.middleware("http")(request_id_middleware)
    register_exception_handlers(app)

    app.add_api_route("/health", health_check, methods=["GET"])
    include_routes(app, router)

    logger.info("Application created with %d routes", len(router))
    return app


def run(app: FastAPI) -> None:
    """Serve ``app`` with uvicorn on the configured bind address."""
    import uvicorn

    uvicorn.run(app, host=config.BIND_HOST, port=config.BIND_PORT)

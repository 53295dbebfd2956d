"""FastAPI application factory for serving a scene."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

import structlog
from fastapi import FastAPI

from vrscene.config import APP_VERSION, Settings, get_settings
from vrscene.routers import scene as scene_router


def configure_structlog(settings: Settings) -> None:
    """Route structlog through stdlib logging unless the host has configured it."""
    if structlog.is_configured():
        return
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(settings: Settings) -> None:
    """Attach a stdlib handler when the root logger has none, then configure structlog."""
    logging.basicConfig(format="%(message)s", level=settings.log_level.upper())
    configure_structlog(settings)


# Library import only routes structlog into stdlib logging; handlers are
# installed when a scene is served.
configure_structlog(get_settings())

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager."""
    logger.info(
        "scene_app_started",
        version=APP_VERSION,
        title=app.state.scene.title,
        serve_root=str(app.state.serve_root),
    )
    yield
    logger.info("scene_app_shutdown")


def create_app(
    scene: Any,
    settings: Optional[Settings] = None,
    serve_root: Optional[Path] = None,
) -> FastAPI:
    """Create the application serving one scene.

    Args:
        scene: The Scene rendered at ``/``
        settings: Settings to use; the cached settings when omitted
        serve_root: Directory local files are served from; defaults to
            ``settings.serve_root`` or the working directory

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    configure_logging(settings)
    if serve_root is None:
        serve_root = Path(settings.serve_root) if settings.serve_root else Path.cwd()

    app = FastAPI(
        title=scene.title,
        description=scene.description or "A-Frame scene",
        version=APP_VERSION,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.scene = scene
    app.state.settings = settings
    app.state.serve_root = serve_root.resolve()

    app.include_router(scene_router.router)

    return app

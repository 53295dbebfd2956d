"""API router serving a scene document and its local files."""

from pathlib import Path
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, HTMLResponse, Response

from vrscene.models.schemas import ErrorResponse, HealthResponse
from vrscene.services.serving import (
    AssetFileNotFoundError,
    ForbiddenPathError,
    LocalFileResolver,
)

logger = structlog.get_logger()

router = APIRouter(tags=["scene"])


def get_scene(request: Request) -> Any:
    """Return the scene bound to this application."""
    return request.app.state.scene


def get_resolver(
    request: Request,
    scene: Annotated[Any, Depends(get_scene)],
) -> LocalFileResolver:
    """Index the files the scene currently declares."""
    return LocalFileResolver(request.app.state.serve_root, scene.flatten())


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check service health status."""
    return HealthResponse()


@router.get("/", response_class=HTMLResponse)
async def scene_document(scene: Annotated[Any, Depends(get_scene)]) -> HTMLResponse:
    """Render the scene as it is at request time."""
    html = scene.render()
    logger.info("scene_document_served", size_bytes=len(html.encode("utf-8")))
    return HTMLResponse(content=html)


@router.get(
    "/{file_path:path}",
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def scene_file(
    file_path: str,
    resolver: Annotated[LocalFileResolver, Depends(get_resolver)],
) -> Response:
    """Serve a local file declared by the scene."""
    try:
        target = resolver.resolve(file_path)
    except ForbiddenPathError as e:
        logger.warning("scene_file_forbidden", path=file_path)
        raise HTTPException(
            status_code=403,
            detail={"detail": str(e), "error_code": "FORBIDDEN_PATH"},
        )
    except AssetFileNotFoundError as e:
        logger.info("scene_file_not_found", path=file_path)
        raise HTTPException(
            status_code=404,
            detail={"detail": str(e), "error_code": "FILE_NOT_FOUND"},
        )

    if isinstance(target, Path):
        return FileResponse(target)
    return Response(content=target.content, media_type=target.content_type)

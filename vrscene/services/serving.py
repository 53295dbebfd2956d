"""Local file resolution and the background server behind Scene.serve()."""

import threading
import time
from pathlib import Path
from typing import Union

import structlog
import uvicorn

from vrscene.config import Settings
from vrscene.models.asset import InMemoryAsset
from vrscene.services.flattening import FlattenedScene

logger = structlog.get_logger()


class ForbiddenPathError(Exception):
    """Raised when a requested path resolves outside the serving root."""

    pass


class AssetFileNotFoundError(Exception):
    """Raised when a requested path is not a declared, existing file."""

    pass


class SceneServerError(RuntimeError):
    """Raised when the scene server cannot be started."""

    pass


def _is_remote(url: str) -> bool:
    return url.startswith(("http://", "https://", "//", "data:"))


class LocalFileResolver:
    """Maps request paths to the files a scene declares.

    Only asset sources, asset parts, local script sources and in-memory assets
    are served, and only when they sit at or below the serving root.
    """

    def __init__(self, root: Path, flattened: FlattenedScene):
        """Index the local files referenced by a flattened scene."""
        self.root = root.resolve()
        self._files: set[Path] = set()
        self._in_memory: dict[Path, InMemoryAsset] = {}

        for asset in flattened.served_assets:
            if isinstance(asset, InMemoryAsset):
                self._in_memory[self.locate(asset.src)] = asset
            for path in asset.local_paths:
                self._files.add(self.locate(path))

        for url in flattened.js_sources:
            if not _is_remote(url):
                self._files.add(self.locate(url))

    def locate(self, path: str) -> Path:
        """Resolve a URL path against the serving root, following symlinks."""
        return (self.root / path.lstrip("/")).resolve()

    def resolve(self, request_path: str) -> Union[Path, InMemoryAsset]:
        """Return the file or in-memory asset to serve for a request path.

        Raises:
            ForbiddenPathError: If the path escapes the serving root
            AssetFileNotFoundError: If nothing declared exists at the path
        """
        candidate = self.locate(request_path)
        if not candidate.is_relative_to(self.root):
            raise ForbiddenPathError(f"Path '{request_path}' is outside the serving root")

        if candidate in self._in_memory:
            return self._in_memory[candidate]
        if candidate not in self._files or not candidate.is_file():
            raise AssetFileNotFoundError(f"No scene file at '{request_path}'")
        return candidate


class SceneServer:
    """Runs a uvicorn server for one scene on a background thread."""

    def __init__(self, app, host: str, port: int, settings: Settings):
        self.settings = settings
        config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_config=None,
            log_level=settings.log_level.lower(),
        )
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._server.run,
            name=f"vrscene-{host}:{port}",
            daemon=True,
        )

    @property
    def running(self) -> bool:
        return self._thread.is_alive() and not self._server.should_exit

    @property
    def address(self) -> tuple[str, int]:
        """Return the bound (host, port); the OS-assigned port when port 0 was asked for."""
        for server in self._server.servers:
            for sock in server.sockets:
                host, port = sock.getsockname()[:2]
                return host, port
        return self._server.config.host, self._server.config.port

    def start(self) -> None:
        """Start serving and wait until the address is bound.

        Raises:
            SceneServerError: If the server exits or does not start in time
        """
        self._thread.start()
        deadline = time.monotonic() + self.settings.startup_timeout_s
        while not self._server.started:
            if not self._thread.is_alive():
                raise SceneServerError(
                    f"Server failed to start on "
                    f"{self._server.config.host}:{self._server.config.port}"
                )
            if time.monotonic() > deadline:
                self.stop()
                raise SceneServerError("Timed out waiting for the server to start")
            time.sleep(0.05)

        host, port = self.address
        logger.info("scene_server_started", host=host, port=port)

    def stop(self) -> None:
        """Ask the server to exit and wait for its thread."""
        self._server.should_exit = True
        if self._thread.is_alive():
            self._thread.join(timeout=self.settings.shutdown_timeout_s)
        logger.info("scene_server_stopped")

"""Scene model: the root entity that renders, writes and serves a document."""

import html
from pathlib import Path
from typing import Any, ClassVar, Optional

import structlog
from pydantic import Field, PrivateAttr, field_validator

from vrscene.config import get_settings
from vrscene.main import create_app
from vrscene.models.asset import Asset
from vrscene.models.entity import Entity
from vrscene.services import templates
from vrscene.services.flattening import FlattenedScene, flatten_tree, render_attributes
from vrscene.services.serving import SceneServer, SceneServerError

logger = structlog.get_logger()


class Scene(Entity):
    """Root of a renderable entity tree.

    The scene's own components are applied to the ``<a-scene>`` element; its
    children become the document's entities. Every render walks the current
    tree afresh.

    Rendering keeps no state between calls. Mutating a tree while another
    thread renders it is not supported and must be serialised by the caller.
    """

    tag: str = "scene"
    template: str = Field(
        default_factory=lambda: get_settings().default_template,
        description="Built-in template name, template file path, or template document",
    )
    title: str = "A-Frame scene"
    description: str = ""

    is_root: ClassVar[bool] = True

    _server: Optional[SceneServer] = PrivateAttr(default=None)

    @field_validator("template")
    @classmethod
    def _check_template(cls, value: str) -> str:
        return templates.check_template(value)

    @classmethod
    def build(
        cls,
        template: Optional[str] = None,
        *,
        title: str = "A-Frame scene",
        description: str = "",
        children: Optional[list[Entity]] = None,
        assets: Optional[list[Asset]] = None,
        js_sources: Optional[list[str]] = None,
        **components: Any,
    ) -> "Scene":
        """Compose a scene; keyword arguments become ``<a-scene>`` components.

        Raises:
            TemplateNotFoundError: wrapped in a ValidationError, for an unknown template
        """
        return cls(
            template=template or get_settings().default_template,
            title=title,
            description=description,
            components=components,
            children=children or [],
            assets=assets or [],
            js_sources=js_sources or [],
        )

    def flatten(self) -> FlattenedScene:
        """Walk the tree, collecting unique assets and scripts in first-seen order."""
        return flatten_tree(self, indent=get_settings().indent)

    def render(self) -> str:
        """Render the full document from the current tree."""
        flattened = self.flatten()
        document = templates.load_template(self.template)

        fragments = {
            templates.TITLE: html.escape(self.title),
            templates.DESCRIPTION: html.escape(self.description, quote=True),
            templates.JS_SOURCES: "\n".join(
                f'<script src="{html.escape(url, quote=True)}"></script>'
                for url in flattened.js_sources
            ),
            templates.ASSETS: "\n".join(asset.render() for asset in flattened.assets),
            templates.ENTITIES: "\n".join(flattened.fragments),
            templates.SCENE_COMPONENTS: render_attributes(self.components),
        }
        rendered = templates.fill_template(document, fragments, flattened.markup_names)

        logger.debug(
            "scene_rendered",
            title=self.title,
            template=self.template if self.template in templates.BUILTIN_TEMPLATES else "custom",
            assets=len(flattened.assets),
            js_sources=len(flattened.js_sources),
        )
        return rendered

    def write(self, path: str | Path) -> None:
        """Render the document and write it to a file."""
        Path(path).write_text(self.render(), encoding="utf-8")
        logger.info("scene_written", path=str(path))

    @property
    def serving(self) -> bool:
        """Whether a server is currently running for this scene."""
        return self._server is not None and self._server.running

    @property
    def url(self) -> Optional[str]:
        """Return the address the scene is served at, or None when not serving."""
        if not self.serving:
            return None
        host, port = self._server.address
        return f"http://{host}:{port}/"

    def serve(self, host: Optional[str] = None, port: Optional[int] = None) -> None:
        """Serve the scene over HTTP from a background thread.

        Local files are served from the working directory at call time.

        Raises:
            SceneServerError: If this scene is already being served or the
                server cannot bind
        """
        if self.serving:
            raise SceneServerError(f"Scene is already being served at {self.url}")

        settings = get_settings()
        host = host or settings.host
        port = settings.port if port is None else port

        server = SceneServer(create_app(self, settings), host, port, settings)
        server.start()
        self._server = server
        logger.info("scene_serving", url=self.url, title=self.title)

    def stop(self) -> None:
        """Stop serving; does nothing when the scene is not being served."""
        if self._server is None:
            return
        self._server.stop()
        self._server = None

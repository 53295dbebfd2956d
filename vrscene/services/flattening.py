"""Scene tree flattening: entity markup rendering with asset/script de-duplication.

The tree is walked once per render, depth-first and pre-order. Every walk gets
a fresh FlattenContext, so no bookkeeping survives between renders and several
scenes can be rendered side by side.
"""

import html
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, Field

from vrscene.models.asset import Asset
from vrscene.models.components import (
    ComponentValue,
    StringForm,
    component_assets,
    encode_component,
    to_markup_name,
)

if TYPE_CHECKING:
    from vrscene.models.entity import Entity

logger = structlog.get_logger()


class NestedSceneError(ValueError):
    """Raised when a scene appears below the root of an entity tree."""

    pass


# Tags A-Frame ships as ready-made primitives (<a-box>, <a-gltf-model>, ...)
PRIMITIVE_TAGS = frozenset(
    {
        "box",
        "camera",
        "circle",
        "cone",
        "cursor",
        "curvedimage",
        "cylinder",
        "dodecahedron",
        "gltf-model",
        "icosahedron",
        "image",
        "light",
        "link",
        "obj-model",
        "octahedron",
        "plane",
        "ring",
        "sky",
        "sound",
        "sphere",
        "tetrahedron",
        "text",
        "torus",
        "torus-knot",
        "triangle",
        "video",
        "videosphere",
    }
)


class FlattenedScene(BaseModel):
    """Result of one walk over an entity tree."""

    assets: list[Asset] = Field(description="Assets to declare, first-seen order")
    js_sources: list[str] = Field(description="Script URLs to link, first-seen order")
    fragments: list[str] = Field(description="Rendered markup of each top-level entity")
    markup_names: set[str] = Field(
        default_factory=set,
        description="Component names and primitive tags used anywhere in the tree",
    )
    served_assets: list[Asset] = Field(
        default_factory=list,
        description="Every distinct asset seen, inline ones included",
    )


class FlattenContext:
    """Per-walk de-duplication state.

    Assets are keyed by id (inline assets by src); the first occurrence wins
    and later assets reusing a key are dropped silently. Scripts are keyed by
    their literal URL.
    """

    def __init__(self, indent: str = "  "):
        self.indent = indent
        self._assets: dict[str, Asset] = {}
        self._scripts: dict[str, None] = {}
        self.markup_names: set[str] = set()

    def add_asset(self, asset: Asset) -> None:
        key = f"url:{asset.src}" if asset.inline else asset.id
        if key in self._assets:
            if self._assets[key] != asset:
                logger.debug(
                    "asset_id_reused",
                    id=key,
                    kept=self._assets[key].src,
                    dropped=asset.src,
                )
            return
        self._assets[key] = asset

    def add_script(self, url: str) -> None:
        self._scripts.setdefault(url, None)

    @property
    def assets(self) -> list[Asset]:
        """Every distinct asset, inline ones included."""
        return list(self._assets.values())

    @property
    def declared_assets(self) -> list[Asset]:
        """Assets that belong in the declarations block."""
        return [asset for asset in self._assets.values() if not asset.inline]

    @property
    def scripts(self) -> list[str]:
        return list(self._scripts)


def resolve_tag(tag: str) -> tuple[str, str | None]:
    """Map an entity tag to its element name and implied geometry primitive.

    Returns:
        (element name, primitive for a geometry component or None)
    """
    if tag.startswith("a-"):
        return tag, None
    if tag == "entity":
        return "a-entity", None
    if tag in PRIMITIVE_TAGS:
        return f"a-{tag}", None
    return "a-entity", tag


def render_attributes(components: dict[str, ComponentValue]) -> str:
    """Render components as an attribute string with a leading space per attribute."""
    parts = []
    for name, value in components.items():
        encoded = encode_component(value)
        markup_name = to_markup_name(name)
        if encoded is None:
            parts.append(f" {markup_name}")
        else:
            parts.append(f' {markup_name}="{html.escape(encoded, quote=True)}"')
    return "".join(parts)


def collect_entity(entity: "Entity", context: FlattenContext) -> None:
    """Register an entity's own scripts, assets and markup names (not its children)."""
    for url in entity.js_sources:
        context.add_script(url)
    for asset in entity.assets:
        context.add_asset(asset)
    for name, value in entity.components.items():
        context.markup_names.add(to_markup_name(name))
        for asset in component_assets(value):
            context.add_asset(asset)


def render_entity(entity: "Entity", context: FlattenContext, depth: int = 0) -> str:
    """Render an entity and its descendants, registering what they require."""
    if entity.is_root:
        raise NestedSceneError(
            f"A scene can only be the root of a tree; found one nested at depth {depth}"
        )

    collect_entity(entity, context)

    element, primitive = resolve_tag(entity.tag)
    context.markup_names.add(element.removeprefix("a-"))

    components = dict(entity.components)
    if primitive is not None and "geometry" not in components:
        components = {"geometry": StringForm(value=f"primitive: {primitive};"), **components}
        context.markup_names.add("geometry")

    padding = context.indent * depth
    opening = f"{padding}<{element}{render_attributes(components)}>"
    if not entity.children:
        return f"{opening}</{element}>"

    lines = [opening]
    for child in entity.children:
        lines.append(render_entity(child, context, depth + 1))
    lines.append(f"{padding}</{element}>")
    return "\n".join(lines)


def flatten_tree(root: "Entity", indent: str = "  ") -> FlattenedScene:
    """Walk a tree rooted at a scene, rendering its children.

    The root's own components are not rendered here; they belong to the
    document's root element. Its scripts and assets are collected first.

    Args:
        root: Scene (or any entity) whose children are rendered
        indent: Indentation unit for nested markup

    Returns:
        FlattenedScene with de-duplicated assets and scripts in first-seen order
    """
    context = FlattenContext(indent=indent)
    collect_entity(root, context)
    fragments = [render_entity(child, context) for child in root.children]

    flattened = FlattenedScene(
        assets=context.declared_assets,
        js_sources=context.scripts,
        fragments=fragments,
        markup_names=context.markup_names,
        served_assets=context.assets,
    )
    logger.debug(
        "tree_flattened",
        entities=len(fragments),
        assets=[asset.id for asset in flattened.assets],
        js_sources=len(flattened.js_sources),
    )
    return flattened

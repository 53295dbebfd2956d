"""Entity model: one node of the scene graph."""

from typing import Any, ClassVar, Optional

from pydantic import BaseModel, Field, field_validator

from vrscene.models.asset import Asset
from vrscene.models.components import ComponentValue, resolve_component
from vrscene.services.flattening import FlattenContext, render_entity


class Entity(BaseModel):
    """A scene-graph node rendered as one markup element.

    Components keep their insertion order, as do children; both orders carry
    through to the rendered markup.
    """

    tag: str = Field(default="entity", description="Primitive name, e.g. 'box' or 'gltf-model'")
    components: dict[str, ComponentValue] = Field(default_factory=dict)
    children: list["Entity"] = Field(default_factory=list)
    assets: list[Asset] = Field(
        default_factory=list,
        description="Assets to declare even when no component references them",
    )
    js_sources: list[str] = Field(
        default_factory=list, description="Script URLs required by this entity's components"
    )

    # Only a scene may sit at the root of a rendered tree
    is_root: ClassVar[bool] = False

    @field_validator("components", mode="before")
    @classmethod
    def _resolve_components(cls, value: Any) -> dict[str, ComponentValue]:
        if value is None:
            return {}
        return {str(name): resolve_component(str(name), raw) for name, raw in value.items()}

    @classmethod
    def build(
        cls,
        tag: str = "entity",
        *,
        children: Optional[list["Entity"]] = None,
        assets: Optional[list[Asset]] = None,
        js_sources: Optional[list[str]] = None,
        **components: Any,
    ) -> "Entity":
        """Compose an entity with components given as keyword arguments.

        Component names use identifier form (``json_model``) and are written
        in markup form (``json-model``).

        Example:
            Entity.build("box", position="0 1 -3", material={"color": "red"})
        """
        return cls(
            tag=tag,
            components=components,
            children=children or [],
            assets=assets or [],
            js_sources=js_sources or [],
        )

    def render(self, indent: str = "  ") -> str:
        """Render this entity and its descendants to a markup fragment."""
        return render_entity(self, FlattenContext(indent=indent))

"""Asset models: media referenced by scene entities."""

import html
import mimetypes
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Elements that take no closing tag
VOID_ELEMENTS = {"img", "source"}


class AssetError(ValueError):
    """Raised when an asset is constructed with an invalid configuration."""

    pass


class Asset(BaseModel):
    """A reference to an external media resource.

    Non-inline assets are declared once in the scene's asset block and
    referenced by ``#id``. Inline assets are never declared; entities point
    at them with ``url(src)``.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(default=None, description="Unique id, required unless inline")
    src: str = Field(description="Path or URI of the resource")
    parts: list[str] = Field(
        default_factory=list,
        description="Companion files loaded by the consumer relative to src (e.g. .bin)",
    )
    tag: str = Field(default="a-asset-item", description="Declaration element name")
    inline: bool = False
    attributes: dict[str, str] = Field(
        default_factory=dict, description="Extra declaration attributes"
    )

    @field_validator("parts", mode="before")
    @classmethod
    def _parts_as_list(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @model_validator(mode="after")
    def _require_id(self):
        if not self.inline and not self.id:
            raise AssetError(f"Non-inline asset with src '{self.src}' requires an id")
        return self

    @property
    def is_remote(self) -> bool:
        """Whether src points at another host rather than a local file."""
        return self.src.startswith(("http://", "https://", "//", "data:"))

    @property
    def local_paths(self) -> list[str]:
        """Paths the server must make available for this asset."""
        if self.is_remote:
            return []
        return [self.src, *self.parts]

    def reference(self) -> str:
        """Return the expression an entity property uses to point at this asset."""
        if self.inline:
            return f"url({self.src})"
        return f"#{self.id}"

    def render(self) -> str:
        """Return the declaration element for the scene asset block."""
        if self.inline:
            return ""

        attributes = {"id": self.id, "src": self.src, **self.attributes}
        attribute_markup = " ".join(
            f'{name}="{html.escape(value, quote=True)}"'
            for name, value in attributes.items()
        )
        if self.tag in VOID_ELEMENTS:
            return f"<{self.tag} {attribute_markup}>"
        return f"<{self.tag} {attribute_markup}></{self.tag}>"


class InMemoryAsset(Asset):
    """An asset whose content is held in memory and served at ``src``."""

    data: bytes | str
    media_type: Optional[str] = None

    @property
    def content_type(self) -> str:
        """Return the media type to serve the data with."""
        if self.media_type:
            return self.media_type
        guessed, _ = mimetypes.guess_type(self.src)
        return guessed or "application/octet-stream"

    @property
    def content(self) -> bytes:
        """Return the data as bytes."""
        if isinstance(self.data, str):
            return self.data.encode("utf-8")
        return self.data

    @property
    def local_paths(self) -> list[str]:
        # Served from memory, never from disk
        return []

"""Component configuration variants and name translation.

A component value supplied by the caller takes one of a few shapes. It is
resolved once, when the entity is built, into one of the variants below so that
rendering never has to re-inspect raw values.
"""

import re
from collections.abc import Mapping, Sequence
from numbers import Real
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict

from vrscene.models.asset import Asset


class ComponentConfigError(ValueError):
    """Raised when a component value has an unsupported shape."""

    pass


# A lone underscore separates words; a double underscore is A-Frame's
# multiple-instance separator (``animation__spin``) and is kept as is.
_WORD_SEPARATOR = re.compile(r"(?<!_)_(?!_)")


def to_markup_name(name: str) -> str:
    """Translate an identifier-safe name (``json_model``) to markup form (``json-model``)."""
    return _WORD_SEPARATOR.sub("-", name)


def to_identifier(name: str) -> str:
    """Translate a markup name (``json-model``) to identifier form (``json_model``)."""
    return name.replace("-", "_")


PropertyValue = Union[Asset, bool, int, float, str, list[Union[int, float]]]


class StringForm(BaseModel):
    """A flat property string, emitted unchanged."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["string"] = "string"
    value: str


class MappingForm(BaseModel):
    """A key/value mapping, emitted as ``key: value; key2: value2;``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["mapping"] = "mapping"
    properties: dict[str, PropertyValue]


class DefaultForm(BaseModel):
    """Attach the component with its defaults (no value)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["default"] = "default"


class AssetForm(BaseModel):
    """An asset used directly as the component value."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["asset"] = "asset"
    asset: Asset


ComponentValue = Union[StringForm, MappingForm, DefaultForm, AssetForm]


def _property_value(component: str, key: str, value: Any) -> PropertyValue:
    """Check a single mapping entry and normalise vectors to lists."""
    if isinstance(value, (Asset, bool, str)):
        return value
    if isinstance(value, Real):
        return value
    if (
        isinstance(value, Sequence)
        and not isinstance(value, (bytes, bytearray))
        and len(value) > 0
        and all(isinstance(v, Real) and not isinstance(v, bool) for v in value)
    ):
        return list(value)
    raise ComponentConfigError(
        f"Component '{component}' property '{key}' has unsupported value "
        f"of type {type(value).__name__}"
    )


def resolve_component(name: str, raw: Any) -> ComponentValue:
    """Resolve a caller-supplied component value into its variant.

    Args:
        name: Component name, used in error messages
        raw: A string, a mapping, an Asset, or None/"" for defaults

    Returns:
        The matching configuration variant

    Raises:
        ComponentConfigError: If the value is of any other shape
    """
    if isinstance(raw, (StringForm, MappingForm, DefaultForm, AssetForm)):
        return raw
    if raw is None or raw == "":
        return DefaultForm()
    if isinstance(raw, Asset):
        return AssetForm(asset=raw)
    if isinstance(raw, str):
        return StringForm(value=raw)
    if isinstance(raw, Mapping):
        if not raw:
            return DefaultForm()
        return MappingForm(
            properties={
                str(key): _property_value(name, str(key), value)
                for key, value in raw.items()
            }
        )
    raise ComponentConfigError(
        f"Component '{name}' has unsupported configuration of type "
        f"{type(raw).__name__}; expected a string, a mapping, an Asset or None"
    )


def format_property(value: PropertyValue) -> str:
    """Format one property value in the markup's property grammar."""
    if isinstance(value, Asset):
        return value.reference()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return " ".join(format_property(v) for v in value)
    return str(value)


def encode_component(value: ComponentValue) -> str | None:
    """Encode a component variant as an attribute value.

    Returns None for DefaultForm, meaning the attribute is emitted bare.
    """
    if isinstance(value, DefaultForm):
        return None
    if isinstance(value, StringForm):
        return value.value
    if isinstance(value, AssetForm):
        return value.asset.reference()
    return " ".join(
        f"{key}: {format_property(prop)};" for key, prop in value.properties.items()
    )


def component_assets(value: ComponentValue) -> list[Asset]:
    """Return the assets referenced by a component, in property order."""
    if isinstance(value, AssetForm):
        return [value.asset]
    if isinstance(value, MappingForm):
        return [prop for prop in value.properties.values() if isinstance(prop, Asset)]
    return []

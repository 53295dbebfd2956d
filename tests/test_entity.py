"""Tests for entity markup rendering."""

import pytest

from vrscene.models.asset import Asset
from vrscene.models.entity import Entity


def test_convenience_tag_renders_primitive_element():
    box = Entity.build("box", position="0 0.5 -3", color="#4CC3D9")

    assert box.render() == '<a-box position="0 0.5 -3" color="#4CC3D9"></a-box>'


def test_default_tag_is_a_generic_entity():
    assert Entity.build(cursor=None).render() == "<a-entity cursor></a-entity>"


def test_unknown_tag_becomes_geometry_primitive():
    assert Entity.build("capsule").render() == '<a-entity geometry="primitive: capsule;"></a-entity>'


def test_explicit_geometry_is_not_overridden():
    shape = Entity.build("capsule", geometry={"primitive": "capsule", "radius": 0.2})

    assert shape.render() == '<a-entity geometry="primitive: capsule; radius: 0.2;"></a-entity>'


def test_prefixed_tag_is_used_verbatim():
    assert Entity.build("a-ocean").render() == "<a-ocean></a-ocean>"


def test_component_names_are_hyphenated_at_render_time_only(cube):
    box = Entity.build("box", json_model=cube)

    assert "json_model" in box.components
    assert box.render() == '<a-box json-model="#cube"></a-box>'


def test_children_nest_in_order_with_indentation():
    group = Entity.build(
        position="0 1 0",
        children=[
            Entity.build("sphere", radius="0.5"),
            Entity.build("entity", children=[Entity.build("box")]),
        ],
    )

    assert group.render() == "\n".join(
        [
            '<a-entity position="0 1 0">',
            '  <a-sphere radius="0.5"></a-sphere>',
            "  <a-entity>",
            "    <a-box></a-box>",
            "  </a-entity>",
            "</a-entity>",
        ]
    )


def test_attribute_values_are_escaped():
    label = Entity.build("text", value='Say "hi" & wave')

    assert label.render() == '<a-text value="Say &quot;hi&quot; &amp; wave"></a-text>'


def test_inline_asset_property():
    sky = Entity.build("sky", src=Asset(src="sky.jpg", inline=True))

    assert sky.render() == '<a-sky src="url(sky.jpg)"></a-sky>'


def test_unsupported_component_value_is_rejected():
    with pytest.raises(ValueError, match="'position'"):
        Entity.build("box", position=(0, 1, 2))


def test_components_accept_raw_values_through_the_constructor():
    entity = Entity(tag="plane", components={"rotation": "-90 0 0", "shadow": None})

    assert entity.render() == '<a-plane rotation="-90 0 0" shadow></a-plane>'

"""Tests for whole-scene rendering."""

from html.parser import HTMLParser

import pytest

from vrscene.models.asset import Asset
from vrscene.models.entity import Entity
from vrscene.models.scene import Scene
from vrscene.services.flattening import NestedSceneError


class MarkupCollector(HTMLParser):
    """Collects element names and attributes from a rendered document."""

    def __init__(self):
        super().__init__()
        self.tags: list[str] = []
        self.attributes: dict[str, list[dict[str, str | None]]] = {}

    def handle_starttag(self, tag, attrs):
        self.tags.append(tag)
        self.attributes.setdefault(tag, []).append(dict(attrs))


def parse(document: str) -> MarkupCollector:
    collector = MarkupCollector()
    collector.feed(document)
    return collector


@pytest.fixture
def kangaroo_scene(cube, kangaroo) -> Scene:
    return Scene.build(
        "empty",
        title="Kangaroo",
        children=[
            Entity.build("box", json_model=cube, position="0 0.5 -3"),
            Entity.build("gltf-model", src=kangaroo, scale="0.2 0.2 0.2"),
        ],
    )


def test_assets_and_entities_render_in_supplied_order(kangaroo_scene):
    document = kangaroo_scene.render()

    assert document.count("<a-asset-item") == 2
    assert document.index('id="cube"') < document.index('id="kangaroo"')
    assert document.index("<a-box") < document.index("<a-gltf-model")
    assert '<a-box json-model="#cube" position="0 0.5 -3"></a-box>' in document
    assert '<a-gltf-model src="#kangaroo" scale="0.2 0.2 0.2"></a-gltf-model>' in document


def test_rendered_document_reproduces_tree_contents(kangaroo_scene):
    collected = parse(kangaroo_scene.render())

    assert {"a-scene", "a-assets", "a-box", "a-gltf-model"} <= set(collected.tags)
    assert "json-model" in collected.attributes["a-box"][0]
    assert "src" in collected.attributes["a-gltf-model"][0]
    assert [item["id"] for item in collected.attributes["a-asset-item"]] == ["cube", "kangaroo"]


def test_shared_script_is_included_once():
    component = "https://unpkg.com/aframe-look-at-component@1.0.0/dist/aframe-look-at-component.min.js"
    scene = Scene.build(
        children=[
            Entity.build("box", js_sources=[component], look_at="[camera]"),
            Entity.build("sphere", js_sources=[component], look_at="[camera]"),
        ],
    )

    document = scene.render()

    assert document.count(f'<script src="{component}"></script>') == 1
    assert document.index("aframe.min.js") < document.index(component)


def test_explicit_light_replaces_template_default():
    scene = Scene.build(
        "basic",
        children=[Entity.build(light={"type": "point", "intensity": 2}, position="0 5 0")],
    )

    document = scene.render()

    assert document.count("light=") == 1
    assert 'light="type: point; intensity: 2;"' in document
    # Defaults the scene does not override stay in place
    assert "camera look-controls" in document


def test_light_primitive_replaces_template_default():
    document = Scene.build("basic_map", children=[Entity.build("light", type="hemisphere")]).render()

    assert "light=" not in document
    assert document.count("<a-light") == 1


def test_scene_components_apply_to_the_root_element():
    scene = Scene.build(background={"color": "#ECECEC"}, fog="type: linear; color: #AAA")

    assert '<a-scene background="color: #ECECEC;" fog="type: linear; color: #AAA">' in scene.render()


def test_title_and_description_are_escaped():
    document = Scene.build(title="Roos & Emus", description='A "quick" look').render()

    assert "<title>Roos &amp; Emus</title>" in document
    assert '<meta name="description" content="A &quot;quick&quot; look">' in document


def test_unknown_template_fails_at_construction():
    with pytest.raises(ValueError, match="Unknown template"):
        Scene.build("marsh")


def test_custom_template_document():
    scene = Scene.build(
        "<a-scene{{SCENE_COMPONENTS}}>{{ENTITIES}}</a-scene>",
        stats=None,
        children=[Entity.build("box")],
    )

    assert scene.render() == "<a-scene stats><a-box></a-box></a-scene>"


def test_render_reflects_current_tree(cube):
    scene = Scene.build("empty")
    assert "<a-asset-item" not in scene.render()

    scene.children.append(Entity.build("box", json_model=cube))

    assert scene.render().count('<a-asset-item id="cube"') == 1
    assert scene.render().count('<a-asset-item id="cube"') == 1


def test_nested_entities_are_indented_inside_the_scene():
    scene = Scene.build(
        "<a-scene>\n  {{ENTITIES}}\n</a-scene>",
        children=[Entity.build(children=[Entity.build("box")])],
    )

    assert scene.render() == (
        "<a-scene>\n"
        "  <a-entity>\n"
        "    <a-box></a-box>\n"
        "  </a-entity>\n"
        "</a-scene>"
    )


def test_write(tmp_path, kangaroo_scene):
    path = tmp_path / "index.html"

    kangaroo_scene.write(path)

    assert path.read_text(encoding="utf-8") == kangaroo_scene.render()


def test_stop_without_serving_is_a_no_op(kangaroo_scene):
    kangaroo_scene.stop()

    assert not kangaroo_scene.serving
    assert kangaroo_scene.url is None


def test_inline_assets_are_not_declared():
    scene = Scene.build(children=[Entity.build("sky", src=Asset(id="sky", src="sky.jpg", inline=True))])

    document = scene.render()

    assert "<a-asset-item" not in document
    assert '<a-sky src="url(sky.jpg)"></a-sky>' in document


def test_placeholder_text_in_caller_values_is_kept_literally():
    scene = Scene.build(
        "empty",
        title="About {{ENTITIES}}",
        stats=None,
        children=[Entity.build("text", value="{{SCENE_COMPONENTS}}"), Entity.build("box")],
    )

    document = scene.render()

    assert "<title>About {{ENTITIES}}</title>" in document
    assert '<a-text value="{{SCENE_COMPONENTS}}"></a-text>' in document
    assert document.count("<a-box></a-box>") == 1


def test_overlong_template_name_fails_at_construction():
    with pytest.raises(ValueError, match="Unknown template"):
        Scene.build("x" * 300)


def test_nested_scene_is_rejected():
    scene = Scene.build(children=[Entity.build(children=[Scene.build()])])

    with pytest.raises(NestedSceneError, match="depth 1"):
        scene.render()

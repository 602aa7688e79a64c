from __future__ import annotations

import json
from pathlib import Path

import pytest

from scenecanvas.core.compiler import compile_element
from scenecanvas.core.elements import ElementKind
from scenecanvas.core.errors import MalformedElement, UnknownElementKind
from scenecanvas.core.instructions import Call
from scenecanvas.data.scenes import load_scene, parse_scene_text


def test_load_json_scene(fixtures_dir: Path) -> None:
    root = load_scene(fixtures_dir / "scene_basic.json")
    assert root is not None
    assert root.kind is ElementKind.RECT
    text, poly, absent = root.children
    assert text.value == "Hello"
    assert text.text_align == "left"
    assert absent is None
    out = compile_element(root)
    assert Call("moveTo", (11, 11)) in out


def test_load_yaml_scene_with_image_loader(fixtures_dir: Path) -> None:
    seen: list[Path] = []

    def loader(path: Path) -> str:
        seen.append(path)
        return f"<img {path.name}>"

    root = load_scene(fixtures_dir / "scene_badge.yaml", image_loader=loader)
    assert root is not None
    img, ln, ac = root.children
    assert seen == [fixtures_dir / "icon.png"]
    assert img.image == "<img icon.png>"
    assert ln.style is not None and ln.style.line_dash == (4, 2)
    assert ln.style.line_cap == "butt"
    assert ac.radius == 6
    out = compile_element(root)
    assert Call("drawImage", ("<img icon.png>", 9, 9, 32, 32)) in out


def test_image_path_kept_without_loader(fixtures_dir: Path) -> None:
    root = load_scene(fixtures_dir / "scene_badge.yaml")
    assert root is not None
    assert root.children[0].image == "icon.png"


def test_null_scene(tmp_path: Path) -> None:
    p = tmp_path / "empty.yaml"
    p.write_text("null\n")
    assert load_scene(p) is None
    p2 = tmp_path / "empty.json"
    p2.write_text("null")
    assert load_scene(p2) is None


def test_parse_errors_are_malformed(tmp_path: Path) -> None:
    p = tmp_path / "broken.json"
    p.write_text("{broken")
    with pytest.raises(MalformedElement):
        load_scene(p)
    with pytest.raises(MalformedElement):
        parse_scene_text("kind: [unclosed", fmt="yaml")
    with pytest.raises(MalformedElement):
        parse_scene_text(json.dumps([{"kind": "rect"}]))


def test_unknown_kind_in_file(tmp_path: Path) -> None:
    p = tmp_path / "scene.json"
    p.write_text(json.dumps({"kind": "rect", "children": [{"kind": "star"}]}))
    with pytest.raises(UnknownElementKind):
        load_scene(p)


def test_unknown_format() -> None:
    with pytest.raises(ValueError):
        parse_scene_text("{}", fmt="toml")

"""Scene file loader.

A scene file holds one declarative element tree, as JSON (``.json``) or
YAML (``.yaml``/``.yml``). The top level is the root element mapping, or
``null`` for an empty scene (the compiler then only clears the surface).
Keys may use either the canvas camelCase spelling (``textAlign``,
``startAngle``) or snake_case.

Image elements name their bitmap by path. When an ``image_loader`` is given
each such path is resolved relative to the scene file and replaced by the
loader's return value; otherwise the path string is kept as the handle.

Example scene (YAML)::

    kind: rect
    draw: [{fill: "#202020"}]
    children:
      - kind: text
        x: 20
        y: 40
        value: Hello
        font: 18px sans-serif
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from scenecanvas.core.builders import element_from_dict
from scenecanvas.core.elements import Element
from scenecanvas.core.errors import MalformedElement

__all__ = ["load_scene", "parse_scene_text"]

ImageLoader = Callable[[Path], Any]

_YAML_SUFFIXES = {".yaml", ".yml"}


def _resolve_images(node: Any, base: Path, loader: ImageLoader) -> Any:
    if isinstance(node, list):
        return [_resolve_images(n, base, loader) for n in node]
    if not isinstance(node, dict):
        return node
    out = dict(node)
    if out.get("kind") == "image" and isinstance(out.get("image"), str):
        path = Path(out["image"]).expanduser()
        if not path.is_absolute():
            path = base / path
        out["image"] = loader(path)
    if "children" in out:
        out["children"] = _resolve_images(out["children"], base, loader)
    return out


def parse_scene_text(
    text: str,
    *,
    fmt: str = "json",
    base_dir: Path | None = None,
    image_loader: Optional[ImageLoader] = None,
) -> Element | None:
    """Parse scene *text* in format *fmt* (``"json"`` or ``"yaml"``)."""
    try:
        if fmt == "yaml":
            data = yaml.safe_load(text)
        elif fmt == "json":
            data = json.loads(text)
        else:
            raise ValueError(f"unknown scene format: {fmt!r}")
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise MalformedElement(None, f"cannot parse scene: {exc}") from exc
    if data is None:
        return None
    if image_loader is not None:
        data = _resolve_images(data, base_dir or Path.cwd(), image_loader)
    return element_from_dict(data)


def load_scene(
    path: str | Path, image_loader: Optional[ImageLoader] = None
) -> Element | None:
    """Load the scene at *path*; the format follows the file suffix."""
    p = Path(path)
    fmt = "yaml" if p.suffix.lower() in _YAML_SUFFIXES else "json"
    return parse_scene_text(
        p.read_text(encoding="utf-8"),
        fmt=fmt,
        base_dir=p.parent,
        image_loader=image_loader,
    )

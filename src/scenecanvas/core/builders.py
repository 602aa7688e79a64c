"""Element constructors with per-kind defaults.

Each builder accepts an options mapping (canvas-style camelCase keys such
as ``lineWidth`` or ``startAngle`` are accepted next to snake_case), keyword
fields, and an optional explicit ``children`` argument::

    rect({"x": 10, "y": 10, "width": 50, "height": 20, "draw": [{"fill": "red"}]},
         [text(value="hi", x=4, y=14)])
    rect(x=10, y=10, width=50, height=20, draw=[{"fill": "red"}])

Precedence is kind defaults < options < keyword fields, and an explicit
``children`` argument wins over ``children`` given in options or keywords.
The default values below are part of the visual contract; changing them
changes what frames look like.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence

from scenecanvas.core.elements import (
    DrawOp,
    Element,
    ElementKind,
    LineStyle,
    Point,
    Transformation,
)
from scenecanvas.core.errors import MalformedElement, UnknownElementKind

__all__ = [
    "rect",
    "line",
    "text",
    "polygon",
    "image",
    "arc",
    "translate",
    "rotate",
    "scale",
    "element_from_dict",
]

ChildLike = Any  # Element | Mapping | None
Options = Optional[Mapping[str, Any]]

_KEY_ALIASES = {
    "lineWidth": "line_width",
    "lineCap": "line_cap",
    "lineJoin": "line_join",
    "strokeStyle": "stroke_style",
    "lineDash": "line_dash",
    "textAlign": "text_align",
    "sWidth": "s_width",
    "sHeight": "s_height",
    "startAngle": "start_angle",
    "endAngle": "end_angle",
}

_ELEMENT_FIELDS = frozenset(Element.__dataclass_fields__)

TEXT_DEFAULTS: Dict[str, Any] = {
    "draw": ({"fill": "black"},),
    "text_align": "left",
}
LINE_STYLE_DEFAULTS: Dict[str, Any] = {
    "line_width": 1,
    "line_cap": "butt",
    "line_join": "miter",
    "stroke_style": "black",
}
ARC_DEFAULTS: Dict[str, Any] = {
    "start_angle": 0,
    "end_angle": 2 * math.pi,
    "anticlockwise": False,
}


def _normalize_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {_KEY_ALIASES.get(k, k): v for k, v in data.items()}


# --- coercion helpers -------------------------------------------------------


def _coerce_point(kind: Any, obj: Any) -> Point:
    if isinstance(obj, Point):
        return obj
    try:
        if isinstance(obj, Mapping):
            return Point(obj["x"], obj["y"])
        x, y = obj
        return Point(x, y)
    except (KeyError, TypeError, ValueError):
        raise MalformedElement(kind, f"invalid point {obj!r}") from None


def _coerce_draw_op(kind: Any, obj: Any) -> DrawOp:
    if isinstance(obj, DrawOp):
        return obj
    if not isinstance(obj, Mapping):
        raise MalformedElement(kind, f"invalid draw operation {obj!r}")
    d = _normalize_keys(obj)
    return DrawOp(
        fill=d.get("fill"),
        stroke=d.get("stroke"),
        line_width=d.get("line_width"),
        clear=bool(d.get("clear", False)),
    )


def _coerce_transformation(kind: Any, obj: Any) -> Transformation:
    if isinstance(obj, Transformation):
        return obj
    if not isinstance(obj, Mapping):
        raise MalformedElement(kind, f"invalid transformation {obj!r}")
    tr = obj.get("translate")
    sc = obj.get("scale")
    return Transformation(
        translate=_coerce_point(kind, tr) if tr is not None else None,
        rotate=obj.get("rotate"),
        scale=_coerce_point(kind, sc) if sc is not None else None,
    )


def _coerce_style(kind: Any, obj: Any) -> LineStyle:
    if isinstance(obj, LineStyle):
        return obj
    if not isinstance(obj, Mapping):
        raise MalformedElement(kind, f"invalid line style {obj!r}")
    d = dict(LINE_STYLE_DEFAULTS)
    d.update(_normalize_keys(obj))
    return LineStyle(
        line_width=d["line_width"],
        line_cap=d["line_cap"],
        line_join=d["line_join"],
        stroke_style=d["stroke_style"],
        line_dash=tuple(d.get("line_dash") or ()),
    )


def _coerce_child(obj: ChildLike) -> Optional[Element]:
    if obj is None or isinstance(obj, Element):
        return obj
    if isinstance(obj, Mapping):
        return element_from_dict(obj)
    raise MalformedElement(None, f"child must be an element or mapping, not {obj!r}")


def _seq(kind: Any, name: str, value: Any) -> Sequence[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise MalformedElement(kind, f"{name} must be a sequence")
    return list(value)


def _make_element(kind: ElementKind, data: Mapping[str, Any]) -> Element:
    """Build an Element from normalized keys, ignoring unknown ones."""
    values: Dict[str, Any] = {k: v for k, v in data.items() if k in _ELEMENT_FIELDS}
    values["kind"] = kind
    if values.get("draw") is not None:
        values["draw"] = tuple(
            _coerce_draw_op(kind, op) for op in _seq(kind, "draw", values["draw"])
        )
    if values.get("transformations") is not None:
        values["transformations"] = tuple(
            _coerce_transformation(kind, t)
            for t in _seq(kind, "transformations", values["transformations"])
        )
    else:
        values.pop("transformations", None)
    if values.get("points") is not None:
        values["points"] = tuple(
            _coerce_point(kind, p) for p in _seq(kind, "points", values["points"])
        )
    else:
        values.pop("points", None)
    if values.get("style") is not None:
        values["style"] = _coerce_style(kind, values["style"])
    if values.get("children") is not None:
        values["children"] = tuple(
            _coerce_child(c) for c in _seq(kind, "children", values["children"])
        )
    else:
        values.pop("children", None)
    return Element(**values)


def _build(
    kind: ElementKind,
    defaults: Mapping[str, Any],
    options: Options,
    children: Optional[Sequence[ChildLike]],
    fields: Mapping[str, Any],
) -> Element:
    merged: Dict[str, Any] = dict(defaults)
    if options:
        merged.update(_normalize_keys(options))
    merged.update(_normalize_keys(fields))
    if children is not None:
        merged["children"] = children
    return _make_element(kind, merged)


# --- public builders --------------------------------------------------------


def rect(
    options: Options = None,
    children: Optional[Sequence[ChildLike]] = None,
    **fields: Any,
) -> Element:
    return _build(ElementKind.RECT, {}, options, children, fields)


def text(
    options: Options = None,
    children: Optional[Sequence[ChildLike]] = None,
    **fields: Any,
) -> Element:
    """Text element; defaults to a black fill, left aligned."""
    return _build(ElementKind.TEXT, TEXT_DEFAULTS, options, children, fields)


def line(
    options: Options = None,
    children: Optional[Sequence[ChildLike]] = None,
    **fields: Any,
) -> Element:
    """Polyline stroked with ``style``.

    Style keys not given fall back to lineWidth 1, lineCap ``butt``,
    lineJoin ``miter`` and strokeStyle ``black``.
    """
    return _build(
        ElementKind.LINE, {"style": LINE_STYLE_DEFAULTS}, options, children, fields
    )


def polygon(
    options: Options = None,
    children: Optional[Sequence[ChildLike]] = None,
    **fields: Any,
) -> Element:
    return _build(ElementKind.POLYGON, {}, options, children, fields)


def image(
    options: Options = None,
    children: Optional[Sequence[ChildLike]] = None,
    **fields: Any,
) -> Element:
    return _build(ElementKind.IMAGE, {}, options, children, fields)


def arc(
    options: Options = None,
    children: Optional[Sequence[ChildLike]] = None,
    **fields: Any,
) -> Element:
    """Circular arc; defaults to a full clockwise circle."""
    return _build(ElementKind.ARC, ARC_DEFAULTS, options, children, fields)


def translate(x: float, y: float) -> Transformation:
    return Transformation(translate=Point(x, y))


def rotate(radians: float) -> Transformation:
    return Transformation(rotate=radians)


def scale(x: float, y: float) -> Transformation:
    return Transformation(scale=Point(x, y))


_BUILDERS: Dict[ElementKind, Callable[..., Element]] = {
    ElementKind.RECT: rect,
    ElementKind.TEXT: text,
    ElementKind.LINE: line,
    ElementKind.POLYGON: polygon,
    ElementKind.IMAGE: image,
    ElementKind.ARC: arc,
}


def element_from_dict(data: Mapping[str, Any]) -> Element:
    """Build an element (and its subtree) from a plain mapping.

    ``kind`` selects the builder, so per-kind defaults apply exactly as if
    the builder had been called with *data* as options.
    """
    if not isinstance(data, Mapping):
        raise MalformedElement(None, f"element must be a mapping, not {data!r}")
    raw_kind = data.get("kind")
    try:
        kind = ElementKind(raw_kind)
    except ValueError:
        raise UnknownElementKind(raw_kind) from None
    options = {k: v for k, v in data.items() if k != "kind"}
    return _BUILDERS[kind](options)


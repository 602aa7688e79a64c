"""Scene tree to drawing-instruction compiler.

``compile_element`` walks an :class:`~scenecanvas.core.elements.Element`
tree and returns a flat, ordered list of instructions. It is a pure
function: the same tree always yields an equal list, and nothing outside
the returned list is touched.

Per element the output is::

    save
    <one call per transformation, in order>
    <font set, for non-text kinds with a font>
    <kind-specific paint instructions>
    restore
    <children, each compiled relative to this element's origin>

The save/restore pair brackets the element's own paint only. Children are
positioned from the element's resolved origin, not from the surface
transform its ``transformations`` produce.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from scenecanvas.core.builders import element_from_dict
from scenecanvas.core.elements import (
    ORIGIN,
    TEXT_ALIGNS,
    DrawOp,
    Element,
    ElementKind,
    LineStyle,
    Point,
    Transformation,
)
from scenecanvas.core.errors import MalformedElement, UnknownElementKind
from scenecanvas.core.instructions import RESTORE, SAVE, Call, Instruction, SetProperty

__all__ = [
    "compile_element",
    "compile_frame",
    "with_root_defaults",
]

_Out = List[Instruction]
RootLike = Union[Element, Mapping[str, Any], None]


def compile_element(
    element: Optional[Element], parent_origin: Point = ORIGIN
) -> List[Instruction]:
    """Compile *element* and its subtree into drawing instructions.

    ``None`` compiles to an empty list. Raises :class:`UnknownElementKind`
    or :class:`MalformedElement` for invalid nodes; on failure the caller
    receives no instructions at all.
    """
    out: _Out = []
    _compile_into(out, element, parent_origin)
    return out


def with_root_defaults(root: RootLike, size: Tuple[float, float]) -> Element:
    """Merge the root defaults for a surface of *size* under *root*.

    The defaults describe a full-surface rect that clears the surface.
    Explicit fields on *root* win.
    """
    width, height = size
    defaults: Dict[str, Any] = {
        "kind": ElementKind.RECT,
        "x": 0,
        "y": 0,
        "width": width,
        "height": height,
        "draw": (DrawOp(clear=True),),
    }
    if root is None:
        return Element(**defaults)
    if isinstance(root, Element):
        missing = {
            name: value
            for name, value in defaults.items()
            if getattr(root, name) is None
        }
        return replace(root, **missing) if missing else root
    if isinstance(root, Mapping):
        merged = dict(root)
        for name, value in defaults.items():
            if merged.get(name) is None:
                merged[name] = value
        return element_from_dict(merged)
    raise TypeError(
        f"root must be an Element, a mapping or None, not {type(root).__name__}"
    )


def compile_frame(root: RootLike, size: Tuple[float, float]) -> List[Instruction]:
    """Compile one frame: apply root defaults for *size*, then compile."""
    return compile_element(with_root_defaults(root, size))


# --- tree walk --------------------------------------------------------------


@contextmanager
def _state_frame(out: _Out) -> Iterator[None]:
    out.append(SAVE)
    try:
        yield
    finally:
        out.append(RESTORE)


def _compile_into(out: _Out, element: Optional[Element], parent: Point) -> None:
    if element is None:
        return
    if not isinstance(element, Element):
        raise MalformedElement(None, f"not an element: {element!r}")
    try:
        kind = ElementKind(element.kind)
    except ValueError:
        raise UnknownElementKind(element.kind) from None
    translator = _TRANSLATORS[kind]

    origin = element.resolve_origin(parent)
    with _state_frame(out):
        for t in element.transformations:
            _emit_transformation(out, element, t)
        if element.font is not None:
            out.append(SetProperty("font", element.font))
        translator(out, element, origin)

    for child in element.children:
        _compile_into(out, child, origin)


def _emit_transformation(out: _Out, element: Element, t: Transformation) -> None:
    if not isinstance(t, Transformation) or (
        t.translate is None and t.rotate is None and t.scale is None
    ):
        raise MalformedElement(element.kind, f"empty or invalid transformation {t!r}")
    if t.translate is not None:
        out.append(Call("translate", (t.translate.x, t.translate.y)))
    if t.rotate is not None:
        out.append(Call("rotate", (t.rotate,)))
    if t.scale is not None:
        out.append(Call("scale", (t.scale.x, t.scale.y)))


def _draw_ops(element: Element) -> Tuple[DrawOp, ...]:
    return element.draw or ()


# --- per-kind translators ---------------------------------------------------


def _translate_rect(out: _Out, el: Element, origin: Point) -> None:
    ops = _draw_ops(el)
    if ops and (el.width is None or el.height is None):
        raise MalformedElement(el.kind, "rect requires width and height")
    box = (origin.x, origin.y, el.width, el.height)
    for op in ops:
        if op.fill or op.stroke:
            out.append(SetProperty("lineWidth", op.line_width or 1))
        if op.clear:
            out.append(Call("clearRect", box))
        if op.fill:
            out.append(SetProperty("fillStyle", op.fill))
            out.append(Call("fillRect", box))
        if op.stroke:
            out.append(SetProperty("strokeStyle", op.stroke))
            out.append(Call("strokeRect", box))


def _translate_text(out: _Out, el: Element, origin: Point) -> None:
    if el.value is None:
        raise MalformedElement(el.kind, "text requires a value")
    align = el.text_align or "left"
    if align not in TEXT_ALIGNS:
        raise MalformedElement(el.kind, f"unknown textAlign {align!r}")
    args: Tuple[Any, ...] = (el.value, origin.x, origin.y)
    if el.width is not None:
        args += (el.width,)
    for op in _draw_ops(el):
        out.append(SetProperty("textAlign", align))
        if el.font is not None:
            out.append(SetProperty("font", el.font))
        if op.line_width:
            out.append(SetProperty("lineWidth", op.line_width))
        if op.fill:
            out.append(SetProperty("fillStyle", op.fill))
            out.append(Call("fillText", args))
        if op.stroke:
            out.append(SetProperty("strokeStyle", op.stroke))
            out.append(Call("strokeText", args))


def _translate_line(out: _Out, el: Element, origin: Point) -> None:
    if not el.points:
        raise MalformedElement(el.kind, "line requires at least one point")
    style = el.style or LineStyle()
    out.append(SetProperty("lineWidth", style.line_width))
    out.append(SetProperty("lineCap", style.line_cap))
    out.append(SetProperty("lineJoin", style.line_join))
    out.append(SetProperty("strokeStyle", style.stroke_style))
    if style.line_dash:
        out.append(Call("setLineDash", (tuple(style.line_dash),)))
    out.append(Call("moveTo", (origin.x, origin.y)))
    out.append(Call("beginPath"))
    for p in el.points:
        q = p.offset(origin)
        out.append(Call("lineTo", (q.x, q.y)))
    out.append(Call("stroke"))
    out.append(Call("setLineDash", ((),)))


def _translate_polygon(out: _Out, el: Element, origin: Point) -> None:
    if len(el.points) < 2:
        raise MalformedElement(el.kind, "polygon requires at least two points")
    first, *rest = [p.offset(origin) for p in el.points]
    out.append(Call("beginPath"))
    out.append(Call("moveTo", (first.x, first.y)))
    for q in rest:
        out.append(Call("lineTo", (q.x, q.y)))
    out.append(Call("closePath"))
    for op in _draw_ops(el):
        # One action per entry; fill wins.
        if op.fill:
            out.append(SetProperty("fillStyle", op.fill))
            out.append(Call("fill"))
        elif op.stroke:
            if op.line_width:
                out.append(SetProperty("lineWidth", op.line_width))
            out.append(SetProperty("strokeStyle", op.stroke))
            out.append(Call("stroke"))


def _translate_image(out: _Out, el: Element, origin: Point) -> None:
    if el.image is None:
        raise MalformedElement(el.kind, "image requires an image handle")
    args: List[Any] = [el.image]
    if el.sx is not None:
        source = (el.sx, el.sy, el.s_width, el.s_height)
        if any(v is None for v in source):
            raise MalformedElement(
                el.kind, "source rectangle needs sx, sy, sWidth and sHeight"
            )
        if el.width is None or el.height is None:
            raise MalformedElement(
                el.kind, "source rectangle requires destination width and height"
            )
        args.extend(source)
    args.extend((origin.x, origin.y))
    if el.width is not None or el.height is not None:
        if el.width is None or el.height is None:
            raise MalformedElement(el.kind, "image needs both width and height")
        args.extend((el.width, el.height))
    out.append(Call("drawImage", tuple(args)))


def _translate_arc(out: _Out, el: Element, origin: Point) -> None:
    if el.radius is None:
        raise MalformedElement(el.kind, "arc requires a radius")
    if el.radius < 0:
        raise MalformedElement(el.kind, "arc radius must be non-negative")
    if el.start_angle is None or el.end_angle is None:
        raise MalformedElement(el.kind, "arc requires startAngle and endAngle")
    out.append(Call("beginPath"))
    out.append(
        Call(
            "arc",
            (
                origin.x,
                origin.y,
                el.radius,
                el.start_angle,
                el.end_angle,
                bool(el.anticlockwise),
            ),
        )
    )
    for op in _draw_ops(el):
        if op.fill:
            out.append(SetProperty("fillStyle", op.fill))
            out.append(Call("fill"))
        if op.stroke:
            if op.line_width:
                out.append(SetProperty("lineWidth", op.line_width))
            out.append(SetProperty("strokeStyle", op.stroke))
            out.append(Call("stroke"))


_TRANSLATORS: Dict[ElementKind, Callable[[_Out, Element, Point], None]] = {
    ElementKind.RECT: _translate_rect,
    ElementKind.TEXT: _translate_text,
    ElementKind.LINE: _translate_line,
    ElementKind.POLYGON: _translate_polygon,
    ElementKind.IMAGE: _translate_image,
    ElementKind.ARC: _translate_arc,
}

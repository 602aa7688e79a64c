"""Instruction player: replays instructions against a drawing surface.

The player knows a closed vocabulary of canvas names and maps each onto the
snake_case attribute or method of a :class:`~scenecanvas.render.canvas.DrawingSurface`.
Anything outside that vocabulary is rejected with
:class:`UnsupportedSurfaceOperation`; nothing is ever looked up dynamically
by the raw name.

Application is strictly sequential and has no rollback: if an instruction
fails mid-list, the surface keeps whatever the earlier instructions did.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Tuple

from scenecanvas.core.compiler import RootLike, compile_frame
from scenecanvas.core.errors import UnsupportedSurfaceOperation
from scenecanvas.core.instructions import Call, Instruction, SetProperty

__all__ = [
    "SURFACE_PROPERTIES",
    "SURFACE_CALLS",
    "apply_instructions",
    "render_frame",
]

SURFACE_PROPERTIES: Mapping[str, str] = {
    "lineWidth": "line_width",
    "fillStyle": "fill_style",
    "strokeStyle": "stroke_style",
    "textAlign": "text_align",
    "font": "font",
    "lineCap": "line_cap",
    "lineJoin": "line_join",
}

SURFACE_CALLS: Mapping[str, str] = {
    "fillRect": "fill_rect",
    "strokeRect": "stroke_rect",
    "clearRect": "clear_rect",
    "fillText": "fill_text",
    "strokeText": "stroke_text",
    "moveTo": "move_to",
    "lineTo": "line_to",
    "beginPath": "begin_path",
    "closePath": "close_path",
    "stroke": "stroke",
    "fill": "fill",
    "setLineDash": "set_line_dash",
    "drawImage": "draw_image",
    "arc": "arc",
    "save": "save",
    "restore": "restore",
    "translate": "translate",
    "rotate": "rotate",
    "scale": "scale",
}


def apply_instructions(instructions: Iterable[Instruction], surface: Any) -> None:
    """Apply *instructions* to *surface* in order.

    Property instructions assign the mapped attribute; call instructions
    invoke the mapped method with the arguments positionally. Return values
    are ignored.
    """
    for ins in instructions:
        if isinstance(ins, SetProperty):
            attr = SURFACE_PROPERTIES.get(ins.name)
            if attr is None:
                raise UnsupportedSurfaceOperation(ins.name, "unknown property")
            setattr(surface, attr, ins.value)
        elif isinstance(ins, Call):
            method_name = SURFACE_CALLS.get(ins.name)
            if method_name is None:
                raise UnsupportedSurfaceOperation(ins.name, "unknown call")
            method = getattr(surface, method_name, None)
            if not callable(method):
                raise UnsupportedSurfaceOperation(
                    ins.name, f"{type(surface).__name__} has no {method_name}()"
                )
            method(*ins.args)
        else:
            raise TypeError(f"not an instruction: {ins!r}")


def render_frame(
    root: RootLike, surface: Any, size: Tuple[float, float]
) -> List[Instruction]:
    """Compile *root* for a surface of *size* and apply it to *surface*.

    Returns the applied instructions so callers can inspect or record them.
    """
    instructions = compile_frame(root, size)
    apply_instructions(instructions, surface)
    return instructions

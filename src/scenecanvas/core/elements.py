"""Declarative scene tree types.

An :class:`Element` is an immutable node describing one shape plus its
children. Producers build a fresh tree per frame; the compiler turns it into
a flat instruction list. ``None`` means "absent" for every optional field,
and fields that do not apply to an element's kind are ignored.

Example:
    tree = Element(
        kind=ElementKind.RECT,
        x=10, y=10, width=50, height=20,
        draw=(DrawOp(fill="red"),),
        children=(Element(kind=ElementKind.TEXT, x=4, y=14, value="hi",
                          draw=(DrawOp(fill="white"),)),),
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple

__all__ = [
    "ElementKind",
    "Point",
    "DrawOp",
    "Transformation",
    "LineStyle",
    "Element",
    "ORIGIN",
    "TEXT_ALIGNS",
]


class ElementKind(str, Enum):
    RECT = "rect"
    LINE = "line"
    TEXT = "text"
    POLYGON = "polygon"
    IMAGE = "image"
    ARC = "arc"


TEXT_ALIGNS = frozenset({"left", "center", "right", "start", "end"})


@dataclass(frozen=True, slots=True)
class Point:
    x: float = 0
    y: float = 0

    def offset(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)


ORIGIN = Point(0, 0)


@dataclass(frozen=True, slots=True)
class DrawOp:
    """One paint operation. Several ops on an element run in order."""

    fill: Optional[str] = None
    stroke: Optional[str] = None
    line_width: Optional[float] = None
    clear: bool = False


@dataclass(frozen=True, slots=True)
class Transformation:
    """A surface transform applied before drawing an element.

    Normally exactly one field is set. When several are set they are emitted
    in the order translate, rotate, scale.
    """

    translate: Optional[Point] = None
    rotate: Optional[float] = None  # radians
    scale: Optional[Point] = None


@dataclass(frozen=True, slots=True)
class LineStyle:
    line_width: float = 1
    line_cap: str = "butt"
    line_join: str = "miter"
    stroke_style: str = "black"
    line_dash: Tuple[float, ...] = ()


@dataclass(frozen=True, slots=True)
class Element:
    kind: Optional[ElementKind] = None
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    # None and () differ: only an absent draw list receives root defaults.
    draw: Optional[Tuple[DrawOp, ...]] = None
    transformations: Tuple[Transformation, ...] = ()
    children: Tuple[Optional["Element"], ...] = ()
    font: Optional[str] = None
    # text
    value: Optional[str] = None
    text_align: Optional[str] = None
    # line / polygon
    points: Tuple[Point, ...] = ()
    style: Optional[LineStyle] = None
    # image; ``image`` is an opaque handle understood by the surface
    image: Any = None
    sx: Optional[float] = None
    sy: Optional[float] = None
    s_width: Optional[float] = None
    s_height: Optional[float] = None
    # arc
    radius: Optional[float] = None
    start_angle: Optional[float] = None
    end_angle: Optional[float] = None
    anticlockwise: Optional[bool] = None

    def resolve_origin(self, parent: Point = ORIGIN) -> Point:
        """Return this element's absolute origin given its parent's.

        An absent offset and an explicit ``0`` both leave the parent's
        coordinate unchanged.
        """
        return Point(parent.x + (self.x or 0), parent.y + (self.y or 0))

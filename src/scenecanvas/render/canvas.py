"""Framework-agnostic drawing surface and display backend protocols.

``DrawingSurface`` is the stateful 2D immediate-mode target the instruction
player writes to. Its attributes and methods are the snake_case forms of the
canvas vocabulary in :mod:`scenecanvas.core.player`; any object providing
them can be rendered to (pygame, a recorder in tests, ...).

``DisplayBackend`` owns a surface's lifecycle: creation, resizing, frame
boundaries and export.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, Tuple


class DrawingSurface(Protocol):
    line_width: float
    fill_style: str
    stroke_style: str
    text_align: str
    font: str
    line_cap: str
    line_join: str

    def save(self) -> None:
        ...

    def restore(self) -> None:
        ...

    def translate(self, x: float, y: float) -> None:
        ...

    def rotate(self, angle: float) -> None:
        """Rotate clockwise by *angle* radians."""
        ...

    def scale(self, x: float, y: float) -> None:
        ...

    def fill_rect(self, x: float, y: float, w: float, h: float) -> None:
        ...

    def stroke_rect(self, x: float, y: float, w: float, h: float) -> None:
        ...

    def clear_rect(self, x: float, y: float, w: float, h: float) -> None:
        ...

    def fill_text(
        self, text: str, x: float, y: float, max_width: Optional[float] = None
    ) -> None:
        ...

    def stroke_text(
        self, text: str, x: float, y: float, max_width: Optional[float] = None
    ) -> None:
        ...

    def begin_path(self) -> None:
        ...

    def close_path(self) -> None:
        ...

    def move_to(self, x: float, y: float) -> None:
        ...

    def line_to(self, x: float, y: float) -> None:
        ...

    def arc(
        self,
        x: float,
        y: float,
        radius: float,
        start_angle: float,
        end_angle: float,
        anticlockwise: bool = False,
    ) -> None:
        ...

    def fill(self) -> None:
        ...

    def stroke(self) -> None:
        ...

    def set_line_dash(self, segments: Sequence[float]) -> None:
        ...

    def draw_image(self, image: Any, *args: float) -> None:
        """Draw *image* using the 2, 4 or 8 coordinate canvas forms."""
        ...


class DisplayBackend(Protocol):
    def size(self) -> Tuple[int, int]:
        ...

    def resize(self, size: Tuple[int, int]) -> None:
        ...

    def begin_frame(self) -> DrawingSurface:
        """Return the surface for a new frame with fresh drawing state."""
        ...

    def end_frame(self) -> None:
        ...

    def save_png(self, path: str) -> None:
        ...

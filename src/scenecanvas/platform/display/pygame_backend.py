"""Pygame-based drawing surface and DisplayBackend with headless support.

``PygameSurface`` gives a pygame ``Surface`` the stateful 2D canvas model the
instruction player expects: a save/restore state stack, an affine transform,
path building with fill/stroke, rect and text primitives, images and line
dashes. It is suitable for deterministic, headless tests by setting the
environment variable SDL_VIDEODRIVER=dummy before importing pygame.

Example:
    import os
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    from scenecanvas.platform.display.pygame_backend import PygameDisplayBackend

    backend = PygameDisplayBackend(size=(320, 240))
    surface = backend.begin_frame()
    surface.fill_style = "red"
    surface.fill_rect(10, 10, 100, 50)
    backend.end_frame()
    backend.save_png("/tmp/frame.png")
"""

from __future__ import annotations

import logging
import math
import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple

from scenecanvas.render.canvas import DisplayBackend
from scenecanvas.render.fonts import DEFAULT_FONT, FontCache, parse_css_font

pg: Any = None
try:  # pragma: no cover - import guard for environments without SDL
    import pygame as _pg

    pg = _pg
except Exception:  # pragma: no cover
    pg = None

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int, int]
Matrix = Tuple[float, float, float, float, float, float]

_IDENTITY: Matrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)
_TRANSPARENT: Color = (0, 0, 0, 0)
_LINE_CAPS = frozenset({"butt", "round", "square"})
_LINE_JOINS = frozenset({"miter", "round", "bevel"})
_TEXT_ALIGNS = frozenset({"left", "center", "right", "start", "end"})
_FUNC_COLOR_RE = re.compile(r"^rgba?\((.*)\)$")
_ARC_SEGMENTS_PER_TURN = 64


def _require_pygame() -> Any:
    if pg is None:
        raise RuntimeError(
            "pygame is not available. "
            "Ensure it is installed and that SDL is configured."
        )
    return pg


def _channel(tok: str) -> int:
    if tok.endswith("%"):
        return int(round(float(tok[:-1]) * 2.55))
    return int(round(float(tok)))


def parse_css_color(value: Any) -> Color | None:
    """Return RGBA for a CSS color string, or None if unrecognised.

    Supports named colors, ``transparent``, ``#rgb``, ``#rgba``, ``#rrggbb``,
    ``#rrggbbaa`` and ``rgb()``/``rgba()``.
    """
    if not isinstance(value, str):
        return None
    s = value.strip().lower()
    if s == "transparent":
        return _TRANSPARENT
    try:
        if s.startswith("#"):
            h = s[1:]
            if len(h) in (3, 4):
                h = "".join(ch * 2 for ch in h)
            if len(h) == 6:
                h += "ff"
            if len(h) != 8:
                return None
            r, g, b, a = (int(h[i : i + 2], 16) for i in range(0, 8, 2))
            return (r, g, b, a)
        m = _FUNC_COLOR_RE.match(s)
        if m:
            parts = [p for p in re.split(r"[\s,/]+", m.group(1).strip()) if p]
            if len(parts) not in (3, 4):
                return None
            r, g, b = (max(0, min(255, _channel(p))) for p in parts[:3])
            a = 255
            if len(parts) == 4:
                tok = parts[3]
                alpha = float(tok[:-1]) / 100.0 if tok.endswith("%") else float(tok)
                a = int(round(max(0.0, min(1.0, alpha)) * 255))
            return (r, g, b, a)
    except ValueError:
        return None
    named = _require_pygame().color.THECOLORS.get(s)
    if named is None:
        return None
    return (int(named[0]), int(named[1]), int(named[2]), int(named[3]))


@dataclass(slots=True)
class _State:
    fill_style: str = "#000000"
    stroke_style: str = "#000000"
    fill_rgba: Color = (0, 0, 0, 255)
    stroke_rgba: Color = (0, 0, 0, 255)
    line_width: float = 1.0
    line_cap: str = "butt"
    line_join: str = "miter"
    font: str = DEFAULT_FONT
    text_align: str = "start"
    line_dash: Tuple[float, ...] = ()
    matrix: Matrix = _IDENTITY


@dataclass(slots=True)
class _SubPath:
    points: List[Tuple[float, float]] = field(default_factory=list)
    closed: bool = False


def _dash_segments(
    pts: Sequence[Tuple[float, float]], pattern: Sequence[float]
) -> List[List[Tuple[float, float]]]:
    """Split a polyline into the "on" runs of a dash pattern."""
    runs: List[List[Tuple[float, float]]] = []
    idx = 0
    remaining = pattern[0]
    on = True
    current: List[Tuple[float, float]] = [pts[0]]
    for (x0, y0), (x1, y1) in zip(pts, pts[1:]):
        seg_len = math.hypot(x1 - x0, y1 - y0)
        pos = 0.0
        while seg_len - pos > remaining:
            pos += remaining
            t = pos / seg_len
            p = (x0 + (x1 - x0) * t, y0 + (y1 - y0) * t)
            if on:
                current.append(p)
                runs.append(current)
            current = [p]
            on = not on
            idx = (idx + 1) % len(pattern)
            remaining = pattern[idx]
        remaining -= seg_len - pos
        current.append((x1, y1))
    if on and len(current) > 1:
        runs.append(current)
    return runs


class PygameSurface:
    """Canvas-style 2D drawing surface backed by a pygame ``Surface``.

    Attributes and methods follow the snake_case names listed in
    :mod:`scenecanvas.core.player`. Invalid property values are ignored, as a
    browser canvas ignores them. ``stroke_text`` outlines glyphs by stamping
    them around the pen position; pygame has no native text stroking.
    """

    def __init__(self, surface: Any, font_cache: FontCache | None = None) -> None:
        self._surface = surface
        self._fonts = font_cache or FontCache()
        self.reset()

    # --- lifecycle ---------------------------------------------------------

    @property
    def raw(self) -> Any:
        """The underlying pygame Surface."""
        return self._surface

    @property
    def width(self) -> int:
        return int(self._surface.get_width())

    @property
    def height(self) -> int:
        return int(self._surface.get_height())

    def reset(self) -> None:
        """Drop state, saved states and the current path; keep pixels."""
        self._state = _State()
        self._stack: List[_State] = []
        self._path: List[_SubPath] = []

    # --- properties --------------------------------------------------------

    @property
    def fill_style(self) -> str:
        return self._state.fill_style

    @fill_style.setter
    def fill_style(self, value: str) -> None:
        rgba = parse_css_color(value)
        if rgba is not None:
            self._state.fill_style = value
            self._state.fill_rgba = rgba

    @property
    def stroke_style(self) -> str:
        return self._state.stroke_style

    @stroke_style.setter
    def stroke_style(self, value: str) -> None:
        rgba = parse_css_color(value)
        if rgba is not None:
            self._state.stroke_style = value
            self._state.stroke_rgba = rgba

    @property
    def line_width(self) -> float:
        return self._state.line_width

    @line_width.setter
    def line_width(self, value: float) -> None:
        try:
            v = float(value)
        except (TypeError, ValueError):
            return
        if math.isfinite(v) and v > 0:
            self._state.line_width = v

    @property
    def line_cap(self) -> str:
        return self._state.line_cap

    @line_cap.setter
    def line_cap(self, value: str) -> None:
        if value in _LINE_CAPS:
            self._state.line_cap = value

    @property
    def line_join(self) -> str:
        return self._state.line_join

    @line_join.setter
    def line_join(self, value: str) -> None:
        if value in _LINE_JOINS:
            self._state.line_join = value

    @property
    def font(self) -> str:
        return self._state.font

    @font.setter
    def font(self, value: str) -> None:
        if parse_css_font(value) is not None:
            self._state.font = value

    @property
    def text_align(self) -> str:
        return self._state.text_align

    @text_align.setter
    def text_align(self, value: str) -> None:
        if value in _TEXT_ALIGNS:
            self._state.text_align = value

    # --- state and transform -----------------------------------------------

    def save(self) -> None:
        self._stack.append(replace(self._state))

    def restore(self) -> None:
        # Unbalanced restore is a no-op, like canvas
        if self._stack:
            self._state = self._stack.pop()

    def translate(self, x: float, y: float) -> None:
        a, b, c, d, e, f = self._state.matrix
        self._state.matrix = (a, b, c, d, e + a * x + c * y, f + b * x + d * y)

    def rotate(self, angle: float) -> None:
        a, b, c, d, e, f = self._state.matrix
        cos, sin = math.cos(angle), math.sin(angle)
        self._state.matrix = (
            a * cos + c * sin,
            b * cos + d * sin,
            c * cos - a * sin,
            d * cos - b * sin,
            e,
            f,
        )

    def scale(self, x: float, y: float) -> None:
        a, b, c, d, e, f = self._state.matrix
        self._state.matrix = (a * x, b * x, c * y, d * y, e, f)

    @property
    def matrix(self) -> Matrix:
        return self._state.matrix

    def _to_device(self, x: float, y: float) -> Tuple[float, float]:
        a, b, c, d, e, f = self._state.matrix
        return (a * x + c * y + e, b * x + d * y + f)

    def _scale_factor(self) -> float:
        a, b, c, d, _, _ = self._state.matrix
        return math.sqrt(abs(a * d - b * c)) or 1.0

    def _stroke_px(self) -> int:
        return max(1, int(round(self._state.line_width * self._scale_factor())))

    # --- raw drawing helpers -----------------------------------------------

    def _paint(self, rgba: Color, draw: Callable[[Any, Color], None]) -> None:
        """Run *draw* on the surface, alpha-blending translucent colors."""
        if rgba[3] == 255:
            draw(self._surface, rgba)
            return
        if rgba[3] == 0:
            return
        layer = pg.Surface(self._surface.get_size(), flags=pg.SRCALPHA)
        draw(layer, rgba)
        self._surface.blit(layer, (0, 0))

    def _rect_corners(
        self, x: float, y: float, w: float, h: float
    ) -> List[Tuple[float, float]]:
        return [
            self._to_device(x, y),
            self._to_device(x + w, y),
            self._to_device(x + w, y + h),
            self._to_device(x, y + h),
        ]

    def _stroke_polyline(
        self, surf: Any, rgba: Color, pts: Sequence[Tuple[float, float]], closed: bool
    ) -> None:
        width = self._stroke_px()
        if self._state.line_dash:
            if closed:
                pts = list(pts) + [pts[0]]
            sf = self._scale_factor()
            pattern = [max(1e-3, d * sf) for d in self._state.line_dash]
            for run in _dash_segments(pts, pattern):
                pg.draw.lines(surf, rgba, False, run, width)
        else:
            pg.draw.lines(surf, rgba, closed, list(pts), width)
        if self._state.line_cap == "round" and width > 2 and not closed:
            for p in (pts[0], pts[-1]):
                pg.draw.circle(surf, rgba, p, width / 2.0)

    def _blit_transformed(self, image: Any, x: float, y: float) -> None:
        """Blit *image* with its top-left at user-space (x, y)."""
        a, b, c, d, _, _ = self._state.matrix
        if (a, b, c, d) == (1.0, 0.0, 0.0, 1.0):
            dx, dy = self._to_device(x, y)
            self._surface.blit(image, (int(round(dx)), int(round(dy))))
            return
        w, h = image.get_size()
        angle = -math.degrees(math.atan2(b, a))
        zoom = math.hypot(a, b)
        turned = pg.transform.rotozoom(image, angle, zoom)
        cx, cy = self._to_device(x + w / 2.0, y + h / 2.0)
        tw, th = turned.get_size()
        pos = (int(round(cx - tw / 2.0)), int(round(cy - th / 2.0)))
        self._surface.blit(turned, pos)

    # --- rectangles --------------------------------------------------------

    def fill_rect(self, x: float, y: float, w: float, h: float) -> None:
        if w == 0 or h == 0:
            return
        corners = self._rect_corners(x, y, w, h)
        self._paint(self._state.fill_rgba, lambda s, c: pg.draw.polygon(s, c, corners))

    def stroke_rect(self, x: float, y: float, w: float, h: float) -> None:
        corners = self._rect_corners(x, y, w, h)
        self._paint(
            self._state.stroke_rgba,
            lambda s, c: self._stroke_polyline(s, c, corners, True),
        )

    def clear_rect(self, x: float, y: float, w: float, h: float) -> None:
        if w == 0 or h == 0:
            return
        # pygame.draw writes RGBA without blending, so this clears pixels
        pg.draw.polygon(self._surface, _TRANSPARENT, self._rect_corners(x, y, w, h))

    # --- paths -------------------------------------------------------------

    def begin_path(self) -> None:
        self._path = []

    def move_to(self, x: float, y: float) -> None:
        self._path.append(_SubPath([self._to_device(x, y)]))

    def line_to(self, x: float, y: float) -> None:
        if not self._path:
            self.move_to(x, y)
            return
        self._path[-1].points.append(self._to_device(x, y))

    def close_path(self) -> None:
        if not self._path or not self._path[-1].points:
            return
        current = self._path[-1]
        current.closed = True
        self._path.append(_SubPath([current.points[0]]))

    def arc(
        self,
        x: float,
        y: float,
        radius: float,
        start_angle: float,
        end_angle: float,
        anticlockwise: bool = False,
    ) -> None:
        if radius < 0:
            raise ValueError(f"arc radius must be non-negative: {radius}")
        tau = 2.0 * math.pi
        if not anticlockwise:
            span = end_angle - start_angle
            sweep = tau if span >= tau else span % tau
        else:
            span = start_angle - end_angle
            sweep = -(tau if span >= tau else span % tau)
        steps = max(2, int(math.ceil(abs(sweep) / tau * _ARC_SEGMENTS_PER_TURN)))
        pts = [
            self._to_device(
                x + radius * math.cos(start_angle + sweep * i / steps),
                y + radius * math.sin(start_angle + sweep * i / steps),
            )
            for i in range(steps + 1)
        ]
        if self._path and self._path[-1].points and not self._path[-1].closed:
            self._path[-1].points.extend(pts)
        else:
            self._path.append(_SubPath(pts))

    def fill(self) -> None:
        shapes = [sp.points for sp in self._path if len(sp.points) >= 3]
        if not shapes:
            return

        def _draw(s: Any, c: Color) -> None:
            for pts in shapes:
                pg.draw.polygon(s, c, pts)

        self._paint(self._state.fill_rgba, _draw)

    def stroke(self) -> None:
        subpaths = [sp for sp in self._path if len(sp.points) >= 2]
        if not subpaths:
            return

        def _draw(s: Any, c: Color) -> None:
            for sp in subpaths:
                self._stroke_polyline(s, c, sp.points, sp.closed)

        self._paint(self._state.stroke_rgba, _draw)

    def set_line_dash(self, segments: Sequence[float]) -> None:
        try:
            values = [float(v) for v in segments]
        except (TypeError, ValueError):
            return
        if any(not math.isfinite(v) or v < 0 for v in values):
            return
        if not any(values):
            values = []
        if len(values) % 2:
            values = values * 2
        self._state.line_dash = tuple(values)

    def get_line_dash(self) -> List[float]:
        return list(self._state.line_dash)

    # --- text --------------------------------------------------------------

    def _text(
        self, text: str, x: float, y: float, max_width: Optional[float], rgba: Color
    ) -> Tuple[Any, float, float]:
        spec = parse_css_font(self._state.font) or parse_css_font(DEFAULT_FONT)
        assert spec is not None
        font = self._fonts.get(spec)
        glyphs = font.render(str(text), True, rgba[:3])
        if max_width is not None and 0 < max_width < glyphs.get_width():
            glyphs = pg.transform.smoothscale(
                glyphs, (max(1, int(max_width)), glyphs.get_height())
            )
        if rgba[3] < 255:
            glyphs.set_alpha(rgba[3])
        w = glyphs.get_width()
        align = self._state.text_align
        if align == "center":
            left = x - w / 2.0
        elif align in ("right", "end"):
            left = x - w
        else:
            left = x
        # y is the alphabetic baseline
        top = y - font.get_ascent()
        return glyphs, left, top

    def fill_text(
        self, text: str, x: float, y: float, max_width: Optional[float] = None
    ) -> None:
        glyphs, left, top = self._text(text, x, y, max_width, self._state.fill_rgba)
        self._blit_transformed(glyphs, left, top)

    def stroke_text(
        self, text: str, x: float, y: float, max_width: Optional[float] = None
    ) -> None:
        glyphs, left, top = self._text(
            text, x, y, max_width, self._state.stroke_rgba
        )
        r = max(1, int(round(self._state.line_width / 2.0)))
        offsets = [(ox, oy) for ox in (-r, 0, r) for oy in (-r, 0, r) if ox or oy]
        for ox, oy in offsets:
            self._blit_transformed(glyphs, left + ox, top + oy)

    def measure_text(self, text: str) -> Tuple[int, int]:
        spec = parse_css_font(self._state.font) or parse_css_font(DEFAULT_FONT)
        assert spec is not None
        w, h = self._fonts.get(spec).size(str(text))
        return int(w), int(h)

    # --- images ------------------------------------------------------------

    def draw_image(self, image: Any, *args: float) -> None:
        iw, ih = image.get_size()
        if len(args) == 2:
            (dx, dy), (dw, dh) = args, (iw, ih)
            src = image
        elif len(args) == 4:
            dx, dy, dw, dh = args
            src = image
        elif len(args) == 8:
            sx, sy, sw, sh, dx, dy, dw, dh = args
            area = pg.Rect(int(sx), int(sy), int(sw), int(sh)).clip(
                pg.Rect(0, 0, iw, ih)
            )
            if area.width == 0 or area.height == 0:
                return
            src = image.subsurface(area)
        else:
            raise TypeError(
                f"draw_image takes 2, 4 or 8 coordinates, got {len(args)}"
            )
        if dw == 0 or dh == 0:
            return
        size = (max(1, int(round(abs(dw)))), max(1, int(round(abs(dh)))))
        if size != src.get_size():
            src = pg.transform.scale(src, size)
        self._blit_transformed(src, dx, dy)


class PygameDisplayBackend(DisplayBackend):
    """Pygame implementation of DisplayBackend with offscreen surface.

    Drawing always goes to an offscreen SRCALPHA surface. When a window is
    requested (and SDL is not in dummy mode) ``end_frame`` copies the
    surface to it and flips.
    """

    def __init__(
        self,
        size: Tuple[int, int] = (640, 480),
        *,
        create_window: bool = False,
        title: str = "SceneCanvas",
    ) -> None:
        local_pg = _require_pygame()

        # Ensure headless if requested
        if os.environ.get("SDL_VIDEODRIVER") == "dummy":
            os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

        if not local_pg.get_init():
            local_pg.init()
        if not local_pg.font.get_init():
            local_pg.font.init()

        self._width, self._height = int(size[0]), int(size[1])
        self._title = title
        self._window_surface = None
        self._font_cache = FontCache()
        if create_window and os.environ.get("SDL_VIDEODRIVER") != "dummy":
            self._window_surface = self._open_window()
        self._canvas = self._new_canvas()

    def _open_window(self) -> Any:
        try:
            window = pg.display.set_mode((self._width, self._height), pg.RESIZABLE)
            pg.display.set_caption(self._title)
            return window
        except pg.error:
            logger.warning(
                "window creation failed; falling back to offscreen. "
                "Check SDL_VIDEODRIVER and display permissions."
            )
            return None

    def _new_canvas(self) -> PygameSurface:
        raw = pg.Surface((self._width, self._height), flags=pg.SRCALPHA)
        return PygameSurface(raw, self._font_cache)

    @property
    def has_window(self) -> bool:
        return self._window_surface is not None

    def size(self) -> Tuple[int, int]:
        return (self._width, self._height)

    def resize(self, size: Tuple[int, int]) -> None:
        """Recreate the surface at *size*; like a canvas, contents are lost."""
        width, height = max(1, int(size[0])), max(1, int(size[1]))
        if (width, height) == (self._width, self._height):
            return
        self._width, self._height = width, height
        if self._window_surface is not None:
            self._window_surface = self._open_window()
        self._canvas = self._new_canvas()
        logger.info("surface resized to %dx%d", width, height)

    def begin_frame(self) -> PygameSurface:
        """Return the canvas with fresh drawing state; pixels are kept."""
        self._canvas.reset()
        return self._canvas

    def end_frame(self) -> None:
        if self._window_surface is not None:
            self._window_surface.fill((0, 0, 0))
            self._window_surface.blit(self._canvas.raw, (0, 0))
            pg.display.flip()

    def save_png(self, path: str) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        pg.image.save(self._canvas.raw, path)

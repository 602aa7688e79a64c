from __future__ import annotations

import math
import os
from pathlib import Path

import pytest

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

pygame = pytest.importorskip("pygame")

from scenecanvas.app.driver import CanvasDriver  # noqa: E402
from scenecanvas.core.builders import arc, line, rect, text  # noqa: E402
from scenecanvas.platform.display.pygame_backend import (  # noqa: E402
    PygameDisplayBackend,
    PygameSurface,
    parse_css_color,
)

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)
CLEAR = (0, 0, 0, 0)


@pytest.fixture
def backend() -> PygameDisplayBackend:
    return PygameDisplayBackend(size=(100, 100))


@pytest.fixture
def surf(backend: PygameDisplayBackend) -> PygameSurface:
    return backend.begin_frame()


def px(surf: PygameSurface, x: int, y: int) -> tuple[int, int, int, int]:
    return tuple(surf.raw.get_at((x, y)))  # type: ignore[return-value]


@pytest.mark.parametrize(
    "value,expected",
    [
        ("red", RED),
        ("#f00", RED),
        ("#0000FF", BLUE),
        ("#00ff0080", (0, 255, 0, 128)),
        ("rgb(255, 0, 0)", RED),
        ("rgba(0, 0, 255, 0.5)", (0, 0, 255, 128)),
        ("rgb(100%, 0%, 0%)", RED),
        ("transparent", CLEAR),
        ("not-a-color", None),
        ("#12", None),
        (42, None),
    ],
)
def test_parse_css_color(value: object, expected: object) -> None:
    assert parse_css_color(value) == expected


def test_fill_and_clear_rect(surf: PygameSurface) -> None:
    surf.fill_style = "red"
    surf.fill_rect(10, 10, 20, 20)
    assert px(surf, 15, 15) == RED
    assert px(surf, 5, 5) == CLEAR
    surf.clear_rect(12, 12, 5, 5)
    assert px(surf, 14, 14) == CLEAR
    assert px(surf, 25, 25) == RED


def test_invalid_property_values_are_ignored(surf: PygameSurface) -> None:
    surf.fill_style = "blue"
    surf.fill_style = "bogus"
    assert surf.fill_style == "blue"
    surf.line_width = -2
    assert surf.line_width == 1.0
    surf.text_align = "middle"
    assert surf.text_align == "start"
    surf.line_join = "mitter"
    assert surf.line_join == "miter"
    surf.font = "huge"
    assert surf.font == "10px sans-serif"


def test_save_restore_state(surf: PygameSurface) -> None:
    surf.restore()  # unbalanced restore is harmless
    surf.fill_style = "red"
    surf.save()
    surf.fill_style = "blue"
    surf.translate(10, 10)
    surf.restore()
    assert surf.fill_style == "red"
    assert surf.matrix == (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


def test_transform_composition(surf: PygameSurface) -> None:
    surf.translate(20, 20)
    surf.rotate(math.pi / 2)
    a, b, c, d, e, f = surf.matrix
    assert (a, b, c, d) == pytest.approx((0.0, 1.0, -1.0, 0.0), abs=1e-9)
    assert (e, f) == (20, 20)
    surf.fill_style = "red"
    surf.fill_rect(0, 0, 10, 2)
    assert px(surf, 19, 25) == RED
    assert px(surf, 25, 19) == CLEAR


def test_scale_applies_to_rects(surf: PygameSurface) -> None:
    surf.scale(2, 2)
    surf.fill_style = "red"
    surf.fill_rect(10, 10, 10, 10)
    assert px(surf, 35, 35) == RED


def test_path_fill_and_stroke(surf: PygameSurface) -> None:
    surf.begin_path()
    surf.move_to(10, 10)
    surf.line_to(60, 10)
    surf.line_to(10, 60)
    surf.close_path()
    surf.fill_style = "red"
    surf.fill()
    assert px(surf, 20, 20) == RED
    assert px(surf, 55, 55) == CLEAR

    surf.begin_path()
    surf.move_to(0, 80)
    surf.line_to(99, 80)
    surf.stroke_style = "blue"
    surf.stroke()
    assert px(surf, 50, 80) == BLUE


def test_arc_fill(surf: PygameSurface) -> None:
    surf.begin_path()
    surf.arc(50, 50, 20, 0, 2 * math.pi)
    surf.fill_style = "red"
    surf.fill()
    assert px(surf, 50, 50) == RED
    assert px(surf, 50, 75) == CLEAR
    with pytest.raises(ValueError):
        surf.arc(0, 0, -1, 0, 1)


def test_line_dash(surf: PygameSurface) -> None:
    surf.set_line_dash((10, 10))
    assert surf.get_line_dash() == [10.0, 10.0]
    surf.begin_path()
    surf.move_to(0, 10)
    surf.line_to(99, 10)
    surf.stroke_style = "red"
    surf.stroke()
    assert px(surf, 5, 10) == RED
    assert px(surf, 15, 10) == CLEAR
    assert px(surf, 25, 10) == RED

    surf.set_line_dash([3])
    assert surf.get_line_dash() == [3.0, 3.0]
    surf.set_line_dash([1, -1])
    assert surf.get_line_dash() == [3.0, 3.0]
    surf.set_line_dash(())
    assert surf.get_line_dash() == []


def test_text_is_drawn_and_aligned(surf: PygameSurface) -> None:
    surf.font = "bold 16px sans-serif"
    surf.fill_style = "red"
    surf.text_align = "right"
    surf.fill_text("Hi", 90, 50)
    box = surf.raw.get_bounding_rect()
    assert box.width > 0 and box.height > 0
    assert box.right <= 91
    assert box.bottom <= 55


def test_text_max_width_squeezes(surf: PygameSurface) -> None:
    surf.font = "20px sans-serif"
    surf.fill_text("a rather long line", 0, 40, 30)
    assert surf.raw.get_bounding_rect().width <= 31


def test_stroke_text_draws(surf: PygameSurface) -> None:
    surf.stroke_style = "blue"
    surf.stroke_text("X", 20, 40)
    assert surf.raw.get_bounding_rect().width > 0


def test_draw_image_forms(surf: PygameSurface) -> None:
    img = pygame.Surface((4, 4), flags=pygame.SRCALPHA)
    img.fill(BLUE)
    surf.draw_image(img, 10, 10)
    assert px(surf, 11, 11) == BLUE
    assert px(surf, 15, 15) == CLEAR

    surf.draw_image(img, 50, 50, 20, 20)
    assert px(surf, 65, 65) == BLUE

    surf.draw_image(img, 0, 0, 2, 2, 80, 0, 10, 10)
    assert px(surf, 85, 5) == BLUE

    with pytest.raises(TypeError):
        surf.draw_image(img, 1, 2, 3)


def test_backend_lifecycle(backend: PygameDisplayBackend, tmp_path: Path) -> None:
    assert backend.size() == (100, 100)
    assert not backend.has_window
    backend.resize((64, 32))
    assert backend.size() == (64, 32)
    surf = backend.begin_frame()
    assert (surf.width, surf.height) == (64, 32)
    backend.end_frame()
    out = tmp_path / "frames" / "frame.png"
    backend.save_png(str(out))
    assert out.exists() and out.stat().st_size > 0


def test_driver_renders_onto_pygame(backend: PygameDisplayBackend) -> None:
    driver = CanvasDriver(backend)
    scene = rect(
        draw=[{"clear": True}, {"fill": "#ffffff"}],
        children=[
            rect(x=10, y=10, width=10, height=10, draw=[{"fill": "red"}]),
            line(points=[(0, 0), (40, 0)], x=0, y=60, style={"strokeStyle": "blue"}),
            arc(x=70, y=70, radius=5, draw=[{"fill": "red"}]),
            text(x=5, y=95, value="ok"),
        ],
    )
    driver.render(scene)
    surf = backend.begin_frame()
    assert px(surf, 15, 15) == RED
    assert px(surf, 20, 60) == BLUE
    assert px(surf, 70, 70) == RED
    assert px(surf, 50, 50) == (255, 255, 255, 255)

    driver.render(None)
    assert px(surf, 15, 15) == CLEAR


def test_begin_frame_resets_state_left_by_failed_frame(
    backend: PygameDisplayBackend,
) -> None:
    surf = backend.begin_frame()
    surf.save()
    surf.translate(30, 30)
    surf.fill_style = "red"
    surf.fill_rect(0, 0, 5, 5)
    # frame abandoned without restore
    surf = backend.begin_frame()
    assert surf.matrix == (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)
    assert surf.fill_style == "#000000"
    assert px(surf, 32, 32) == RED
    surf.fill_style = "blue"
    surf.fill_rect(0, 0, 5, 5)
    assert px(surf, 2, 2) == BLUE


def test_driver_drops_negative_arc_radius_frame(backend: PygameDisplayBackend) -> None:
    driver = CanvasDriver(backend, drop_failed_frames=True)
    bad = rect(children=[arc(radius=-3, draw=[{"fill": "red"}])])
    assert driver.render(bad) == []
    assert driver.frames_dropped == 1
    driver.render(rect(x=0, y=0, width=10, height=10, draw=[{"fill": "red"}]))
    assert driver.frames_rendered == 1
    assert px(backend.begin_frame(), 5, 5) == RED

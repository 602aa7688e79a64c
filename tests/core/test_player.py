from __future__ import annotations

import pytest
from conftest import RecordingSurface

from scenecanvas.core.builders import polygon, rect, text
from scenecanvas.core.compiler import compile_element
from scenecanvas.core.errors import UnsupportedSurfaceOperation
from scenecanvas.core.instructions import Call, SetProperty
from scenecanvas.core.player import (
    SURFACE_CALLS,
    SURFACE_PROPERTIES,
    apply_instructions,
    render_frame,
)


def test_vocabulary_is_closed() -> None:
    assert set(SURFACE_PROPERTIES) == {
        "lineWidth",
        "fillStyle",
        "strokeStyle",
        "textAlign",
        "font",
        "lineCap",
        "lineJoin",
    }
    assert len(SURFACE_CALLS) == 19


def test_apply_maps_names_onto_surface(surface: RecordingSurface) -> None:
    apply_instructions(
        [
            Call("save"),
            SetProperty("fillStyle", "red"),
            Call("fillRect", (1, 2, 3, 4)),
            Call("setLineDash", ((5, 15),)),
            Call("restore"),
        ],
        surface,
    )
    assert surface.log == [
        ("call", "save", ()),
        ("set", "fill_style", "red"),
        ("call", "fill_rect", (1, 2, 3, 4)),
        ("call", "set_line_dash", ((5, 15),)),
        ("call", "restore", ()),
    ]
    assert surface.fill_style == "red"


def test_polygon_replays_in_order(surface: RecordingSurface) -> None:
    el = polygon(points=[(1, 1), (30, 1), (15, 10)], draw=[{"fill": "red"}])
    apply_instructions(compile_element(el), surface)
    assert [entry[1] for entry in surface.log] == [
        "save",
        "begin_path",
        "move_to",
        "line_to",
        "line_to",
        "close_path",
        "fill_style",
        "fill",
        "restore",
    ]


def test_render_frame_returns_applied_instructions(surface: RecordingSurface) -> None:
    out = render_frame(None, surface, (200, 100))
    assert out == [Call("save"), Call("clearRect", (0, 0, 200, 100)), Call("restore")]
    assert surface.log[1] == ("call", "clear_rect", (0, 0, 200, 100))


def test_repeated_runs_give_identical_surface_calls() -> None:
    tree = rect(
        width=20,
        height=20,
        draw=[{"fill": "red"}],
        children=[text(value="a", x=2, y=2, width=10)],
    )
    logs = []
    for _ in range(3):
        fresh = RecordingSurface()
        render_frame(tree, fresh, (64, 64))
        logs.append(fresh.log)
    assert logs[0] == logs[1] == logs[2]


def test_unknown_names_are_rejected(surface: RecordingSurface) -> None:
    with pytest.raises(UnsupportedSurfaceOperation) as info:
        apply_instructions([Call("drawFocusIfNeeded")], surface)
    assert info.value.name == "drawFocusIfNeeded"
    with pytest.raises(UnsupportedSurfaceOperation):
        apply_instructions([SetProperty("globalAlpha", 0.5)], surface)


def test_missing_surface_method_is_unsupported() -> None:
    class NoArcs:
        def save(self) -> None:
            pass

    with pytest.raises(UnsupportedSurfaceOperation):
        apply_instructions(
            [Call("save"), Call("arc", (0, 0, 1, 0, 1, False))], NoArcs()
        )


def test_failure_leaves_earlier_effects(surface: RecordingSurface) -> None:
    with pytest.raises(UnsupportedSurfaceOperation):
        apply_instructions(
            [Call("save"), SetProperty("fillStyle", "red"), Call("bogus")], surface
        )
    # no rollback
    assert surface.log == [("call", "save", ()), ("set", "fill_style", "red")]


def test_non_instruction_is_type_error(surface: RecordingSurface) -> None:
    with pytest.raises(TypeError):
        apply_instructions([("call", "save")], surface)  # type: ignore[list-item]

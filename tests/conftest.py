from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest


class RecordingSurface:
    """Drawing surface that records every property write and method call.

    ``log`` entries are ``("set", name, value)`` or ``("call", name, args)``
    using the surface's snake_case names.
    """

    def __init__(self) -> None:
        self.log: list[tuple[str, str, Any]] = []

    def _prop(name: str) -> property:  # type: ignore[misc]
        def _get(self: "RecordingSurface") -> Any:
            return self.__dict__.get("_" + name)

        def _set(self: "RecordingSurface", value: Any) -> None:
            self.log.append(("set", name, value))
            self.__dict__["_" + name] = value

        return property(_get, _set)

    line_width = _prop("line_width")
    fill_style = _prop("fill_style")
    stroke_style = _prop("stroke_style")
    text_align = _prop("text_align")
    font = _prop("font")
    line_cap = _prop("line_cap")
    line_join = _prop("line_join")
    del _prop

    def _call(self, name: str, args: tuple) -> None:
        self.log.append(("call", name, args))

    def save(self) -> None:
        self._call("save", ())

    def restore(self) -> None:
        self._call("restore", ())

    def translate(self, x: float, y: float) -> None:
        self._call("translate", (x, y))

    def rotate(self, angle: float) -> None:
        self._call("rotate", (angle,))

    def scale(self, x: float, y: float) -> None:
        self._call("scale", (x, y))

    def fill_rect(self, *args: float) -> None:
        self._call("fill_rect", args)

    def stroke_rect(self, *args: float) -> None:
        self._call("stroke_rect", args)

    def clear_rect(self, *args: float) -> None:
        self._call("clear_rect", args)

    def fill_text(self, *args: Any) -> None:
        self._call("fill_text", args)

    def stroke_text(self, *args: Any) -> None:
        self._call("stroke_text", args)

    def begin_path(self) -> None:
        self._call("begin_path", ())

    def close_path(self) -> None:
        self._call("close_path", ())

    def move_to(self, x: float, y: float) -> None:
        self._call("move_to", (x, y))

    def line_to(self, x: float, y: float) -> None:
        self._call("line_to", (x, y))

    def arc(self, *args: Any) -> None:
        self._call("arc", args)

    def fill(self) -> None:
        self._call("fill", ())

    def stroke(self) -> None:
        self._call("stroke", ())

    def set_line_dash(self, segments: Any) -> None:
        self._call("set_line_dash", (segments,))

    def draw_image(self, image: Any, *args: float) -> None:
        self._call("draw_image", (image,) + args)


class FakeDisplay:
    """DisplayBackend stand-in backed by a RecordingSurface."""

    def __init__(self, size: tuple[int, int] = (200, 200)) -> None:
        self._size = size
        self.surface = RecordingSurface()
        self.frames_ended = 0
        self.resizes: list[tuple[int, int]] = []

    def size(self) -> tuple[int, int]:
        return self._size

    def resize(self, size: tuple[int, int]) -> None:
        self._size = (int(size[0]), int(size[1]))
        self.resizes.append(self._size)

    def begin_frame(self) -> RecordingSurface:
        return self.surface

    def end_frame(self) -> None:
        self.frames_ended += 1

    def save_png(self, path: str) -> None:  # pragma: no cover
        Path(path).write_bytes(b"")


@pytest.fixture
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def load_fixture(fixtures_dir: Path) -> Callable[[str], Any]:
    def _load(name: str) -> Any:
        with (fixtures_dir / name).open("r", encoding="utf-8") as f:
            return json.load(f)

    return _load


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def display() -> FakeDisplay:
    return FakeDisplay()

"""Pygame InputBackend mapping window events to named input events.

Names follow the DOM vocabulary the scene author expects: ``mousedown``,
``mouseup``, ``click``, ``mousemove``, ``wheel``, ``keydown``, ``keyup``,
``resize`` and ``quit``. A ``click`` is synthesised when a button is released
after being pressed, right after its ``mouseup``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generator, Optional

pg: Any = None
try:  # pragma: no cover - optional dependency in CI
    import pygame as _pg

    pg = _pg
except Exception:  # pragma: no cover
    pg = None

EVENT_NAMES = (
    "mousedown",
    "mouseup",
    "click",
    "mousemove",
    "wheel",
    "keydown",
    "keyup",
    "resize",
    "quit",
)


@dataclass(slots=True)
class InputEvent:
    name: str
    x: int = 0  # pointer position; new width for "resize"
    y: int = 0  # pointer position; new height for "resize"
    key: Optional[str] = None
    button: Optional[int] = None
    ts: float = 0.0
    dx: float = 0.0
    dy: float = 0.0


class PygameInputBackend:
    """Collects pygame events and emits :class:`InputEvent` values.

    Use pump() in a loop to process events. In headless mode (dummy video),
    pygame may not deliver events; tests can synthesize by posting events.
    """

    def __init__(self) -> None:
        if pg is None:
            raise RuntimeError("pygame not available for input backend")
        # button -> press position, for click synthesis
        self._pressed: Dict[int, tuple[int, int]] = {}

    @staticmethod
    def _now() -> float:
        return float(pg.time.get_ticks()) / 1000.0

    def pump(self) -> Generator[InputEvent, None, None]:
        for ev in pg.event.get():
            yield from self._translate(ev)

    def _translate(self, ev: Any) -> Generator[InputEvent, None, None]:
        ts = self._now()
        if ev.type == pg.QUIT:
            yield InputEvent("quit", ts=ts)
        elif ev.type == pg.MOUSEBUTTONDOWN:
            x, y = int(ev.pos[0]), int(ev.pos[1])
            self._pressed[ev.button] = (x, y)
            yield InputEvent("mousedown", x, y, button=ev.button, ts=ts)
        elif ev.type == pg.MOUSEBUTTONUP:
            x, y = int(ev.pos[0]), int(ev.pos[1])
            yield InputEvent("mouseup", x, y, button=ev.button, ts=ts)
            if self._pressed.pop(ev.button, None) is not None:
                yield InputEvent("click", x, y, button=ev.button, ts=ts)
        elif ev.type == pg.MOUSEMOTION:
            yield InputEvent(
                "mousemove",
                int(ev.pos[0]),
                int(ev.pos[1]),
                ts=ts,
                dx=float(ev.rel[0]),
                dy=float(ev.rel[1]),
            )
        elif ev.type == pg.MOUSEWHEEL:
            mx, my = pg.mouse.get_pos()
            yield InputEvent(
                "wheel", int(mx), int(my), ts=ts, dx=float(ev.x), dy=float(ev.y)
            )
        elif ev.type in (pg.KEYDOWN, pg.KEYUP):
            name = "keydown" if ev.type == pg.KEYDOWN else "keyup"
            yield InputEvent(name, key=pg.key.name(ev.key), ts=ts)
        elif ev.type == pg.VIDEORESIZE:
            yield InputEvent("resize", int(ev.w), int(ev.h), ts=ts)

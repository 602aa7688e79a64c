"""Frame producers paced by a :class:`~scenecanvas.core.time.TimeSource`.

A producer is any async iterable of root elements. ``frame_ticks`` yields
timing ticks at a target rate; ``animate`` maps them through a pure
``scene_fn(tick) -> root`` function. Frames are produced serially, so one
frame is fully consumed before the next one is computed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional

from scenecanvas.core.compiler import RootLike
from scenecanvas.core.time import TimeSource


@dataclass(frozen=True, slots=True)
class FrameTick:
    index: int
    t: float  # seconds since the first tick
    dt: float  # seconds since the previous tick (0 for the first)


async def frame_ticks(
    fps: float, ts: TimeSource, max_frames: Optional[int] = None
) -> AsyncIterator[FrameTick]:
    """Yield a :class:`FrameTick` every ``1 / fps`` seconds.

    Ticks are scheduled against the start time, so a slow consumer does not
    accumulate drift; late ticks are emitted immediately.
    """
    if fps <= 0:
        raise ValueError(f"fps must be > 0, got {fps}")
    if max_frames is not None and max_frames <= 0:
        return
    period = 1.0 / fps
    start = ts.monotonic()
    last = start
    index = 0
    while True:
        now = ts.monotonic()
        yield FrameTick(index, now - start, now - last if index else 0.0)
        last = now
        index += 1
        if max_frames is not None and index >= max_frames:
            return
        delay = start + index * period - ts.monotonic()
        await ts.sleep(max(0.0, delay))


async def animate(
    scene_fn: Callable[[FrameTick], RootLike],
    fps: float,
    ts: TimeSource,
    max_frames: Optional[int] = None,
) -> AsyncIterator[RootLike]:
    """Yield ``scene_fn(tick)`` for each tick of :func:`frame_ticks`."""
    async for tick in frame_ticks(fps, ts, max_frames):
        yield scene_fn(tick)

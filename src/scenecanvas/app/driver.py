"""Surface adapter: the only piece that touches the host environment.

``CanvasDriver`` owns a :class:`~scenecanvas.render.canvas.DisplayBackend`
and turns a stream of root elements into rendered frames. Each frame is
compiled against the backend's current size and applied while holding a
single-writer lock, so two frames never interleave on the same surface.

Input flows the other way: :meth:`CanvasDriver.pump_input` polls the input
backend and publishes every event on an :class:`EventBus` under its name;
:meth:`CanvasDriver.events` hands out filtered async iterators over those
topics. Each iterator subscribes eagerly and receives every event.
"""

from __future__ import annotations

import logging
import threading
from typing import (
    Any,
    AsyncIterable,
    Callable,
    Iterable,
    List,
    Optional,
    Protocol,
)

from scenecanvas.core.compiler import RootLike, compile_frame
from scenecanvas.core.events import EventBus, Subscription
from scenecanvas.core.instructions import Instruction
from scenecanvas.core.player import apply_instructions
from scenecanvas.platform.input.pygame_input import InputEvent
from scenecanvas.render.canvas import DisplayBackend

logger = logging.getLogger(__name__)

FrameListener = Callable[[List[Instruction]], None]


class InputBackend(Protocol):
    def pump(self) -> Iterable[InputEvent]:
        ...


class EventStream:
    """Async iterator of input events for one event name.

    Obtained from :meth:`CanvasDriver.events`. Ends when the driver closes
    or when :meth:`aclose` detaches it.
    """

    def __init__(
        self,
        subscription: Subscription,
        where: Optional[Callable[[InputEvent], bool]] = None,
    ) -> None:
        self._sub = subscription
        self._where = where

    @property
    def name(self) -> str:
        return self._sub.topic

    def __aiter__(self) -> "EventStream":
        return self

    async def __anext__(self) -> InputEvent:
        while True:
            env = await self._sub.__anext__()
            event = env.payload
            if self._where is None or self._where(event):
                return event

    async def aclose(self) -> None:
        await self._sub.close()


class CanvasDriver:
    """Render root elements onto a display and expose its input events.

    Parameters
    ----------
    display:
        Backend providing the drawing surface and its size.
    bus:
        Event bus used for input fan-out; a private one is created if omitted.
    input_backend:
        Object with a ``pump()`` method yielding :class:`InputEvent` values.
    drop_failed_frames:
        When true, a frame that fails to compile or apply is logged and
        skipped instead of raising.
    """

    def __init__(
        self,
        display: DisplayBackend,
        *,
        bus: EventBus | None = None,
        input_backend: InputBackend | None = None,
        drop_failed_frames: bool = False,
    ) -> None:
        self._display = display
        self._bus = bus if bus is not None else EventBus(default_maxsize=256)
        self._input = input_backend
        self._drop_failed = drop_failed_frames
        self._lock = threading.Lock()
        self._listeners: List[FrameListener] = []
        self._frames = 0
        self._dropped = 0
        self._quit = False

    @property
    def display(self) -> DisplayBackend:
        return self._display

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def frames_rendered(self) -> int:
        return self._frames

    @property
    def frames_dropped(self) -> int:
        return self._dropped

    @property
    def quit_requested(self) -> bool:
        return self._quit

    def request_quit(self) -> None:
        """Make :meth:`run` stop before its next frame."""
        self._quit = True

    def add_frame_listener(self, listener: FrameListener) -> None:
        """Call *listener* with each successfully applied instruction list."""
        self._listeners.append(listener)

    def render(self, root: RootLike) -> List[Instruction]:
        """Compile *root* at the display size and apply it to the surface.

        Returns the applied instructions, or an empty list when the frame was
        dropped.
        """
        with self._lock:
            surface = self._display.begin_frame()
            try:
                instructions = compile_frame(root, self._display.size())
                apply_instructions(instructions, surface)
            except Exception:
                # Surface errors count as failed frames too.
                if not self._drop_failed:
                    raise
                self._dropped += 1
                logger.exception("dropping frame %d", self._frames + self._dropped)
                return []
            self._display.end_frame()
            self._frames += 1
        for listener in self._listeners:
            listener(instructions)
        return instructions

    async def run(self, frames: AsyncIterable[RootLike]) -> int:
        """Render every root produced by *frames*, one at a time.

        Input is pumped before each frame. Stops when the producer is
        exhausted or a quit was requested; returns the number of frames
        rendered during this call.
        """
        start = self._frames
        async for root in frames:
            await self.pump_input()
            if self._quit:
                logger.info("quit requested; stopping after %d frames", self._frames)
                break
            self.render(root)
        return self._frames - start

    async def pump_input(self) -> int:
        """Poll the input backend and publish its events; return the count."""
        if self._input is None:
            return 0
        count = 0
        for event in self._input.pump():
            if event.name == "resize":
                logger.info("resize to %dx%d", event.x, event.y)
                with self._lock:
                    self._display.resize((event.x, event.y))
            elif event.name == "quit":
                self._quit = True
            if not self._bus.closed:
                await self._bus.publish(event.name, event)
            count += 1
        return count

    def events(
        self, name: str, where: Optional[Callable[[InputEvent], bool]] = None
    ) -> EventStream:
        """Return an async iterator over input events called *name*.

        The subscription is taken immediately, so events published after
        this call are never missed. *where* optionally filters events.
        """
        return EventStream(self._bus.subscribe(name), where)

    async def close(self) -> None:
        """Close the event bus; open event iterators finish."""
        self._quit = True
        await self._bus.close()


def snapshot(driver: CanvasDriver) -> dict[str, Any]:
    """Return a small status dict, handy for logs."""
    return {
        "size": tuple(driver.display.size()),
        "frames": driver.frames_rendered,
        "dropped": driver.frames_dropped,
        "topics": driver.bus.list_topics(),
    }

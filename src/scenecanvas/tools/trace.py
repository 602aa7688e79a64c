"""Instruction trace recorder and replayer.

A trace file is a stream of msgpack frames, one per rendered frame, each in
the format of :func:`scenecanvas.core.instructions.pack_frame`. Traces make
a session's output inspectable and replayable without the scene producer.

Recording while driving a display:

    writer = TraceWriter("session.trace")
    driver.add_frame_listener(writer.write)
    ...
    writer.close()

Replaying onto any drawing surface:

    count = replay_trace("session.trace", surface)

Image handles have no portable encoding; they are stored as opaque markers
and a frame holding one cannot be replayed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, BinaryIO, Iterator, List

import msgpack

from ..core.errors import MalformedInstruction
from ..core.instructions import (
    Call,
    Instruction,
    from_wire,
    pack_frame,
)
from ..core.player import apply_instructions

__all__ = [
    "TraceWriter",
    "read_trace",
    "replay_trace",
]

logger = logging.getLogger(__name__)


class TraceWriter:
    """Append compiled frames to a trace file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh: BinaryIO | None = self.path.open("wb")
        self.frames = 0

    def write(self, instructions: List[Instruction]) -> None:
        if self._fh is None:
            raise RuntimeError("TraceWriter is closed")
        self._fh.write(pack_frame(instructions))
        self.frames += 1

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
            logger.info("wrote %d frames to %s", self.frames, self.path)

    def __enter__(self) -> "TraceWriter":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def read_trace(path: str | Path) -> Iterator[List[Instruction]]:
    """Yield each frame of the trace at *path* as a list of instructions."""
    with Path(path).open("rb") as fh:
        unpacker = msgpack.Unpacker(fh, raw=False, strict_map_key=False)
        try:
            for payload in unpacker:
                if not isinstance(payload, list):
                    raise MalformedInstruction("trace frame must be a list")
                yield [from_wire(d) for d in payload]
        except ValueError as e:
            raise MalformedInstruction(f"corrupt trace {path}: {e}") from e


def _is_opaque(value: Any) -> bool:
    if isinstance(value, dict):
        return "__opaque__" in value
    if isinstance(value, tuple):
        return any(_is_opaque(v) for v in value)
    return False


def _check_replayable(index: int, frame: List[Instruction]) -> None:
    for ins in frame:
        values = ins.args if isinstance(ins, Call) else (ins.value,)
        if _is_opaque(values):
            raise MalformedInstruction(
                f"frame {index}: {ins.name} refers to an unrecorded object"
            )


def replay_trace(path: str | Path, surface: Any) -> int:
    """Apply every frame of the trace at *path* to *surface*, in order.

    Returns the number of frames applied.
    """
    count = 0
    for index, frame in enumerate(read_trace(path)):
        _check_replayable(index, frame)
        apply_instructions(frame, surface)
        count += 1
    logger.debug("replayed %d frames from %s", count, path)
    return count

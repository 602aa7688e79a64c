"""Scene viewer: render a scene file in a window or headless.

Loads a JSON/YAML scene, then drives a :class:`CanvasDriver` at the target
frame rate until the window is closed, ``q``/``Escape`` is pressed, or
``--frames`` frames were rendered. ``--dump`` prints the compiled
instructions as JSON lines instead of rendering.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, TextIO

from scenecanvas import __version__
from scenecanvas.app.driver import CanvasDriver, snapshot
from scenecanvas.app.frames import FrameTick, animate
from scenecanvas.config import RuntimeConfig, make_runtime_config, parse_size
from scenecanvas.core.compiler import compile_frame
from scenecanvas.core.elements import Element
from scenecanvas.core.events import EventBus
from scenecanvas.core.instructions import to_wire
from scenecanvas.core.time import RealTimeSource, TimeSource
from scenecanvas.data.scenes import load_scene
from scenecanvas.tools.trace import TraceWriter

logger = logging.getLogger(__name__)

QUIT_KEYS = frozenset({"q", "escape"})


def _size_arg(text: str) -> tuple[int, int]:
    try:
        return parse_size(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def dump_instructions(
    root: Element | None, size: tuple[int, int], out: TextIO | None = None
) -> int:
    """Write the compiled frame for *root* as JSON lines; return the count."""
    if out is None:
        out = sys.stdout
    instructions = compile_frame(root, size)
    for ins in instructions:
        out.write(json.dumps(to_wire(ins), default=repr) + "\n")
    return len(instructions)


def _load_image(path: Path) -> Any:
    import pygame

    img = pygame.image.load(str(path))
    return img.convert_alpha() if pygame.display.get_surface() else img


async def main_async(
    args: argparse.Namespace,
    *,
    ts: TimeSource | None = None,
    config: RuntimeConfig | None = None,
) -> None:
    """Run the viewer described by *args*."""
    cfg = config or make_runtime_config(args)
    if args.dump:
        root = load_scene(args.scene)
        dump_instructions(root, cfg.size)
        return

    if args.headless:
        os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    # Deferred so --dump works without SDL
    from scenecanvas.platform.display.pygame_backend import PygameDisplayBackend
    from scenecanvas.platform.input.pygame_input import PygameInputBackend

    display = PygameDisplayBackend(
        cfg.size, create_window=not args.headless, title=cfg.title
    )
    root = load_scene(args.scene, image_loader=_load_image)
    driver = CanvasDriver(
        display,
        bus=EventBus(default_maxsize=cfg.event_queue_size),
        input_backend=PygameInputBackend(),
        drop_failed_frames=cfg.drop_failed_frames,
    )
    quit_keys = driver.events("keydown", where=lambda ev: ev.key in QUIT_KEYS)

    async def _watch_quit_keys() -> None:
        async for ev in quit_keys:
            logger.info("quit key %r pressed", ev.key)
            driver.request_quit()
            return

    watcher = asyncio.create_task(_watch_quit_keys())
    writer = TraceWriter(args.trace) if args.trace else None
    if writer is not None:
        driver.add_frame_listener(writer.write)

    def _scene(_tick: FrameTick) -> Element | None:
        return root

    try:
        frames = animate(_scene, cfg.fps, ts or RealTimeSource(), cfg.max_frames)
        rendered = await driver.run(frames)
        logger.info("rendered %d frames", rendered)
    finally:
        if args.out and driver.frames_rendered:
            display.save_png(args.out)
            logger.info("saved last frame to %s", args.out)
        await driver.close()
        await watcher
        if writer is not None:
            writer.close()
        logger.debug("driver state at exit: %s", snapshot(driver))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments.

    When ``argv`` is None the values are read from ``sys.argv`` as usual.
    Accepting an ``argv`` list makes the parser testable programmatically.
    """
    p = argparse.ArgumentParser(
        prog="scenecanvas", description="Render a SceneCanvas scene file"
    )
    p.add_argument("scene", nargs="?", help="Path to a .json/.yaml scene file")
    p.add_argument(
        "--size",
        type=_size_arg,
        default=None,
        help="Surface size as WIDTHxHEIGHT (default: from settings, 640x480)",
    )
    p.add_argument(
        "--fps",
        type=float,
        default=None,
        help="Target frame rate (default: from settings, 30)",
    )
    p.add_argument(
        "--frames",
        type=int,
        default=None,
        help="Stop after this many frames (default: run until quit)",
    )
    p.add_argument(
        "--headless",
        dest="headless",
        action="store_true",
        help="Render offscreen without a window (suitable for CI/tests)",
    )
    p.add_argument(
        "--out",
        type=str,
        default=None,
        help="Save the last rendered frame to this PNG path",
    )
    p.add_argument(
        "--dump",
        action="store_true",
        help="Print the compiled instructions as JSON lines and exit",
    )
    p.add_argument(
        "--trace",
        type=str,
        default=None,
        help="Record every rendered frame to this msgpack trace file",
    )
    p.add_argument(
        "--drop-failed-frames",
        dest="drop_failed_frames",
        action="store_true",
        help="Log and skip frames that fail instead of stopping",
    )
    p.add_argument(
        "--log-level",
        dest="log_level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Logging level (default: from settings, INFO)",
    )
    p.add_argument(
        "--version",
        action="store_true",
        help=f"Print the version ({__version__}) and exit",
    )
    return p.parse_args(argv)

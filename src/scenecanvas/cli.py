"""Command-line interface for SceneCanvas.

Keeping CLI parsing in :mod:`scenecanvas.app.viewer` ensures behavior stays
consistent when invoked via the console script or ``python -m
scenecanvas``.
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from scenecanvas import __version__
from scenecanvas.app import viewer
from scenecanvas.settings.store import SettingsStore


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Return parsed arguments using the viewer's parser."""
    return viewer.parse_args(argv)


def configure_logging(args: argparse.Namespace) -> None:
    level = getattr(args, "log_level", None) or SettingsStore.load().log_level
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    """Synchronous entrypoint for the SceneCanvas CLI.

    Returns a process exit status: 0 on success, 2 on usage errors.
    """
    args = parse_args(argv)

    # Support a top-level --version
    if args.version:
        print(f"SceneCanvas {__version__}")
        return 0
    if not args.scene:
        print("scenecanvas: error: a scene file is required")
        return 2

    configure_logging(args)
    try:
        asyncio.run(run_async(argv))
    except KeyboardInterrupt:
        # Allow graceful cancellation via Ctrl+C
        pass
    return 0


async def run_async(argv: list[str] | None = None) -> None:
    """Async entrypoint for programmatic usage/testing.

    Tests and programmatic callers can `await run_async(...)` to run the
    application without starting a nested event loop.
    """
    args = parse_args(argv)
    if args.version:
        print(f"SceneCanvas {__version__}")
        return
    await viewer.main_async(args)


if __name__ == "__main__":
    raise SystemExit(main())

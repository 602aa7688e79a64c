"""Console entrypoint for the scenecanvas viewer.

This module delegates to :mod:`scenecanvas.cli` so that running
``python -m scenecanvas`` or the installed ``scenecanvas`` console script
executes the same application code.
"""

from __future__ import annotations

from scenecanvas.cli import main as cli_main


def main() -> int:
    """Application entrypoint (delegates to :func:`scenecanvas.cli.main`)."""
    return cli_main()


if __name__ == "__main__":
    raise SystemExit(main())

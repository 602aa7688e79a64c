"""Error types raised by the compiler, player and wire helpers.

None of these are recovered from inside the core. They propagate to the
caller (usually :class:`scenecanvas.app.driver.CanvasDriver`), which decides
whether to drop the frame or stop.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "SceneCanvasError",
    "UnknownElementKind",
    "MalformedElement",
    "UnsupportedSurfaceOperation",
    "MalformedInstruction",
]


class SceneCanvasError(Exception):
    """Base class for all scenecanvas errors."""


class UnknownElementKind(SceneCanvasError):
    """An element's ``kind`` is outside the closed set of element kinds."""

    def __init__(self, kind: Any) -> None:
        super().__init__(f"unknown element kind: {kind!r}")
        self.kind = kind


class MalformedElement(SceneCanvasError):
    """A kind-specific field is missing or invalid."""

    def __init__(self, kind: Any, reason: str) -> None:
        label = getattr(kind, "value", kind)
        super().__init__(f"malformed {label} element: {reason}")
        self.kind = kind
        self.reason = reason


class UnsupportedSurfaceOperation(SceneCanvasError):
    """The player was asked for a property or call the surface cannot serve."""

    def __init__(self, name: str, detail: str | None = None) -> None:
        msg = f"unsupported surface operation: {name!r}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)
        self.name = name


class MalformedInstruction(SceneCanvasError):
    """Wire data could not be decoded into an instruction."""

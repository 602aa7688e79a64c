"""Runtime configuration helpers.

Small aggregator that merges the persisted Settings store with CLI
overrides into the RuntimeConfig used by the viewer. CLI args (when
provided) win for the current session; nothing is written back.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .settings.store import SettingsStore


@dataclass(slots=True)
class RuntimeConfig:
    size: Tuple[int, int] = (640, 480)
    fps: float = 30.0
    max_frames: Optional[int] = None
    title: str = "SceneCanvas"
    drop_failed_frames: bool = False
    log_level: str = "INFO"
    event_queue_size: int = 256


def parse_size(text: str) -> Tuple[int, int]:
    """Parse ``"WxH"`` into a positive ``(width, height)`` tuple."""
    try:
        w_s, h_s = text.lower().split("x", 1)
        size = (int(w_s), int(h_s))
    except ValueError:
        raise ValueError(f"size must look like WIDTHxHEIGHT, got {text!r}") from None
    if size[0] <= 0 or size[1] <= 0:
        raise ValueError(f"size must be positive, got {text!r}")
    return size


def make_runtime_config(args: Optional[object] = None) -> RuntimeConfig:
    """Build a RuntimeConfig from persisted settings and optional CLI *args*.

    *args* is argparse.Namespace-like; attributes that are missing or None
    leave the persisted value in place.
    """
    settings = SettingsStore.load()
    cfg = RuntimeConfig(
        size=(settings.width, settings.height),
        fps=settings.fps,
        title=settings.title,
        drop_failed_frames=settings.drop_failed_frames,
        log_level=settings.log_level,
        event_queue_size=settings.event_queue_size,
    )
    if args is None:
        return cfg

    size = getattr(args, "size", None)
    if size is not None:
        cfg.size = (int(size[0]), int(size[1]))
    fps = getattr(args, "fps", None)
    if fps is not None:
        if fps <= 0:
            raise ValueError(f"fps must be > 0, got {fps}")
        cfg.fps = float(fps)
    frames = getattr(args, "frames", None)
    if frames is not None:
        cfg.max_frames = int(frames)
    level = getattr(args, "log_level", None)
    if level is not None:
        cfg.log_level = str(level).upper()
    if getattr(args, "drop_failed_frames", False):
        cfg.drop_failed_frames = True
    return cfg

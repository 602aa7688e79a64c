"""Pydantic model for user settings."""

from __future__ import annotations

import math

from pydantic import BaseModel, Field, field_validator

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseModel):
    """Viewer settings persisted to disk.

    Parameters
    ----------
    width, height: Surface size in pixels used when no ``--size`` is given.
    fps: Target frame rate of the viewer loop.
    title: Window caption.
    drop_failed_frames: When true a frame that fails to compile or apply is
        logged and skipped; when false the viewer stops with the error.
    log_level: Root logging level name.
    event_queue_size: Per-subscriber queue bound for input events.
    """

    width: int = Field(default=640)
    height: int = Field(default=480)
    fps: float = Field(default=30.0)
    title: str = Field(default="SceneCanvas")
    drop_failed_frames: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    event_queue_size: int = Field(default=256)

    @field_validator("width", "height", "event_queue_size")
    @classmethod
    def _chk_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("fps")
    @classmethod
    def _chk_fps(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError("fps must be a finite number > 0")
        return v

    @field_validator("log_level")
    @classmethod
    def _chk_level(cls, v: str) -> str:
        level = str(v).upper()
        if level not in LOG_LEVELS:
            raise ValueError(
                "invalid log level: must be one of " + ", ".join(LOG_LEVELS)
            )
        return level

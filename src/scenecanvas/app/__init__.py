"""Application layer for SceneCanvas.

Holds the surface adapter (:mod:`.driver`), frame producers
(:mod:`.frames`) and the scene viewer entrypoint (:mod:`.viewer`).
"""

from . import viewer  # re-export the main application module

__all__ = ["viewer"]

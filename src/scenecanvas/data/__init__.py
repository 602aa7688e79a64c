"""Data loaders for SceneCanvas.

Currently includes the JSON/YAML scene loader.
"""

from .scenes import load_scene, parse_scene_text

__all__ = [
    "load_scene",
    "parse_scene_text",
]

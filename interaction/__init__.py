"""
interaction package

Pointer input and ground-plane picking that feed hit events into the
wave simulation.
"""

from interaction.raycast import Ray, PerspectiveCamera, intersect_ground_plane
from interaction.input_source import (
    PressState,
    PressEdgeDetector,
    HitSlot,
    PointerInputSource,
)

__all__ = [
    "Ray",
    "PerspectiveCamera",
    "intersect_ground_plane",
    "PressState",
    "PressEdgeDetector",
    "HitSlot",
    "PointerInputSource",
]

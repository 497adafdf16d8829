"""
raycast.py

Screen-to-world picking against the ground plane.

Converts a screen point into a world-space ray through a perspective
camera, and intersects rays with a horizontal plane.

Screen coordinates have their origin at the top-left corner, X to the
right and Y down, in pixels.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from contracts.validation import ValidationError, validate_positive


Vector3 = Tuple[float, float, float]

_PARALLEL_EPSILON = 1e-9


@dataclass(frozen=True)
class Ray:
    """
    Half-line from ``origin`` along ``direction``.

    The direction is normalized on construction.

    Raises
    ------
    ValidationError
        If the direction has zero length.
    """

    origin: Vector3
    direction: Vector3

    def __post_init__(self) -> None:
        direction = np.asarray(self.direction, dtype=np.float64)
        norm = float(np.linalg.norm(direction))
        if norm == 0.0 or not math.isfinite(norm):
            raise ValidationError(f"ray direction must be a non-zero finite vector, got {self.direction}")
        direction = direction / norm
        object.__setattr__(self, "origin", tuple(float(v) for v in self.origin))
        object.__setattr__(self, "direction", tuple(float(v) for v in direction))

    def point_at(self, distance: float) -> Vector3:
        """Point ``distance`` units along the ray."""
        return tuple(o + distance * d for o, d in zip(self.origin, self.direction))


def intersect_ground_plane(ray: Ray, height: float = 0.0) -> Optional[Vector3]:
    """
    Intersect a ray with the horizontal plane ``y = height``.

    Parameters
    ----------
    ray : Ray
        The picking ray.
    height : float
        Plane height. Defaults to 0.0.

    Returns
    -------
    Optional[Vector3]
        Hit point, or None if the ray is parallel to the plane or the
        plane lies behind the ray origin.
    """
    dy = ray.direction[1]
    if abs(dy) < _PARALLEL_EPSILON:
        return None

    distance = (height - ray.origin[1]) / dy
    if distance < 0.0:
        return None

    x, _, z = ray.point_at(distance)
    return (x, float(height), z)


class PerspectiveCamera:
    """
    Pinhole camera used to turn screen points into picking rays.

    Parameters
    ----------
    position : Vector3
        Camera position in world space.
    target : Vector3
        Point the camera looks at.
    fov_deg : float
        Vertical field of view in degrees, in (0, 180).
    up : Vector3
        Approximate up direction. Defaults to +Y.
    """

    def __init__(
        self,
        position: Vector3,
        target: Vector3 = (0.0, 0.0, 0.0),
        fov_deg: float = 60.0,
        up: Vector3 = (0.0, 1.0, 0.0),
    ) -> None:
        validate_positive(fov_deg, "fov_deg")
        if fov_deg >= 180.0:
            raise ValidationError(f"fov_deg must be < 180, got {fov_deg}")

        self._position = np.asarray(position, dtype=np.float64)
        forward = np.asarray(target, dtype=np.float64) - self._position
        forward_norm = np.linalg.norm(forward)
        if forward_norm == 0.0:
            raise ValidationError("camera target must differ from camera position")
        forward = forward / forward_norm

        right = np.cross(forward, np.asarray(up, dtype=np.float64))
        right_norm = np.linalg.norm(right)
        if right_norm < _PARALLEL_EPSILON:
            raise ValidationError("camera up vector must not be parallel to the view direction")
        right = right / right_norm

        self._forward = forward
        self._right = right
        self._up = np.cross(right, forward)
        self._tan_half_fov = math.tan(math.radians(fov_deg) / 2.0)

    @property
    def position(self) -> Vector3:
        return tuple(float(v) for v in self._position)

    def screen_point_to_ray(self, x: float, y: float, width: float, height: float) -> Ray:
        """
        Ray from the camera through a screen pixel.

        Parameters
        ----------
        x, y : float
            Pixel coordinates, origin top-left.
        width, height : float
            Viewport size in pixels. Must be positive.

        Returns
        -------
        Ray
            World-space picking ray.
        """
        validate_positive(width, "width")
        validate_positive(height, "height")

        aspect = width / height
        ndc_x = (2.0 * x / width) - 1.0
        ndc_y = 1.0 - (2.0 * y / height)

        direction = (
            self._forward
            + self._right * (ndc_x * self._tan_half_fov * aspect)
            + self._up * (ndc_y * self._tan_half_fov)
        )
        return Ray(origin=self.position, direction=tuple(direction))

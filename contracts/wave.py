"""
contracts/wave.py

Wave data contracts.

Defines the immutable values exchanged between input, registry and field
evaluation:
- WaveParameters: Per-run wave shape and grid configuration
- HitEvent: A world-space press on the ground plane
- WaveSource: A point-and-time origin of a decaying radial oscillation

Invariants
----------
- amplitude, frequency and speed are positive; damping is non-negative
- lifetime is derived from the grid geometry and never supplied directly
- lifetime always exceeds the longest propagation delay across the grid
- a WaveSource is ACTIVE until current_time - start_time > lifetime,
  after which it is EXPIRED for good
- all spatial quantities share the grid's world units
- all time quantities are in seconds
"""

import enum
import math
import numbers
from dataclasses import dataclass, field
from typing import Tuple

from contracts.validation import (
    ConfigurationError,
    validate_color,
    validate_finite_scalar,
    validate_positive,
)


Color = Tuple[float, float, float]


def derive_lifetime(
    grid_size: int,
    grid_spacing: float,
    speed: float,
    lifetime_offset: float,
) -> float:
    """
    Compute how long a wave source stays active.

    The diagonal of the grid's footprint divided by the propagation speed,
    stretched by ``lifetime_offset``, so a wave started at one corner
    reaches the opposite corner before it expires.

    Parameters
    ----------
    grid_size : int
        Elements per grid side.
    grid_spacing : float
        Distance between neighbouring elements.
    speed : float
        Propagation speed.
    lifetime_offset : float
        Extra fraction of lifetime (0.1 adds 10%).

    Returns
    -------
    float
        Lifetime in seconds.
    """
    diagonal = math.sqrt(2.0) * grid_size * grid_spacing
    return (diagonal / speed) * (1.0 + lifetime_offset)


@dataclass(frozen=True)
class WaveParameters:
    """
    Immutable wave shape and grid configuration for one simulation run.

    Parameters
    ----------
    amplitude : float
        Peak displacement. Must be positive.
    frequency : float
        Oscillation rate in radians per second. Must be positive.
    damping : float
        Exponential decay rate. Must be non-negative.
    speed : float
        Propagation speed in world units per second. Must be positive.
    grid_size : int
        Number of elements per grid side. Must be at least 1.
    grid_spacing : float
        Distance between neighbouring elements. Must be positive.
    top_color : Color
        RGB colour at displacement +amplitude.
    bottom_color : Color
        RGB colour at displacement -amplitude.
    lifetime_offset : float
        Extra fraction of the geometric lifetime. Must be non-negative.

    Attributes
    ----------
    lifetime : float
        Derived active duration of each wave source, in seconds.

    Raises
    ------
    ConfigurationError
        If any value is out of range.

    Examples
    --------
    >>> params = WaveParameters(
    ...     amplitude=1.0, frequency=6.0, damping=0.5, speed=4.0,
    ...     grid_size=10, grid_spacing=1.0,
    ... )
    >>> round(params.lifetime, 4)
    3.8891
    """

    amplitude: float
    frequency: float
    damping: float
    speed: float
    grid_size: int
    grid_spacing: float
    top_color: Color = (1.0, 1.0, 1.0)
    bottom_color: Color = (0.0, 0.0, 0.0)
    lifetime_offset: float = 0.1
    lifetime: float = field(init=False)

    def __post_init__(self) -> None:
        """Validate configuration and derive the lifetime."""
        validate_positive(self.amplitude, "amplitude", error_cls=ConfigurationError)
        validate_positive(self.frequency, "frequency", error_cls=ConfigurationError)
        validate_positive(self.damping, "damping", allow_zero=True, error_cls=ConfigurationError)
        validate_positive(self.speed, "speed", error_cls=ConfigurationError)
        validate_positive(self.grid_spacing, "grid_spacing", error_cls=ConfigurationError)
        validate_positive(
            self.lifetime_offset, "lifetime_offset", allow_zero=True, error_cls=ConfigurationError
        )

        if isinstance(self.grid_size, bool) or not isinstance(self.grid_size, numbers.Integral):
            raise TypeError(f"grid_size must be int, got {type(self.grid_size).__name__}")
        if self.grid_size < 1:
            raise ConfigurationError(f"grid_size must be >= 1, got {self.grid_size}")
        object.__setattr__(self, "grid_size", int(self.grid_size))

        for name in ("amplitude", "frequency", "damping", "speed", "grid_spacing", "lifetime_offset"):
            object.__setattr__(self, name, float(getattr(self, name)))

        object.__setattr__(
            self, "top_color", validate_color(self.top_color, "top_color", ConfigurationError)
        )
        object.__setattr__(
            self, "bottom_color", validate_color(self.bottom_color, "bottom_color", ConfigurationError)
        )

        object.__setattr__(
            self,
            "lifetime",
            derive_lifetime(self.grid_size, self.grid_spacing, self.speed, self.lifetime_offset),
        )

    @property
    def grid_side_length(self) -> float:
        """Side length of the grid footprint (size * spacing)."""
        return self.grid_size * self.grid_spacing

    @property
    def max_propagation_delay(self) -> float:
        """Time for a wavefront to cross the element lattice corner to corner."""
        diagonal = math.sqrt(2.0) * (self.grid_size - 1) * self.grid_spacing
        return diagonal / self.speed

    @property
    def neutral_color(self) -> Color:
        """Even blend of bottom and top colours (displacement zero)."""
        return tuple(
            0.5 * (b + t) for b, t in zip(self.bottom_color, self.top_color)
        )


@dataclass(frozen=True)
class HitEvent:
    """
    A press on the ground plane, resolved to a world-space point.

    Only the X and Z coordinates are used by the wave simulation.

    Parameters
    ----------
    world_position : Tuple[float, float, float]
        Hit point (x, y, z).
    timestamp : float
        Simulation time of the press, in seconds.
    """

    world_position: Tuple[float, float, float]
    timestamp: float

    def __post_init__(self) -> None:
        if len(self.world_position) != 3:
            raise TypeError(
                f"world_position must have 3 components, got {len(self.world_position)}"
            )
        position = tuple(
            validate_finite_scalar(v, f"world_position[{i}]")
            for i, v in enumerate(self.world_position)
        )
        object.__setattr__(self, "world_position", position)
        object.__setattr__(self, "timestamp", validate_finite_scalar(self.timestamp, "timestamp"))

    @property
    def origin_xz(self) -> Tuple[float, float]:
        """Ground-plane coordinates of the hit."""
        return (self.world_position[0], self.world_position[2])


class WaveSourceState(enum.Enum):
    """Lifecycle of a wave source. EXPIRED is terminal."""

    ACTIVE = "active"
    EXPIRED = "expired"


@dataclass(frozen=True)
class WaveSource:
    """
    Origin of one radially propagating, decaying wave.

    Parameters
    ----------
    origin_xz : Tuple[float, float]
        Ground-plane origin (x, z).
    start_time : float
        Time the wave started, in seconds.
    """

    origin_xz: Tuple[float, float]
    start_time: float

    def __post_init__(self) -> None:
        if len(self.origin_xz) != 2:
            raise TypeError(f"origin_xz must have 2 components, got {len(self.origin_xz)}")
        origin = (
            validate_finite_scalar(self.origin_xz[0], "origin_xz[0]"),
            validate_finite_scalar(self.origin_xz[1], "origin_xz[1]"),
        )
        object.__setattr__(self, "origin_xz", origin)
        object.__setattr__(self, "start_time", validate_finite_scalar(self.start_time, "start_time"))

    @classmethod
    def from_hit(cls, hit: HitEvent) -> "WaveSource":
        """Create the wave source started by a hit event."""
        return cls(origin_xz=hit.origin_xz, start_time=hit.timestamp)

    def age(self, current_time: float) -> float:
        """Seconds elapsed since the wave started."""
        return current_time - self.start_time

    def is_expired(self, current_time: float, lifetime: float) -> bool:
        """
        Whether the source has outlived its lifetime.

        Expiry is strict: at exactly ``start_time + lifetime`` the source
        is still active.
        """
        return current_time - self.start_time > lifetime

    def state(self, current_time: float, lifetime: float) -> WaveSourceState:
        """Lifecycle state at ``current_time``."""
        if self.is_expired(current_time, lifetime):
            return WaveSourceState.EXPIRED
        return WaveSourceState.ACTIVE

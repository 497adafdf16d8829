"""
contracts/field.py

Per-tick field output contract.

Defines the container presenters read after each simulation tick:
- FieldFrame: Displacement and RGBA colour for every grid element

Invariants
----------
- heights is 1D with one entry per element
- colors has shape (N, 4) with alpha == 1 and components in [0, 1]
- all array elements are finite
- arrays are immutable copies; a frame is never updated in place
"""

from dataclasses import dataclass, field

import numpy as np

from contracts.validation import (
    ValidationError,
    validate_finite,
    validate_finite_scalar,
    validate_shape,
)


def _make_immutable_copy(array: np.ndarray) -> np.ndarray:
    """Create an immutable float64 copy of an array."""
    copy = np.array(array, dtype=np.float64, copy=True)
    copy.flags.writeable = False
    return copy


@dataclass(frozen=True)
class FieldFrame:
    """
    Immutable result of evaluating the wave field for one tick.

    Parameters
    ----------
    timestamp : float
        Simulation time of the tick, in seconds.
    heights : np.ndarray
        Per-element vertical displacement. Shape: (N,).
    colors : np.ndarray
        Per-element RGBA colour. Shape: (N, 4).
    active_wave_count : int
        Number of wave sources in the snapshot the frame was evaluated from.

    Raises
    ------
    ValidationError
        If shapes disagree or values are non-finite.

    Examples
    --------
    >>> frame = FieldFrame(
    ...     timestamp=0.0,
    ...     heights=np.zeros(9),
    ...     colors=np.tile([0.5, 0.5, 0.5, 1.0], (9, 1)),
    ... )
    >>> frame.height_grid(3).shape
    (3, 3)
    """

    timestamp: float
    heights: np.ndarray = field(repr=False)
    colors: np.ndarray = field(repr=False)
    active_wave_count: int = 0

    def __post_init__(self) -> None:
        """Validate and freeze arrays after initialization."""
        validate_finite_scalar(self.timestamp, "timestamp")

        heights = np.asarray(self.heights)
        colors = np.asarray(self.colors)
        validate_shape(heights, (None,), "heights")
        validate_shape(colors, (heights.shape[0], 4), "colors")
        validate_finite(heights, "heights")
        validate_finite(colors, "colors")

        if not isinstance(self.active_wave_count, int) or self.active_wave_count < 0:
            raise ValidationError(
                f"active_wave_count must be non-negative int, got {self.active_wave_count}"
            )

        object.__setattr__(self, "heights", _make_immutable_copy(heights))
        object.__setattr__(self, "colors", _make_immutable_copy(colors))

    @property
    def num_elements(self) -> int:
        """Number of grid elements in this frame."""
        return int(self.heights.shape[0])

    @property
    def max_abs_height(self) -> float:
        """Largest absolute displacement, 0.0 for an empty frame."""
        if self.num_elements == 0:
            return 0.0
        return float(np.max(np.abs(self.heights)))

    def height_grid(self, size: int) -> np.ndarray:
        """
        Heights reshaped to (size, size), rows along Z and columns along X.

        Raises
        ------
        ValidationError
            If size * size does not match the element count.
        """
        self._check_size(size)
        return self.heights.reshape(size, size)

    def color_grid(self, size: int) -> np.ndarray:
        """RGBA colours reshaped to (size, size, 4)."""
        self._check_size(size)
        return self.colors.reshape(size, size, 4)

    def _check_size(self, size: int) -> None:
        if size * size != self.num_elements:
            raise ValidationError(
                f"size {size} does not match element count {self.num_elements}"
            )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldFrame):
            return NotImplemented
        return (
            self.timestamp == other.timestamp
            and self.active_wave_count == other.active_wave_count
            and np.array_equal(self.heights, other.heights)
            and np.array_equal(self.colors, other.colors)
        )

    def __hash__(self) -> int:
        return hash((self.timestamp, self.active_wave_count, self.heights.tobytes()))

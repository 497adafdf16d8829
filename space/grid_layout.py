"""
grid_layout.py

Square lattice of wave-grid elements on the ground plane, and the mutable
per-element state the simulation writes every tick.

The layout is built once; element X and Z never change afterwards.
Only Y (displacement) and colour are rewritten, one whole frame at a time.

All spatial quantities share the grid's world units.
"""

import numbers
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from contracts.field import FieldFrame
from contracts.validation import ConfigurationError, ValidationError, validate_positive


class GridLayout:
    """
    Centred square lattice of ``size * size`` element positions.

    Element ``i`` sits at column ``i % size`` and row ``i // size``; the
    lattice is centred on the world origin with ``spacing`` between
    neighbours, so X and Z run from ``-c * spacing`` to ``+c * spacing``
    with ``c = (size - 1) / 2``.

    Parameters
    ----------
    size : int
        Elements per side. Must be at least 1.
    spacing : float
        Distance between neighbouring elements. Must be positive.

    Attributes
    ----------
    size : int
        Elements per side.
    spacing : float
        Distance between neighbours.
    num_elements : int
        ``size * size``.
    positions : np.ndarray
        Read-only element positions. Shape: (N, 3), Y is zero.
    positions_xz : np.ndarray
        Read-only ground-plane coordinates. Shape: (N, 2).
    """

    def __init__(self, size: int, spacing: float) -> None:
        """Initialize the layout."""
        if isinstance(size, bool) or not isinstance(size, numbers.Integral):
            raise TypeError(f"size must be int, got {type(size).__name__}")
        if size < 1:
            raise ConfigurationError(f"size must be >= 1, got {size}")
        validate_positive(spacing, "spacing", error_cls=ConfigurationError)

        size = int(size)
        self._size = size
        self._spacing = float(spacing)

        center = (size - 1) / 2.0
        index = np.arange(size * size)
        positions = np.zeros((size * size, 3), dtype=np.float64)
        positions[:, 0] = (index % size - center) * self._spacing
        positions[:, 2] = (index // size - center) * self._spacing
        positions.flags.writeable = False
        self._positions = positions

        positions_xz = np.ascontiguousarray(positions[:, [0, 2]])
        positions_xz.flags.writeable = False
        self._positions_xz = positions_xz

    @classmethod
    def from_parameters(cls, params) -> "GridLayout":
        """Build the layout described by a WaveParameters instance."""
        return cls(size=params.grid_size, spacing=params.grid_spacing)

    @property
    def size(self) -> int:
        """Elements per side."""
        return self._size

    @property
    def spacing(self) -> float:
        """Distance between neighbouring elements."""
        return self._spacing

    @property
    def num_elements(self) -> int:
        """Total number of elements."""
        return self._size * self._size

    @property
    def side_length(self) -> float:
        """Side length of the grid footprint (size * spacing)."""
        return self._size * self._spacing

    @property
    def extent(self) -> Tuple[float, float, float, float]:
        """Element centre bounds (x_min, x_max, z_min, z_max)."""
        half = (self._size - 1) / 2.0 * self._spacing
        return (-half, half, -half, half)

    @property
    def positions(self) -> np.ndarray:
        """Element positions. Shape: (N, 3)."""
        return self._positions

    @property
    def positions_xz(self) -> np.ndarray:
        """Ground-plane element coordinates. Shape: (N, 2)."""
        return self._positions_xz

    def index_of(self, row: int, col: int) -> int:
        """
        Flat element index of (row, col).

        Raises
        ------
        IndexError
            If row or col is outside the grid.
        """
        if not (0 <= row < self._size and 0 <= col < self._size):
            raise IndexError(f"({row}, {col}) is outside a {self._size}x{self._size} grid")
        return row * self._size + col


@dataclass(frozen=True)
class GridElement:
    """Read-only view of one element after a tick."""

    position: Tuple[float, float, float]
    color: Tuple[float, float, float, float]


class GridState:
    """
    Mutable per-element state written by the simulation.

    Holds the element positions (X and Z fixed, Y rewritten per tick) and
    RGBA colours. Frames are applied whole, so readers never see a mix of
    two ticks.

    Parameters
    ----------
    layout : GridLayout
        The element lattice.
    initial_color : Tuple[float, float, float]
        RGB colour before the first tick.
    """

    def __init__(
        self,
        layout: GridLayout,
        initial_color: Tuple[float, float, float] = (0.5, 0.5, 0.5),
    ) -> None:
        self._layout = layout
        self._positions = np.array(layout.positions, dtype=np.float64, copy=True)
        self._colors = np.empty((layout.num_elements, 4), dtype=np.float64)
        self._colors[:, :3] = initial_color
        self._colors[:, 3] = 1.0
        self._timestamp = None

    @classmethod
    def from_layout(cls, layout: GridLayout, initial_color=(0.5, 0.5, 0.5)) -> "GridState":
        return cls(layout, initial_color)

    @property
    def layout(self) -> GridLayout:
        return self._layout

    @property
    def timestamp(self):
        """Timestamp of the last applied frame, or None before the first."""
        return self._timestamp

    @property
    def heights(self) -> np.ndarray:
        """Copy of the current Y column. Shape: (N,)."""
        return self._positions[:, 1].copy()

    @property
    def positions(self) -> np.ndarray:
        """Copy of the current positions. Shape: (N, 3)."""
        return self._positions.copy()

    @property
    def colors(self) -> np.ndarray:
        """Copy of the current RGBA colours. Shape: (N, 4)."""
        return self._colors.copy()

    def apply_frame(self, frame: FieldFrame) -> None:
        """
        Write a frame's displacements and colours into the grid.

        Raises
        ------
        ValidationError
            If the frame's element count does not match the layout.
        """
        if frame.num_elements != self._layout.num_elements:
            raise ValidationError(
                f"frame has {frame.num_elements} elements, "
                f"grid has {self._layout.num_elements}"
            )
        self._positions[:, 1] = frame.heights
        self._colors[:] = frame.colors
        self._timestamp = frame.timestamp

    def element(self, index: int) -> GridElement:
        """Snapshot of one element's position and colour."""
        x, y, z = self._positions[index]
        r, g, b, a = self._colors[index]
        return GridElement(
            position=(float(x), float(y), float(z)),
            color=(float(r), float(g), float(b), float(a)),
        )

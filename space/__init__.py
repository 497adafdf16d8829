"""
space package

Spatial layout of the wave grid.

Includes the centred element lattice and the per-element state the
simulation rewrites every tick.
"""

from space.grid_layout import GridLayout, GridState, GridElement

__all__ = [
    "GridLayout",
    "GridState",
    "GridElement",
]

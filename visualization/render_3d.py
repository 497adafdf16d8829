"""
render_3d.py

3D visualization of the ripple grid as displaced, coloured cubes.

Draws each grid element as a bar whose top sits at the element's
displacement, coloured with the element's frame colour.

Performs no simulation or data modification.
All rendering is deterministic given the same input.
"""

from typing import Optional, Tuple

import numpy as np
import matplotlib.pyplot as plt
from mpl_toolkits.mplot3d import Axes3D  # noqa: F401  (registers the 3d projection)
from matplotlib.figure import Figure

from contracts.field import FieldFrame
from space.grid_layout import GridLayout


def render_grid_3d(
    frame: FieldFrame,
    layout: GridLayout,
    title: str = "Ripple Grid",
    cube_fraction: float = 0.9,
    base_height: float = 0.5,
    z_limits: Optional[Tuple[float, float]] = None,
    figsize: Tuple[float, float] = (10, 8),
    view_elev: float = 35,
    view_azim: float = -60,
    show: bool = False,
) -> Figure:
    """
    Render a frame as a field of cubes displaced vertically.

    Each element is a box of footprint ``cube_fraction * spacing`` whose
    bottom sits ``base_height`` below its displaced position.

    Parameters
    ----------
    frame : FieldFrame
        Frame to render.
    layout : GridLayout
        Layout the frame was evaluated on.
    title : str, optional
        Plot title.
    cube_fraction : float, optional
        Cube footprint as a fraction of the element spacing, in (0, 1].
    base_height : float, optional
        Cube height below the displaced top.
    z_limits : Optional[Tuple[float, float]], optional
        Vertical axis limits. If None, fits the data.
    figsize : Tuple[float, float], optional
        Figure size in inches.
    view_elev : float, optional
        Elevation angle for 3D view in degrees.
    view_azim : float, optional
        Azimuth angle for 3D view in degrees.
    show : bool, optional
        If True, call plt.show().

    Returns
    -------
    Figure
        Matplotlib figure object.

    Raises
    ------
    ValueError
        If cube_fraction is outside (0, 1] or base_height is not positive.
    """
    if not 0.0 < cube_fraction <= 1.0:
        raise ValueError(f"cube_fraction must be in (0, 1]. Got {cube_fraction}.")
    if base_height <= 0.0:
        raise ValueError(f"base_height must be positive. Got {base_height}.")
    if frame.num_elements != layout.num_elements:
        raise ValueError(
            f"frame has {frame.num_elements} elements, layout has {layout.num_elements}."
        )

    positions = layout.positions
    width = layout.spacing * cube_fraction
    tops = frame.heights
    bottoms = tops - base_height

    fig = plt.figure(figsize=figsize)
    ax = fig.add_subplot(111, projection="3d")

    # Matplotlib's vertical axis is its Z; the grid's up axis is Y
    ax.bar3d(
        positions[:, 0] - width / 2.0,
        positions[:, 2] - width / 2.0,
        bottoms,
        width,
        width,
        np.full(frame.num_elements, base_height),
        color=np.clip(frame.colors, 0.0, 1.0),
        shade=True,
    )

    ax.set_title(f"{title} (t={frame.timestamp:.2f}s)")
    ax.set_xlabel("X")
    ax.set_ylabel("Z")
    ax.set_zlabel("Height")

    if z_limits is None:
        z_limits = (float(np.min(bottoms)), float(np.max(tops)) + 1e-6)
    ax.set_zlim(*z_limits)

    ax.view_init(elev=view_elev, azim=view_azim)

    fig.tight_layout()

    if show:
        plt.show()

    return fig


def close_figure(fig: Figure) -> None:
    """Close a figure to free memory."""
    plt.close(fig)

"""
render_2d.py

Top-down 2D visualization of ripple grid frames.

Renders per-element displacement and colour as images over the ground
plane, with optional wavefront overlays. Performs no simulation or data
modification.

All rendering is deterministic given the same inputs.
"""

from typing import Optional, Sequence, Tuple, Union

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
from matplotlib.figure import Figure
from matplotlib.colors import Colormap

from contracts.field import FieldFrame
from contracts.validation import validate_monotonic_timestamps
from space.grid_layout import GridLayout
from waves.registry import WaveSnapshot


def _image_extent(layout: GridLayout) -> Tuple[float, float, float, float]:
    """imshow extent covering each element's cell, (left, right, bottom, top)."""
    x_min, x_max, z_min, z_max = layout.extent
    half = layout.spacing / 2.0
    return (x_min - half, x_max + half, z_min - half, z_max + half)


def render_height_map(
    frame: FieldFrame,
    layout: GridLayout,
    title: str = "Displacement",
    cmap: Union[str, Colormap] = "coolwarm",
    amplitude: Optional[float] = None,
    figsize: Tuple[float, float] = (7, 6),
    show: bool = False,
) -> Figure:
    """
    Render element displacement as a heatmap over the ground plane.

    Parameters
    ----------
    frame : FieldFrame
        Frame to render.
    layout : GridLayout
        Layout the frame was evaluated on.
    title : str, optional
        Plot title. Defaults to "Displacement".
    cmap : Union[str, Colormap], optional
        Colormap name or instance. Defaults to "coolwarm".
    amplitude : Optional[float], optional
        Symmetric colour range +/-amplitude. If None, uses the frame's
        largest absolute displacement (or 1.0 for a flat frame).
    figsize : Tuple[float, float], optional
        Figure size in inches.
    show : bool, optional
        If True, call plt.show(). Defaults to False.

    Returns
    -------
    Figure
        Matplotlib figure object.
    """
    heights = frame.height_grid(layout.size)

    if amplitude is None:
        amplitude = frame.max_abs_height or 1.0

    fig, ax = plt.subplots(figsize=figsize)

    # Rows run along Z, so origin="lower" puts -Z at the bottom
    im = ax.imshow(
        heights,
        cmap=cmap,
        vmin=-amplitude,
        vmax=amplitude,
        origin="lower",
        extent=_image_extent(layout),
    )

    ax.set_title(f"{title} (t={frame.timestamp:.2f}s)")
    ax.set_xlabel("X")
    ax.set_ylabel("Z")

    cbar = fig.colorbar(im, ax=ax)
    cbar.set_label("Height")

    fig.tight_layout()

    if show:
        plt.show()

    return fig


def render_color_grid(
    frame: FieldFrame,
    layout: GridLayout,
    title: str = "Element Colors",
    figsize: Tuple[float, float] = (6, 6),
    show: bool = False,
) -> Figure:
    """
    Render the per-element RGBA colours as they would be presented.

    Parameters
    ----------
    frame : FieldFrame
        Frame to render.
    layout : GridLayout
        Layout the frame was evaluated on.
    title : str, optional
        Plot title.
    figsize : Tuple[float, float], optional
        Figure size in inches.
    show : bool, optional
        If True, call plt.show().

    Returns
    -------
    Figure
        Matplotlib figure object.
    """
    colors = np.clip(frame.color_grid(layout.size), 0.0, 1.0)

    fig, ax = plt.subplots(figsize=figsize)
    ax.imshow(colors, origin="lower", extent=_image_extent(layout), interpolation="nearest")

    ax.set_title(f"{title} (t={frame.timestamp:.2f}s, waves={frame.active_wave_count})")
    ax.set_xlabel("X")
    ax.set_ylabel("Z")

    fig.tight_layout()

    if show:
        plt.show()

    return fig


def render_wave_fronts(
    frame: FieldFrame,
    layout: GridLayout,
    snapshot: WaveSnapshot,
    speed: float,
    title: str = "Wavefronts",
    front_color: str = "white",
    origin_marker: str = "x",
    figsize: Tuple[float, float] = (6, 6),
    show: bool = False,
) -> Figure:
    """
    Render element colours with each source's wavefront overlaid.

    A source started ``age`` seconds ago has a front of radius
    ``speed * age`` around its origin.

    Parameters
    ----------
    frame : FieldFrame
        Frame to render.
    layout : GridLayout
        Layout the frame was evaluated on.
    snapshot : WaveSnapshot
        Sources active for the frame.
    speed : float
        Propagation speed.
    title : str, optional
        Plot title.
    front_color : str, optional
        Colour of the front circles and origin markers.
    origin_marker : str, optional
        Marker for source origins.
    figsize : Tuple[float, float], optional
        Figure size in inches.
    show : bool, optional
        If True, call plt.show().

    Returns
    -------
    Figure
        Matplotlib figure object.
    """
    fig = render_color_grid(frame, layout, title=title, figsize=figsize)
    ax = fig.axes[0]

    for source in snapshot.sources:
        radius = speed * source.age(frame.timestamp)
        if radius <= 0:
            continue
        ax.add_patch(
            mpatches.Circle(
                source.origin_xz,
                radius,
                fill=False,
                edgecolor=front_color,
                linewidth=1.2,
                alpha=0.8,
            )
        )

    if len(snapshot) > 0:
        ax.scatter(
            snapshot.origins[:, 0],
            snapshot.origins[:, 1],
            c=front_color,
            marker=origin_marker,
            s=60,
        )

    left, right, bottom, top = _image_extent(layout)
    ax.set_xlim(left, right)
    ax.set_ylim(bottom, top)

    if show:
        plt.show()

    return fig


def render_height_trace(
    frames: Sequence[FieldFrame],
    element_indices: Sequence[int],
    labels: Optional[Sequence[str]] = None,
    title: str = "Element Height",
    figsize: Tuple[float, float] = (10, 4),
    show: bool = False,
) -> Figure:
    """
    Plot the displacement of selected elements over a run of frames.

    Parameters
    ----------
    frames : Sequence[FieldFrame]
        Frames in time order.
    element_indices : Sequence[int]
        Flat indices of the elements to trace.
    labels : Optional[Sequence[str]], optional
        Legend labels. Defaults to "element <index>".
    title : str, optional
        Plot title.
    figsize : Tuple[float, float], optional
        Figure size in inches.
    show : bool, optional
        If True, call plt.show().

    Returns
    -------
    Figure
        Matplotlib figure object.
    """
    if labels is not None and len(labels) != len(element_indices):
        raise ValueError(
            f"labels must match element_indices. Got {len(labels)} and {len(element_indices)}."
        )

    timestamps = np.array([f.timestamp for f in frames])
    validate_monotonic_timestamps(timestamps, strict=False, name="frame timestamps")

    fig, ax = plt.subplots(figsize=figsize)

    for i, index in enumerate(element_indices):
        label = labels[i] if labels is not None else f"element {index}"
        ax.plot(timestamps, [f.heights[index] for f in frames], label=label, linewidth=1)

    ax.set_title(title)
    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Height")
    ax.legend()
    ax.grid(True, alpha=0.3)

    fig.tight_layout()

    if show:
        plt.show()

    return fig


def save_figure(
    fig: Figure,
    filepath: str,
    dpi: int = 150,
    transparent: bool = False,
) -> None:
    """
    Save a figure to file.

    Parameters
    ----------
    fig : Figure
        Matplotlib figure to save.
    filepath : str
        Output file path (e.g., "ripple.png").
    dpi : int, optional
        Resolution in dots per inch. Defaults to 150.
    transparent : bool, optional
        If True, save with transparent background. Defaults to False.
    """
    fig.savefig(filepath, dpi=dpi, transparent=transparent, bbox_inches="tight")


def close_figure(fig: Figure) -> None:
    """Close a figure to free memory."""
    plt.close(fig)

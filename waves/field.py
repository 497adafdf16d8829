"""
field.py

Wave field evaluation kernel.

Maps (element position, current time, wave snapshot, wave parameters)
to a vertical displacement and an RGBA colour for every grid element.
Each element depends only on its own position, the tick's immutable
snapshot and the immutable parameters, so elements can be evaluated in
any order and in parallel.

For one source at ground-plane distance D from an element, with
``t = current_time - start_time`` and ``dt = t - D / speed``::

    contribution = amplitude * exp(-damping * dt) * sin(frequency * dt)   if dt > 0
                 = 0                                                     otherwise

The displacement is the sum of all contributions, snapped to exactly
zero when its magnitude is below NEAR_ZERO_HEIGHT. The colour blends
bottom_color to top_color by ``clamp(height / amplitude * 0.5 + 0.5, 0, 1)``.
"""

import math
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from contracts.validation import validate_shape
from waves.registry import WaveSnapshot


NEAR_ZERO_HEIGHT: float = 1e-3
"""Displacements with smaller magnitude are output as exactly 0."""


def wave_contribution(distance: float, time_since_start: float, params) -> float:
    """
    Raw displacement from one source at an element, before quantization.

    Parameters
    ----------
    distance : float
        Ground-plane distance between element and source origin.
    time_since_start : float
        Seconds since the source started.
    params : WaveParameters
        Wave shape parameters.

    Returns
    -------
    float
        Contribution, 0.0 until the wavefront reaches the element.
    """
    adjusted_time = time_since_start - distance / params.speed
    if adjusted_time > 0:
        phase = params.frequency * adjusted_time
        decay = math.exp(-params.damping * adjusted_time)
        return params.amplitude * decay * math.sin(phase)
    return 0.0


def quantize_height(height: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Snap displacements with magnitude below NEAR_ZERO_HEIGHT to 0."""
    if np.ndim(height) == 0:
        height = float(height)
        return 0.0 if abs(height) < NEAR_ZERO_HEIGHT else height
    heights = np.asarray(height, dtype=np.float64)
    return np.where(np.abs(heights) < NEAR_ZERO_HEIGHT, 0.0, heights)


def height_to_color(
    height: Union[float, np.ndarray],
    amplitude: float,
    bottom_color: Sequence[float],
    top_color: Sequence[float],
) -> np.ndarray:
    """
    Map displacement to an RGBA colour.

    Displacement -amplitude maps to ``bottom_color``, 0 to the even blend
    and +amplitude to ``top_color``; anything beyond +/-amplitude
    saturates. A zero amplitude has no normalization range and maps every
    displacement to the even blend.

    Parameters
    ----------
    height : float or np.ndarray
        Displacement(s).
    amplitude : float
        Normalization half-range.
    bottom_color, top_color : sequence of float
        RGB endpoints.

    Returns
    -------
    np.ndarray
        RGBA with alpha 1. Shape: height.shape + (4,).
    """
    heights = np.asarray(height, dtype=np.float64)
    bottom = np.asarray(bottom_color, dtype=np.float64)
    top = np.asarray(top_color, dtype=np.float64)

    if amplitude == 0:
        normalized = np.full(heights.shape, 0.5)
    else:
        normalized = np.clip(heights / amplitude * 0.5 + 0.5, 0.0, 1.0)

    weight = normalized[..., np.newaxis]
    rgba = np.empty(heights.shape + (4,), dtype=np.float64)
    rgba[..., :3] = bottom * (1.0 - weight) + top * weight
    rgba[..., 3] = 1.0
    return rgba


def evaluate_element(
    position_xz: Tuple[float, float],
    current_time: float,
    snapshot: WaveSnapshot,
    params,
) -> Tuple[float, Tuple[float, float, float, float]]:
    """
    Evaluate a single element against every source in a snapshot.

    Reference form of the kernel; ``evaluate_field`` computes the same
    result for many elements at once.

    Parameters
    ----------
    position_xz : Tuple[float, float]
        Element ground-plane coordinates.
    current_time : float
        Simulation time in seconds.
    snapshot : WaveSnapshot
        Active sources for this tick.
    params : WaveParameters
        Wave shape parameters.

    Returns
    -------
    Tuple[float, Tuple[float, float, float, float]]
        Quantized displacement and RGBA colour.
    """
    x, z = position_xz
    total_height = 0.0

    for source in snapshot.sources:
        time_since_start = current_time - source.start_time
        dx = x - source.origin_xz[0]
        dz = z - source.origin_xz[1]
        distance = math.sqrt(dx * dx + dz * dz)

        # Wavefront has not reached this element yet
        if distance > params.speed * time_since_start:
            continue

        total_height += wave_contribution(distance, time_since_start, params)

    height = quantize_height(total_height)
    rgba = height_to_color(height, params.amplitude, params.bottom_color, params.top_color)
    return height, tuple(float(c) for c in rgba)


def evaluate_field(
    positions_xz: np.ndarray,
    current_time: float,
    snapshot: WaveSnapshot,
    params,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Evaluate displacement and colour for many elements.

    Parameters
    ----------
    positions_xz : np.ndarray
        Element ground-plane coordinates. Shape: (N, 2).
    current_time : float
        Simulation time in seconds.
    snapshot : WaveSnapshot
        Active sources for this tick.
    params : WaveParameters
        Wave shape parameters.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        Quantized displacements, shape (N,), and RGBA colours, shape (N, 4).
    """
    positions_xz = np.asarray(positions_xz, dtype=np.float64)
    validate_shape(positions_xz, (None, 2), "positions_xz")

    x = positions_xz[:, 0]
    z = positions_xz[:, 1]
    total_height = np.zeros(positions_xz.shape[0], dtype=np.float64)

    for (origin_x, origin_z), start_time in zip(snapshot.origins, snapshot.start_times):
        time_since_start = current_time - start_time
        if time_since_start <= 0:
            continue

        dx = x - origin_x
        dz = z - origin_z
        distance = np.sqrt(dx * dx + dz * dz)
        adjusted_time = time_since_start - distance / params.speed

        reached = adjusted_time > 0
        if not np.any(reached):
            continue

        adjusted_time = adjusted_time[reached]
        decay = np.exp(-params.damping * adjusted_time)
        total_height[reached] += params.amplitude * decay * np.sin(params.frequency * adjusted_time)

    heights = quantize_height(total_height)
    colors = height_to_color(heights, params.amplitude, params.bottom_color, params.top_color)
    return heights, colors


class FieldEvaluator:
    """
    Evaluates the wave field over element chunks on a thread pool.

    Elements are split into contiguous chunks; each chunk writes a
    disjoint slice of freshly allocated output arrays, and all chunks are
    joined before results are returned. With ``max_workers=1``, or when
    the grid fits in one chunk, evaluation runs inline.

    Parameters
    ----------
    max_workers : Optional[int]
        Worker threads. Defaults to min(4, cpu count).
    chunk_size : int
        Elements per task. Must be positive.
    """

    def __init__(self, max_workers: Optional[int] = None, chunk_size: int = 4096) -> None:
        if max_workers is None:
            max_workers = min(4, os.cpu_count() or 1)
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1. Got {max_workers}.")
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1. Got {chunk_size}.")

        self._max_workers = max_workers
        self._chunk_size = chunk_size
        self._closed = False
        self._executor: Optional[ThreadPoolExecutor] = None
        if max_workers > 1:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="wavefield"
            )

    @property
    def max_workers(self) -> int:
        return self._max_workers

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def evaluate(
        self,
        positions_xz: np.ndarray,
        current_time: float,
        snapshot: WaveSnapshot,
        params,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Evaluate every element; same result as ``evaluate_field``.

        Raises
        ------
        RuntimeError
            If the evaluator has been closed.
        """
        positions_xz = np.asarray(positions_xz, dtype=np.float64)
        validate_shape(positions_xz, (None, 2), "positions_xz")
        n = positions_xz.shape[0]

        if self._closed:
            raise RuntimeError("FieldEvaluator is closed")
        if self._executor is None or n <= self._chunk_size:
            return evaluate_field(positions_xz, current_time, snapshot, params)

        heights = np.empty(n, dtype=np.float64)
        colors = np.empty((n, 4), dtype=np.float64)

        def run_chunk(start: int, stop: int) -> None:
            chunk_heights, chunk_colors = evaluate_field(
                positions_xz[start:stop], current_time, snapshot, params
            )
            heights[start:stop] = chunk_heights
            colors[start:stop] = chunk_colors

        futures = [
            self._executor.submit(run_chunk, start, min(start + self._chunk_size, n))
            for start in range(0, n, self._chunk_size)
        ]
        for future in futures:
            future.result()

        return heights, colors

    def close(self) -> None:
        """Shut down the worker threads."""
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "FieldEvaluator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

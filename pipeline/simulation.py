"""
simulation.py

Wave simulation driver.

Owns the wave registry and sequences each tick:

1. add a wave source for every hit received since the previous tick
2. prune sources that outlived the wave lifetime
3. take an immutable snapshot of the survivors
4. evaluate displacement and colour for every grid element
5. publish the result as a FieldFrame and write it into the grid state

Registry mutation is single-writer and finishes before evaluation
starts; hits that arrive in a tick are part of that same tick's
evaluation.

All time quantities are in seconds.
"""

import logging
from typing import List, Optional, Sequence

from contracts.field import FieldFrame
from contracts.validation import ConfigurationError, ValidationError, validate_finite_scalar
from contracts.wave import HitEvent, WaveParameters, WaveSource
from space.grid_layout import GridLayout, GridState
from waves.field import FieldEvaluator
from waves.registry import WaveRegistry, WaveSnapshot

logger = logging.getLogger(__name__)


class RippleSimulation:
    """
    Wave grid simulation stepped by an external clock.

    Parameters
    ----------
    params : WaveParameters
        Validated wave and grid configuration.
    layout : Optional[GridLayout]
        Element lattice. Defaults to the layout described by ``params``;
        a supplied layout must have the same size and spacing, since the
        wave lifetime is derived from them.
    evaluator : Optional[FieldEvaluator]
        Field evaluator. Defaults to an inline (single-threaded) one.
        An evaluator passed in is closed together with the simulation.

    Attributes
    ----------
    params : WaveParameters
        Wave and grid configuration.
    layout : GridLayout
        Element lattice.
    grid_state : GridState
        Per-element displacement and colour after the latest tick.
    latest_frame : Optional[FieldFrame]
        Result of the latest tick, None before the first.
    """

    def __init__(
        self,
        params: WaveParameters,
        layout: Optional[GridLayout] = None,
        evaluator: Optional[FieldEvaluator] = None,
    ) -> None:
        """Initialize the simulation with an empty registry."""
        if not isinstance(params, WaveParameters):
            raise TypeError(f"params must be WaveParameters, got {type(params).__name__}")

        if layout is None:
            layout = GridLayout.from_parameters(params)
        elif layout.size != params.grid_size or layout.spacing != params.grid_spacing:
            raise ConfigurationError(
                f"layout ({layout.size}x{layout.size}, spacing {layout.spacing}) does not match "
                f"params ({params.grid_size}x{params.grid_size}, spacing {params.grid_spacing})"
            )

        self._params = params
        self._layout = layout
        self._evaluator = evaluator if evaluator is not None else FieldEvaluator(max_workers=1)
        self._registry = WaveRegistry()
        self._grid_state = GridState(self._layout, initial_color=params.neutral_color)
        self._pending_hits: List[HitEvent] = []
        self._latest_frame: Optional[FieldFrame] = None
        self._last_time: Optional[float] = None
        self._tick_count = 0
        self._closed = False

        logger.info(
            "Ripple simulation ready: %dx%d grid, lifetime %.3fs",
            self._layout.size,
            self._layout.size,
            params.lifetime,
        )

    @property
    def params(self) -> WaveParameters:
        return self._params

    @property
    def layout(self) -> GridLayout:
        return self._layout

    @property
    def grid_state(self) -> GridState:
        return self._grid_state

    @property
    def latest_frame(self) -> Optional[FieldFrame]:
        return self._latest_frame

    @property
    def active_wave_count(self) -> int:
        """Number of wave sources currently in the registry."""
        return len(self._registry)

    @property
    def pending_hit_count(self) -> int:
        """Hits received but not yet applied by a tick."""
        return len(self._pending_hits)

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def current_time(self) -> Optional[float]:
        """Time of the latest tick, None before the first."""
        return self._last_time

    def on_hit_event(self, world_position: Sequence[float], timestamp: float) -> HitEvent:
        """
        Receive a hit from the input source.

        The wave source is created by the next ``tick``.

        Parameters
        ----------
        world_position : Sequence[float]
            Hit point (x, y, z); only X and Z are used.
        timestamp : float
            Time of the hit in seconds.

        Returns
        -------
        HitEvent
            The validated hit.
        """
        self._check_open()
        hit = HitEvent(world_position=tuple(world_position), timestamp=timestamp)
        self._pending_hits.append(hit)
        return hit

    def submit_hit(self, hit: HitEvent) -> None:
        """Queue an already-built hit event."""
        self._check_open()
        self._pending_hits.append(hit)

    def snapshot(self) -> WaveSnapshot:
        """Immutable view of the currently active sources."""
        return self._registry.snapshot()

    def tick(self, current_time: float) -> FieldFrame:
        """
        Advance the simulation to ``current_time`` and evaluate the grid.

        Parameters
        ----------
        current_time : float
            Simulation time in seconds. Must be finite and not earlier
            than the previous tick.

        Returns
        -------
        FieldFrame
            Displacement and colour of every element for this tick.

        Raises
        ------
        ValidationError
            If current_time is non-finite or goes backwards.
        RuntimeError
            If the simulation has been closed.
        """
        self._check_open()
        current_time = validate_finite_scalar(current_time, "current_time")
        if self._last_time is not None and current_time < self._last_time:
            raise ValidationError(
                f"current_time must not decrease. Got {current_time} after {self._last_time}."
            )

        for hit in self._pending_hits:
            self._registry.add(WaveSource.from_hit(hit))
        self._pending_hits.clear()

        self._registry.prune(current_time, self._params.lifetime)
        snapshot = self._registry.snapshot()

        heights, colors = self._evaluator.evaluate(
            self._layout.positions_xz, current_time, snapshot, self._params
        )
        frame = FieldFrame(
            timestamp=current_time,
            heights=heights,
            colors=colors,
            active_wave_count=len(snapshot),
        )

        self._grid_state.apply_frame(frame)
        self._latest_frame = frame
        self._last_time = current_time
        self._tick_count += 1
        return frame

    def close(self) -> None:
        """Release wave sources and evaluator threads."""
        if self._closed:
            return
        self._registry.clear()
        self._pending_hits.clear()
        self._evaluator.close()
        self._closed = True
        logger.info("Ripple simulation closed after %d ticks", self._tick_count)

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("RippleSimulation is closed")

    def __enter__(self) -> "RippleSimulation":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

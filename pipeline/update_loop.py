"""
update_loop.py

Fixed-step execution loop coordinating input, the wave simulation and
presentation.

This module does not evaluate waves or render anything.
It orchestrates the sequence of operations at each timestep.

All time units are seconds.
"""

from typing import Optional, List, Protocol, runtime_checkable

from contracts.field import FieldFrame
from contracts.wave import HitEvent
from pipeline.simulation import RippleSimulation


@runtime_checkable
class InputSourceProtocol(Protocol):
    """
    Protocol for sources of hit events.

    An input source is polled once per step and returns at most one hit.
    """

    def poll(self, current_time: float) -> Optional[HitEvent]:
        """
        Return the hit for this step, if any.

        Parameters
        ----------
        current_time : float
            Simulation time of the step in seconds.
        """
        ...


@runtime_checkable
class PresenterProtocol(Protocol):
    """
    Protocol for consumers of per-element displacement and colour.
    """

    def apply(self, frame: FieldFrame) -> None:
        """
        Present a completed frame.

        Parameters
        ----------
        frame : FieldFrame
            The frame produced by the step.
        """
        ...


class UpdateLoop:
    """
    Fixed-step execution loop for the ripple simulation.

    Coordinates the sequence of operations at each timestep:
    1. Advance the clock by dt
    2. Poll the optional input source and forward any hit
    3. Tick the simulation (add, prune, evaluate)
    4. Hand the frame to the optional presenter

    Parameters
    ----------
    simulation : RippleSimulation
        The simulation to drive.
    dt : float
        Fixed timestep in seconds. Must be positive.
    input_source : Optional[InputSourceProtocol], optional
        Source of hit events polled every step. Defaults to None.
    presenter : Optional[PresenterProtocol], optional
        Consumer of each completed frame. Defaults to None.
    start_time : float, optional
        Clock value before the first step. Defaults to 0.0.

    Attributes
    ----------
    simulation : RippleSimulation
        Reference to the simulation.
    dt : float
        Fixed timestep in seconds.
    step_count : int
        Number of steps executed since initialization.
    current_time : float
        Clock value of the latest step.
    """

    def __init__(
        self,
        simulation: RippleSimulation,
        dt: float,
        input_source: Optional[InputSourceProtocol] = None,
        presenter: Optional[PresenterProtocol] = None,
        start_time: float = 0.0,
    ) -> None:
        """Initialize the update loop."""
        if dt <= 0.0:
            raise ValueError(
                f"Timestep dt must be positive. Got {dt}."
            )
        if input_source is not None and not isinstance(input_source, InputSourceProtocol):
            raise TypeError(
                f"input_source must implement poll(current_time). Got {type(input_source).__name__}."
            )
        if presenter is not None and not isinstance(presenter, PresenterProtocol):
            raise TypeError(
                f"presenter must implement apply(frame). Got {type(presenter).__name__}."
            )

        self._simulation = simulation
        self._dt = dt
        self._input_source = input_source
        self._presenter = presenter
        self._time = start_time
        self._step_count = 0

    @property
    def simulation(self) -> RippleSimulation:
        """Reference to the simulation."""
        return self._simulation

    @property
    def dt(self) -> float:
        """Fixed timestep in seconds."""
        return self._dt

    @property
    def step_count(self) -> int:
        """Number of steps executed since initialization."""
        return self._step_count

    @property
    def current_time(self) -> float:
        """Clock value of the latest step in seconds."""
        return self._time

    def step(self) -> FieldFrame:
        """
        Execute one simulation step.

        Returns
        -------
        FieldFrame
            The frame produced at this timestep.
        """
        self._time += self._dt

        if self._input_source is not None:
            hit = self._input_source.poll(self._time)
            if hit is not None:
                self._simulation.submit_hit(hit)

        frame = self._simulation.tick(self._time)

        if self._presenter is not None:
            self._presenter.apply(frame)

        self._step_count += 1

        return frame

    def run(self, n_steps: int) -> List[FieldFrame]:
        """
        Execute multiple simulation steps.

        Parameters
        ----------
        n_steps : int
            Number of steps to execute. Must be non-negative.

        Returns
        -------
        List[FieldFrame]
            Frames produced during the run. Length equals n_steps.

        Raises
        ------
        ValueError
            If n_steps is negative.
        """
        if n_steps < 0:
            raise ValueError(
                f"n_steps must be non-negative. Got {n_steps}."
            )

        return [self.step() for _ in range(n_steps)]

    def set_presenter(self, presenter: Optional[PresenterProtocol]) -> None:
        """
        Attach or detach a presenter.

        Parameters
        ----------
        presenter : Optional[PresenterProtocol]
            The presenter to attach, or None to detach.
        """
        self._presenter = presenter

"""
input_source.py

Pointer input turned into one-shot hit events.

A held press must start exactly one wave, so presses go through a
two-state edge detector ({UP, DOWN}); only the UP -> DOWN transition
produces a hit. The hit is published through a one-shot slot whose
``occurred`` flag the producer resets at the start of every poll.

This state machine belongs to input handling and is unrelated to the
ACTIVE -> EXPIRED lifecycle of wave sources.
"""

import enum
import logging
from typing import Optional, Tuple

from contracts.wave import HitEvent
from interaction.raycast import Ray, intersect_ground_plane

logger = logging.getLogger(__name__)


class PressState(enum.Enum):
    """Pointer button state."""

    UP = "up"
    DOWN = "down"


class PressEdgeDetector:
    """
    Rising-edge detector for a pointer button.

    ``update`` returns True only on the call where the button goes from
    UP to DOWN.
    """

    def __init__(self) -> None:
        self._state = PressState.UP

    @property
    def state(self) -> PressState:
        return self._state

    def update(self, is_down: bool) -> bool:
        """Feed the current button state; True on a new press."""
        pressed = is_down and self._state is PressState.UP
        self._state = PressState.DOWN if is_down else PressState.UP
        return pressed

    def reset(self) -> None:
        self._state = PressState.UP


class HitSlot:
    """
    One-shot holder for at most one hit event per tick.

    The producer calls ``reset`` every tick before possibly publishing, so
    a hit is observed in exactly one tick.
    """

    def __init__(self) -> None:
        self._event: Optional[HitEvent] = None

    @property
    def occurred(self) -> bool:
        """Whether a hit was published since the last reset."""
        return self._event is not None

    @property
    def event(self) -> Optional[HitEvent]:
        return self._event

    def publish(self, event: HitEvent) -> None:
        self._event = event

    def reset(self) -> None:
        self._event = None

    def take(self) -> Optional[HitEvent]:
        """Return the pending event, if any, and clear the slot."""
        event, self._event = self._event, None
        return event


class PointerInputSource:
    """
    Produces hit events from pointer state fed in by a host.

    Hosts call ``set_pointer`` whenever the pointer changes, supplying
    either a picking ray or an already-resolved ground point. ``poll`` is
    called once per tick and returns a HitEvent only for the tick in which
    a new press is seen and the pointer resolves to the ground plane. A
    press that is released before the next poll is still reported.

    Parameters
    ----------
    plane_height : float
        Height of the ground plane hits are cast against. Defaults to 0.0.
    """

    def __init__(self, plane_height: float = 0.0) -> None:
        self._plane_height = plane_height
        self._detector = PressEdgeDetector()
        self._slot = HitSlot()
        self._is_down = False
        self._pending_press = False
        self._ray: Optional[Ray] = None
        self._world_point: Optional[Tuple[float, float, float]] = None

    @property
    def slot(self) -> HitSlot:
        return self._slot

    @property
    def press_state(self) -> PressState:
        return self._detector.state

    def set_pointer(
        self,
        is_down: bool,
        ray: Optional[Ray] = None,
        world_point: Optional[Tuple[float, float, float]] = None,
    ) -> None:
        """
        Record the latest pointer state.

        Parameters
        ----------
        is_down : bool
            Whether the primary button is held.
        ray : Optional[Ray]
            Picking ray under the pointer.
        world_point : Optional[Tuple[float, float, float]]
            Ground point under the pointer; used when no ray is given.
        """
        is_down = bool(is_down)
        if is_down and not self._is_down:
            self._pending_press = True
        self._is_down = is_down
        if ray is not None or world_point is not None:
            self._ray = ray
            self._world_point = world_point

    def poll(self, current_time: float) -> Optional[HitEvent]:
        """
        Resolve this tick's hit, if a new press happened.

        Parameters
        ----------
        current_time : float
            Simulation time stamped on the hit.

        Returns
        -------
        Optional[HitEvent]
            The hit for this tick, or None.
        """
        self._slot.reset()

        # a press released again before this poll still counts once
        pending, self._pending_press = self._pending_press, False
        pressed = self._detector.update(self._is_down)
        if not (pressed or pending):
            return None

        point = self._resolve_point()
        if point is None:
            logger.debug("Press at t=%.3f did not hit the ground plane", current_time)
            return None

        self._slot.publish(HitEvent(world_position=point, timestamp=current_time))
        return self._slot.event

    def _resolve_point(self) -> Optional[Tuple[float, float, float]]:
        if self._ray is not None:
            return intersect_ground_plane(self._ray, self._plane_height)
        return self._world_point

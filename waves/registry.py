"""
registry.py

Bounded-lifetime collection of active wave sources.

The registry is the only owner of wave sources. It is mutated once per
tick by a single writer (add, then prune) and hands out immutable
snapshots for the evaluation pass, so no evaluation ever observes a
collection that is being modified.

All time quantities are in seconds.
"""

import logging
from typing import List, Tuple

import numpy as np

from contracts.wave import WaveSource

logger = logging.getLogger(__name__)


class WaveSnapshot:
    """
    Immutable view of the wave sources active for one evaluation pass.

    Parameters
    ----------
    sources : Tuple[WaveSource, ...]
        The active sources. Order is irrelevant to evaluation.

    Attributes
    ----------
    sources : Tuple[WaveSource, ...]
        The active sources.
    origins : np.ndarray
        Read-only source origins. Shape: (K, 2).
    start_times : np.ndarray
        Read-only source start times. Shape: (K,).
    """

    __slots__ = ("_sources", "_origins", "_start_times")

    def __init__(self, sources: Tuple[WaveSource, ...]) -> None:
        self._sources = tuple(sources)

        origins = np.array([s.origin_xz for s in self._sources], dtype=np.float64).reshape(-1, 2)
        start_times = np.array([s.start_time for s in self._sources], dtype=np.float64)
        origins.flags.writeable = False
        start_times.flags.writeable = False
        self._origins = origins
        self._start_times = start_times

    @property
    def sources(self) -> Tuple[WaveSource, ...]:
        return self._sources

    @property
    def origins(self) -> np.ndarray:
        return self._origins

    @property
    def start_times(self) -> np.ndarray:
        return self._start_times

    def __len__(self) -> int:
        return len(self._sources)

    def __iter__(self):
        return iter(self._sources)

    def __repr__(self) -> str:
        return f"WaveSnapshot(sources={len(self._sources)})"


EMPTY_SNAPSHOT = WaveSnapshot(())


class WaveRegistry:
    """
    Unordered collection of active wave sources.

    Sources are appended when hit events arrive and removed once they
    outlive the configured lifetime. Removal swaps the expired entry with
    the last one and truncates, which is O(1) per removal; surviving
    sources may change order, which evaluation does not depend on.

    There is no cap on the number of simultaneously active sources other
    than lifetime-driven turnover. Evaluation cost grows linearly with the
    number of concurrently alive sources, which is the scalability limit
    of the simulation.

    Invariants
    ----------
    - add never deduplicates: simultaneous identical hits each add a source
    - prune removes exactly the sources with current_time - start_time > lifetime
    - prune is idempotent for an unchanged current_time
    - snapshots are copies and never change after they are taken
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._sources: List[WaveSource] = []

    def __len__(self) -> int:
        """Number of active sources."""
        return len(self._sources)

    @property
    def active_count(self) -> int:
        """Number of active sources."""
        return len(self._sources)

    def add(self, source: WaveSource) -> None:
        """
        Append a wave source.

        Parameters
        ----------
        source : WaveSource
            The source to add.

        Raises
        ------
        TypeError
            If source is not a WaveSource.
        """
        if not isinstance(source, WaveSource):
            raise TypeError(f"source must be WaveSource, got {type(source).__name__}")
        self._sources.append(source)
        logger.debug(
            "Wave added at (%.3f, %.3f) t=%.3f; %d active",
            source.origin_xz[0],
            source.origin_xz[1],
            source.start_time,
            len(self._sources),
        )

    def prune(self, current_time: float, lifetime: float) -> int:
        """
        Remove every source older than ``lifetime``.

        A source expires when ``current_time - start_time > lifetime``;
        at exactly ``start_time + lifetime`` it is still active.

        Parameters
        ----------
        current_time : float
            Current simulation time in seconds.
        lifetime : float
            Active duration of a source in seconds.

        Returns
        -------
        int
            Number of sources removed.
        """
        sources = self._sources
        removed = 0

        # Walk backwards so a swapped-in tail entry has already been checked
        for i in range(len(sources) - 1, -1, -1):
            if sources[i].is_expired(current_time, lifetime):
                sources[i] = sources[-1]
                sources.pop()
                removed += 1

        if removed:
            logger.debug("Expired %d wave(s) at t=%.3f; %d active", removed, current_time, len(sources))
        return removed

    def snapshot(self) -> WaveSnapshot:
        """
        Immutable view of the current sources for one evaluation pass.

        Returns
        -------
        WaveSnapshot
            Copy of the active sources; unaffected by later add or prune.
        """
        if not self._sources:
            return EMPTY_SNAPSHOT
        return WaveSnapshot(tuple(self._sources))

    def clear(self) -> None:
        """Remove all sources."""
        self._sources.clear()

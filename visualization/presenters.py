"""
presenters.py

Frame consumers for the update loop.

Both classes implement the presenter protocol (``apply(frame)``) used by
pipeline.update_loop.UpdateLoop.
"""

from collections import deque
from typing import List, Optional

import numpy as np

from contracts.field import FieldFrame
from space.grid_layout import GridState


class FrameRecorder:
    """
    Keeps the most recent frames for later plotting or inspection.

    Parameters
    ----------
    max_frames : Optional[int]
        Capacity; oldest frames are dropped first. None keeps everything.
    """

    def __init__(self, max_frames: Optional[int] = None) -> None:
        if max_frames is not None and max_frames < 1:
            raise ValueError(f"max_frames must be >= 1 or None. Got {max_frames}.")
        self._frames = deque(maxlen=max_frames)

    def apply(self, frame: FieldFrame) -> None:
        self._frames.append(frame)

    @property
    def frames(self) -> List[FieldFrame]:
        return list(self._frames)

    @property
    def latest(self) -> Optional[FieldFrame]:
        return self._frames[-1] if self._frames else None

    def __len__(self) -> int:
        return len(self._frames)

    def height_history(self, index: int) -> np.ndarray:
        """Displacement of one element across the recorded frames."""
        return np.array([f.heights[index] for f in self._frames], dtype=np.float64)


class GridStatePresenter:
    """Writes every frame into a separate GridState (e.g. a render mirror)."""

    def __init__(self, grid_state: GridState) -> None:
        self._grid_state = grid_state

    @property
    def grid_state(self) -> GridState:
        return self._grid_state

    def apply(self, frame: FieldFrame) -> None:
        self._grid_state.apply_frame(frame)

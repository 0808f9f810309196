from collections import deque
from typing import Deque, List, Optional

import numpy as np

from globe_flight.exceptions import InvalidConfigError
from globe_flight.helpers import CartesianPoint

# ============================================================================
# TRAIL BUFFER
# ============================================================================

class TrailBuffer:
    """Most recent positions of the flying object, oldest first"""

    def __init__(self, capacity: int = 50):
        if capacity < 1:
            raise InvalidConfigError(f"trail capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._points: Deque[CartesianPoint] = deque(maxlen=capacity)

    def append(self, point: CartesianPoint) -> Optional[CartesianPoint]:
        """
        Add a point, evicting the oldest once the buffer is full
        Returns: the evicted point, or None if nothing was evicted
        """
        evicted = self._points[0] if len(self._points) == self.capacity else None
        self._points.append(point)
        return evicted

    def retract(self, evicted: Optional[CartesianPoint] = None):
        """Undo the last append, putting back the point it evicted"""
        self._points.pop()
        if evicted is not None:
            self._points.appendleft(evicted)

    def clear(self):
        self._points.clear()

    def points(self) -> List[CartesianPoint]:
        return list(self._points)

    def as_array(self) -> np.ndarray:
        """Trail as an (N, 3) array, empty shape (0, 3) when there is no trail yet"""
        if not self._points:
            return np.empty((0, 3))
        return np.array([p.to_tuple() for p in self._points])

    def __len__(self) -> int:
        return len(self._points)

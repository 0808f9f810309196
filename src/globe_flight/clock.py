from typing import Callable, List

from globe_flight.exceptions import InvalidSpeedError

# Absorbs float drift from summing the per-tick speed
OVERFLOW_TOLERANCE = 1e-9

# ============================================================================
# PROGRESS CLOCK
# ============================================================================

class ProgressClock:
    """Normalized progress along the current leg, advanced once per tick"""

    def __init__(self, speed: float = 0.002):
        self.progress = 0.0
        self.speed = speed
        self._listeners: List[Callable[[], None]] = []

    @property
    def speed(self) -> float:
        return self._speed

    @speed.setter
    def speed(self, value: float):
        if not value > 0.0:
            raise InvalidSpeedError(f"speed must be positive, got {value}")
        self._speed = float(value)

    def on_leg_complete(self, listener: Callable[[], None]):
        self._listeners.append(listener)

    def advance(self) -> bool:
        """
        Step progress forward by the current speed
        Returns: True if the leg completed this tick (progress is back at 0)
        """
        self.progress += self._speed
        if self.progress > 1.0 - OVERFLOW_TOLERANCE:
            self.progress = 0.0
            for listener in self._listeners:
                listener()
            return True
        return False

    def reset(self):
        self.progress = 0.0

import logging
from typing import List, Optional, Sequence, Tuple

from globe_flight.helpers import Waypoint

logger = logging.getLogger(__name__)

# ============================================================================
# WAYPOINT SEQUENCER
# ============================================================================

class WaypointSequencer:
    """Walks an ordered schedule of waypoints one leg at a time"""

    def __init__(self, schedule: Optional[Sequence[Waypoint]] = None):
        self.schedule: List[Waypoint] = []
        self.cursor = 0
        self.departure: Optional[Waypoint] = None
        self.destination: Optional[Waypoint] = None
        if schedule:
            self.set_schedule(schedule)

    def set_schedule(self, waypoints: Sequence[Waypoint]):
        """Replace the schedule and forget the current leg"""
        self.schedule = list(waypoints)
        self.cursor = 0
        self.departure = None
        self.destination = None

    def add_waypoint(self, waypoint: Waypoint):
        """Append a waypoint to the end of the schedule"""
        self.schedule.append(waypoint)

    def has_route(self) -> bool:
        """Check if the schedule holds at least one leg"""
        return len(self.schedule) >= 2

    def ensure_initial_leg(self) -> bool:
        """
        Set up the first leg if none is active yet
        Returns: True if a leg is active afterwards
        """
        if not self.has_route():
            return False
        if self.departure is None:
            self.departure = self.schedule[0]
            self.destination = self.schedule[1]
        return True

    def advance(self) -> bool:
        """
        Move on to the next leg
        Returns: True if a new leg is available, False once the schedule is exhausted
        """
        if not self.has_route():
            return False
        if self.cursor < len(self.schedule) - 2:
            self.cursor += 1
            self.departure = self.schedule[self.cursor]
            self.destination = self.schedule[self.cursor + 1]
            logger.info("Leg %d: %r -> %r", self.cursor, self.departure, self.destination)
            return True
        return False

    def current_leg(self) -> Optional[Tuple[Waypoint, Waypoint]]:
        if self.departure is None or self.destination is None:
            return None
        return self.departure, self.destination

    def remaining_legs(self) -> int:
        """Number of legs after the current one"""
        if not self.has_route():
            return 0
        return len(self.schedule) - 2 - self.cursor

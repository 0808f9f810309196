"""
Per-tick flight along a schedule of waypoints on the globe.

FlightController is driven by an external animation loop: call tick() once
per frame and hand the returned FlightUpdate (or the subscribed callbacks) to
whatever draws the scene.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union

from scipy.spatial.transform import Rotation

from globe_flight.clock import ProgressClock
from globe_flight.config import FlightConfig
from globe_flight.exceptions import DegenerateCoordinateError
from globe_flight.flight_calcs import FlightLeg, PathBuilder
from globe_flight.helpers import CartesianPoint, FlightMode, GeoCoordinate, Waypoint
from globe_flight.trail import TrailBuffer
from globe_flight.transforms import (
    cartesian_to_geo,
    geo_to_cartesian,
    orientation_from_tangent,
    orientation_from_up_vector,
)
from globe_flight.wp_manager import WaypointSequencer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlightUpdate:
    """What the renderer receives each tick"""
    position: CartesianPoint
    orientation: Rotation
    progress: float
    leg: FlightLeg


# ============================================================================
# FLIGHT CONTROLLER
# ============================================================================

class FlightController:
    """Flies an object along its waypoint schedule, one leg after another"""

    def __init__(self, id_tag: str,
                 initial_position: Union[GeoCoordinate, CartesianPoint],
                 config: Optional[FlightConfig] = None,
                 schedule: Optional[Sequence[Waypoint]] = None):
        self.id_tag = id_tag
        self.config = config or FlightConfig()

        # Components
        self.path_builder = PathBuilder(
            self.config.globe_radius, self.config.cruise_radius, self.config.surface_offset
        )
        self.sequencer = WaypointSequencer()
        self.clock = ProgressClock(self.config.speed)
        self.trail = TrailBuffer(self.config.trail_capacity)
        self.clock.on_leg_complete(self._arrived)

        # State tracking
        self.flight_mode = FlightMode.IDLE
        self.leg: Optional[FlightLeg] = None
        self._blocked_leg: Optional[Tuple[Waypoint, Waypoint]] = None
        self._listeners: List[Callable[[FlightUpdate], None]] = []

        if isinstance(initial_position, GeoCoordinate):
            initial_position = geo_to_cartesian(
                initial_position.lat, initial_position.lon, initial_position.radius
            )
        self.position = initial_position
        try:
            self.orientation = orientation_from_up_vector(initial_position)
        except DegenerateCoordinateError:
            self.orientation = Rotation.identity()

        if schedule:
            self.set_schedule(schedule)

    # ------------------------------------------------------------------
    # Schedule
    # ------------------------------------------------------------------

    def set_schedule(self, waypoints: Sequence[Waypoint]):
        """Replace the schedule; the next tick starts again from its first leg"""
        self.sequencer.set_schedule(waypoints)
        self.clock.reset()
        self.trail.clear()
        self.leg = None
        self._blocked_leg = None
        self.flight_mode = FlightMode.IDLE

    def add_waypoint(self, waypoint: Waypoint):
        """Append to the schedule. Call between ticks; a halted flight stays halted."""
        self.sequencer.add_waypoint(waypoint)

    def set_speed(self, speed: float):
        """Progress per tick; takes effect from the next tick"""
        self.clock.speed = speed

    def subscribe(self, listener: Callable[[FlightUpdate], None]):
        """Call listener with every published update"""
        self._listeners.append(listener)

    @property
    def progress(self) -> float:
        return self.clock.progress

    @property
    def cursor(self) -> int:
        return self.sequencer.cursor

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> Optional[FlightUpdate]:
        """
        Advance the flight by one frame
        Returns: the published update, or None when the object is stationary
        """
        if self.flight_mode == FlightMode.HALTED:
            return None

        if self.leg is None and not self._start_flight():
            return None

        if self.clock.advance():
            if not self.sequencer.advance():
                self._halt()
                return None
            if not self._build_leg():
                return None

        return self._publish()

    def _start_flight(self) -> bool:
        if not self.sequencer.ensure_initial_leg():
            self.flight_mode = FlightMode.IDLE
            return False
        if self.sequencer.current_leg() == self._blocked_leg:
            return False
        return self._build_leg()

    def _build_leg(self) -> bool:
        """Replace the active leg with one for the sequencer's current pair"""
        departure, destination = self.sequencer.current_leg()
        try:
            self.leg = self.path_builder.build_leg(departure, destination)
        except DegenerateCoordinateError as e:
            logger.warning("[%s] Cannot fly %r -> %r: %s", self.id_tag, departure, destination, e)
            self.leg = None
            self._blocked_leg = (departure, destination)
            self.flight_mode = FlightMode.IDLE
            return False

        self.flight_mode = FlightMode.IN_FLIGHT
        logger.info(
            "[%s] Departing %s for %s (%.3f over the surface)",
            self.id_tag,
            departure.name or departure.id,
            destination.name or destination.id,
            self.leg.surface_distance(self.config.globe_radius),
        )
        return True

    def _arrived(self):
        destination = self.leg.destination
        logger.info("[%s] Arrived at %s", self.id_tag, destination.name or destination.id)

    def _halt(self):
        """Schedule exhausted; freeze at the last sampled point"""
        logger.info("[%s] No more waypoints - halting at %s", self.id_tag, self.position.to_tuple())
        self.flight_mode = FlightMode.HALTED
        self.leg = None

    def _publish(self) -> FlightUpdate:
        """
        Sample the leg and hand the result to every subscriber. Position,
        orientation and trail only change once all subscribers have taken
        the update; if one raises they keep their previous values.
        """
        progress = self.clock.progress
        position = self.leg.path.position_at(progress)
        tangent = self.leg.path.tangent_at(progress)
        try:
            orientation = orientation_from_tangent(tangent)
        except DegenerateCoordinateError:
            logger.debug("[%s] Zero tangent at progress %.4f, keeping orientation", self.id_tag, progress)
            orientation = self.orientation

        update = FlightUpdate(position, orientation, progress, self.leg)
        # Subscribers draw from self.trail, so it must already hold this point
        evicted = self.trail.append(position)
        try:
            for listener in self._listeners:
                listener(update)
        except Exception:
            self.trail.retract(evicted)
            raise

        self.position = position
        self.orientation = orientation
        return update

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_state(self) -> dict:
        """Returns the current state of the flight as a dictionary"""
        try:
            geo = cartesian_to_geo(self.position)
            lat_lon = (geo.lat, geo.lon)
        except DegenerateCoordinateError:
            lat_lon = None
        leg = self.sequencer.current_leg()
        return {
            'id': self.id_tag,
            'mode': self.flight_mode.value,
            'position': self.position.to_tuple(),
            'lat_lon': lat_lon,
            'orientation': tuple(self.orientation.as_quat()),
            'progress': self.clock.progress,
            'cursor': self.sequencer.cursor,
            'departure': leg[0].name if leg else None,
            'destination': leg[1].name if leg else None,
            'remaining_legs': self.sequencer.remaining_legs(),
            'trail_length': len(self.trail),
        }

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from geopy.distance import great_circle

from globe_flight.exceptions import DegenerateCoordinateError, InvalidConfigError
from globe_flight.helpers import CartesianPoint, Waypoint, normalize
from globe_flight.transforms import WORLD_FORWARD, WORLD_UP, cartesian_to_geo

logger = logging.getLogger(__name__)

ARC_LENGTH_DIVISIONS = 200
TANGENT_DELTA = 1e-4

# ============================================================================
# FLIGHT PATH
# ============================================================================

def _segment_coefficients(x0: np.ndarray, x1: np.ndarray, x2: np.ndarray,
                          x3: np.ndarray) -> np.ndarray:
    """
    Cubic coefficients for the centripetal Catmull-Rom segment x1 -> x2.
    Returns: (4, 3) array, rows are the constant, linear, quadratic and cubic terms
    """
    dt0 = np.linalg.norm(x1 - x0) ** 0.5
    dt1 = np.linalg.norm(x2 - x1) ** 0.5
    dt2 = np.linalg.norm(x3 - x2) ** 0.5

    # Repeated control points
    if dt1 < 1e-4:
        dt1 = 1.0
    if dt0 < 1e-4:
        dt0 = dt1
    if dt2 < 1e-4:
        dt2 = dt1

    t1 = (x1 - x0) / dt0 - (x2 - x0) / (dt0 + dt1) + (x2 - x1) / dt1
    t2 = (x2 - x1) / dt1 - (x3 - x1) / (dt1 + dt2) + (x3 - x2) / dt2
    t1 = t1 * dt1
    t2 = t2 * dt1

    return np.array([
        x1,
        t1,
        -3 * x1 + 3 * x2 - 2 * t1 - t2,
        2 * x1 - 2 * x2 + t1 + t2,
    ])


class FlightPath:
    """
    Immutable centripetal Catmull-Rom curve through a list of control points.

    position_at/tangent_at take progress u in [0, 1] measured along the arc
    length, so equal steps of u cover equal distances.
    """

    def __init__(self, points: Sequence[CartesianPoint]):
        if len(points) < 2:
            raise ValueError("a flight path needs at least two control points")
        control = np.array([p.to_tuple() for p in points], dtype=float)
        control.setflags(write=False)
        self._control = control

        # Ends are extrapolated so the curve passes through the first and last point
        n = len(control)
        padded = np.vstack((2 * control[0] - control[1], control, 2 * control[-1] - control[-2]))
        self._coefficients = np.array([
            _segment_coefficients(padded[i], padded[i + 1], padded[i + 2], padded[i + 3])
            for i in range(n - 1)
        ])
        self._coefficients.setflags(write=False)

        self._divisions = np.linspace(0.0, 1.0, ARC_LENGTH_DIVISIONS + 1)
        samples = np.array([self._point(t) for t in self._divisions])
        steps = np.linalg.norm(np.diff(samples, axis=0), axis=1)
        self._arc_lengths = np.concatenate(([0.0], np.cumsum(steps)))
        self._arc_lengths.setflags(write=False)

    @property
    def control_points(self) -> np.ndarray:
        return self._control

    @property
    def length(self) -> float:
        """Approximate arc length of the whole curve"""
        return float(self._arc_lengths[-1])

    def _point(self, t: float) -> np.ndarray:
        """Point at curve parameter t (not arc length)"""
        segments = len(self._coefficients)
        p = segments * min(max(t, 0.0), 1.0)
        index = int(np.floor(p))
        weight = p - index
        if index >= segments:
            index = segments - 1
            weight = 1.0
        powers = np.array([1.0, weight, weight ** 2, weight ** 3])
        return powers @ self._coefficients[index]

    def u_to_t(self, u: float) -> float:
        """Map arc-length progress u to the curve parameter t"""
        u = min(max(u, 0.0), 1.0)
        if self.length == 0.0:
            return u
        return float(np.interp(u * self.length, self._arc_lengths, self._divisions))

    def position_at(self, u: float) -> CartesianPoint:
        return CartesianPoint.from_array(self._point(self.u_to_t(u)))

    def tangent_at(self, u: float) -> np.ndarray:
        """Unit direction of travel at arc-length progress u"""
        t = self.u_to_t(u)
        t1 = max(t - TANGENT_DELTA, 0.0)
        t2 = min(t + TANGENT_DELTA, 1.0)
        return normalize(self._point(t2) - self._point(t1))

    def sample(self, count: int = 50) -> np.ndarray:
        """Evenly spaced points along the curve as an (count, 3) array"""
        return np.array([self._point(self.u_to_t(u)) for u in np.linspace(0.0, 1.0, count)])


# ============================================================================
# PATH BUILDER
# ============================================================================

class PathBuilder:
    """Builds the arcing path flown between two waypoints"""

    def __init__(self, globe_radius: float, cruise_radius: float,
                 surface_offset: float = 1.01):
        if globe_radius <= 0.0 or cruise_radius <= 0.0:
            raise InvalidConfigError("globe and cruise radius must be positive")
        self.globe_radius = globe_radius
        self.cruise_radius = cruise_radius
        self.surface_offset = surface_offset

    @property
    def endpoint_radius(self) -> float:
        """Radius at which legs start and end, just clear of the surface"""
        return self.globe_radius * self.surface_offset

    def _lift(self, point: CartesianPoint) -> np.ndarray:
        direction = normalize(point.as_array())
        if not direction.any():
            raise DegenerateCoordinateError(f"waypoint at the globe centre: {point}")
        return direction * self.endpoint_radius

    def _midpoint(self, start: np.ndarray, end: np.ndarray) -> np.ndarray:
        """Cruise point above the middle of the leg, at a fixed altitude whatever the leg length"""
        average = (start + end) * 0.5
        direction = normalize(average)
        if np.linalg.norm(average) < 1e-9 * self.endpoint_radius:
            # Antipodal endpoints; pass over whichever side is closest to world up
            axis = normalize(start)
            for reference in (WORLD_UP, WORLD_FORWARD):
                direction = normalize(reference - np.dot(reference, axis) * axis)
                if direction.any():
                    break
        return direction * self.cruise_radius

    def build_path(self, departure: CartesianPoint, destination: CartesianPoint) -> FlightPath:
        start = self._lift(departure)
        end = self._lift(destination)
        mid = self._midpoint(start, end)
        return FlightPath([CartesianPoint.from_array(p) for p in (start, mid, end)])

    def build_leg(self, departure: Waypoint, destination: Waypoint) -> 'FlightLeg':
        path = self.build_path(departure.position, destination.position)
        leg = FlightLeg(departure, destination, path)
        logger.debug("Built path %r -> %r, arc length %.3f", departure, destination, path.length)
        return leg


@dataclass(frozen=True)
class FlightLeg:
    """One traversal between consecutive waypoints, with the path it owns"""
    departure: Waypoint
    destination: Waypoint
    path: FlightPath

    def surface_distance(self, globe_radius: float) -> float:
        """Great-circle distance between the endpoints on the globe surface"""
        a = cartesian_to_geo(self.departure.position)
        b = cartesian_to_geo(self.destination.position)
        return great_circle((a.lat, a.lon), (b.lat, b.lon), radius=globe_radius).km

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from globe_flight.exceptions import InvalidCoordinateError

# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def wrap_longitude(lon: float) -> float:
    """Wrap longitude in degrees to (-180, 180]"""
    wrapped = (lon + 180.0) % 360.0 - 180.0
    if wrapped == -180.0:
        return 180.0
    return wrapped


def normalize(vec: np.ndarray) -> np.ndarray:
    """Unit vector in the direction of vec, or the zero vector if vec has no length"""
    length = np.linalg.norm(vec)
    if length == 0.0:
        return np.zeros(3)
    return vec / length


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass(frozen=True)
class GeoCoordinate:
    """Geographic position on a sphere of the given radius"""
    lat: float
    lon: float
    radius: float

    def __post_init__(self):
        if not -90.0 <= self.lat <= 90.0:
            raise InvalidCoordinateError(f"latitude {self.lat} outside [-90, 90]")
        if not -180.0 <= self.lon <= 180.0:
            raise InvalidCoordinateError(f"longitude {self.lon} outside [-180, 180]")
        if self.radius < 0.0:
            raise InvalidCoordinateError(f"radius {self.radius} is negative")

    def to_tuple(self) -> Tuple[float, float, float]:
        return (self.lat, self.lon, self.radius)


@dataclass(frozen=True)
class CartesianPoint:
    """Point in the globe's Y-up Cartesian frame"""
    x: float
    y: float
    z: float

    def to_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    def norm(self) -> float:
        return float(np.linalg.norm(self.as_array()))

    @classmethod
    def from_array(cls, vec: Union[np.ndarray, Sequence[float]]) -> 'CartesianPoint':
        x, y, z = (float(v) for v in vec)
        return cls(x, y, z)


class FlightMode(Enum):
    """Flight controller states"""
    IDLE = "IDLE"
    IN_FLIGHT = "IN_FLIGHT"
    HALTED = "HALTED"


# ============================================================================
# WAYPOINT
# ============================================================================

@dataclass(eq=False)
class Waypoint:
    """
    Named point on the globe visited in sequence.

    Two waypoints are the same stop only if they are the same object; the
    uuid is an opaque handle for display and lookups.
    """
    position: CartesianPoint
    name: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_geo(cls, coordinates: GeoCoordinate, name: Optional[str] = None) -> 'Waypoint':
        # transforms imports this module
        from globe_flight.transforms import geo_to_cartesian
        position = geo_to_cartesian(coordinates.lat, coordinates.lon, coordinates.radius)
        return cls(position=position, name=name)

    def __repr__(self) -> str:
        label = self.name if self.name else self.id[:8]
        return f"Waypoint({label} @ {self.position.to_tuple()})"

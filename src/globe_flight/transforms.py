from functools import lru_cache
from typing import Tuple

import numpy as np
from pyproj import CRS, Transformer
from scipy.spatial.transform import Rotation

from globe_flight.exceptions import DegenerateCoordinateError
from globe_flight.helpers import CartesianPoint, GeoCoordinate, normalize, wrap_longitude

WORLD_UP = np.array([0.0, 1.0, 0.0])
WORLD_FORWARD = np.array([0.0, 0.0, 1.0])

# Models face +X natively; a quarter turn about Y lines that up with the flight basis
MODEL_FORWARD = np.array([1.0, 0.0, 0.0])
MODEL_AXIS_CORRECTION = Rotation.from_euler('y', 90.0, degrees=True)

_EPS = 1e-12

# ============================================================================
# COORDINATE TRANSFORMATION
# ============================================================================

class GlobeTransformer:
    """
    Converts between geographic (lat, lon) and Cartesian (x, y, z) on the
    unit sphere. Callers scale by their own radius, so PROJ never sees
    extreme sphere sizes.

    PROJ works in an Earth-centred frame with Z through the north pole and X
    through lon=0. The globe frame is Y-up: latitude rises along Y and lon=0
    faces +Z, so x = r cos(lat) sin(lon), y = r sin(lat), z = r cos(lat) cos(lon).
    """

    def __init__(self):
        self._setup_transformers()

    def _setup_transformers(self):
        """Setup transformers between geographic and geocentric coordinates on the sphere"""
        sphere = "+a=1 +b=1 +no_defs +type=crs"
        proj_geo = CRS.from_proj4(f"+proj=longlat {sphere}")
        proj_xyz = CRS.from_proj4(f"+proj=geocent {sphere} +units=m")
        self.to_xyz = Transformer.from_crs(proj_geo, proj_xyz, always_xy=True)
        self.to_ll = Transformer.from_crs(proj_xyz, proj_geo, always_xy=True)

    def geo_to_cartesian(self, lat: float, lon: float) -> CartesianPoint:
        """Convert (lat, lon) in degrees to a point on the unit sphere"""
        ex, ey, ez = self.to_xyz.transform(lon, lat, 0.0)
        return CartesianPoint(float(ey), float(ez), float(ex))

    def cartesian_to_geo(self, point: CartesianPoint) -> Tuple[float, float]:
        """Convert a point to (lat, lon) in degrees; the point's own length is ignored"""
        lon, lat, _ = self.to_ll.transform(point.z, point.x, point.y)
        return float(lat), wrap_longitude(float(lon))


@lru_cache(maxsize=None)
def get_transformer() -> GlobeTransformer:
    """Shared unit-sphere transformer; building PROJ pipelines is slow"""
    return GlobeTransformer()


def geo_to_cartesian(lat: float, lon: float, radius: float) -> CartesianPoint:
    """Convert geographic coordinates (lat, lon, radius) to Cartesian (x, y, z)"""
    if radius == 0.0:
        return CartesianPoint(0.0, 0.0, 0.0)
    coordinates = GeoCoordinate(lat, lon, radius)
    unit = get_transformer().geo_to_cartesian(coordinates.lat, coordinates.lon)
    return CartesianPoint.from_array(unit.as_array() * coordinates.radius)


def cartesian_to_geo(point: CartesianPoint) -> GeoCoordinate:
    """Convert Cartesian (x, y, z) to geographic coordinates (lat, lon, radius)"""
    radius = point.norm()
    if radius == 0.0:
        raise DegenerateCoordinateError("cannot convert the origin to geographic coordinates")
    unit = CartesianPoint.from_array(point.as_array() / radius)
    lat, lon = get_transformer().cartesian_to_geo(unit)
    return GeoCoordinate(float(np.clip(lat, -90.0, 90.0)), lon, radius)


# ============================================================================
# ORIENTATION
# ============================================================================

def shortest_arc(v_from: np.ndarray, v_to: np.ndarray) -> Rotation:
    """
    Minimal rotation taking unit vector v_from onto unit vector v_to.

    Built directly as a quaternion so nearby inputs give nearby rotations.
    Exactly opposite vectors have no unique answer; a half turn about an axis
    perpendicular to v_from is used.
    """
    r = float(np.dot(v_from, v_to)) + 1.0
    if r < 1e-9:
        if abs(v_from[0]) > abs(v_from[2]):
            quat = np.array([-v_from[1], v_from[0], 0.0, 0.0])
        else:
            quat = np.array([0.0, -v_from[2], v_from[1], 0.0])
        if np.linalg.norm(quat) < _EPS:
            quat = np.array([1.0, 0.0, 0.0, 0.0])
    else:
        axis = np.cross(v_from, v_to)
        quat = np.array([axis[0], axis[1], axis[2], r])
    return Rotation.from_quat(quat / np.linalg.norm(quat))


def orientation_from_up_vector(point: CartesianPoint) -> Rotation:
    """Rotation that stands an object upright at point, its local up along the surface normal"""
    normal = normalize(point.as_array())
    if not normal.any():
        raise DegenerateCoordinateError("surface normal is undefined at the origin")
    return shortest_arc(WORLD_UP, normal)


def orientation_from_tangent(tangent: np.ndarray) -> Rotation:
    """
    Orientation for an object moving along tangent.

    Builds a right/up/forward basis against world up, then applies the
    model's fixed axis correction.
    """
    forward = normalize(np.asarray(tangent, dtype=float))
    if not forward.any():
        raise DegenerateCoordinateError("tangent has zero length")

    reference = WORLD_UP
    right = np.cross(forward, reference)
    if np.linalg.norm(right) < 1e-9:
        # Moving straight up or down
        reference = WORLD_FORWARD
        right = np.cross(forward, reference)
    right = normalize(right)
    up = normalize(np.cross(right, forward))

    basis = np.column_stack((right, up, -forward))
    return Rotation.from_matrix(basis) * MODEL_AXIS_CORRECTION

import numpy as np
import pytest

from globe_flight.exceptions import DegenerateCoordinateError, InvalidCoordinateError
from globe_flight.helpers import CartesianPoint
from globe_flight.transforms import (
    MODEL_FORWARD,
    cartesian_to_geo,
    geo_to_cartesian,
    orientation_from_tangent,
    orientation_from_up_vector,
)


def test_geo_to_cartesian_latitude_on_y_axis():
    p = geo_to_cartesian(33.0, 33.0, 5.0)
    lat, lon = np.radians(33.0), np.radians(33.0)
    expected = 5.0 * np.array([np.cos(lat) * np.sin(lon), np.sin(lat), np.cos(lat) * np.cos(lon)])
    np.testing.assert_allclose(p.as_array(), expected, atol=1e-9)

    np.testing.assert_allclose(geo_to_cartesian(90.0, 0.0, 2.0).as_array(), [0.0, 2.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(geo_to_cartesian(0.0, 0.0, 2.0).as_array(), [0.0, 0.0, 2.0], atol=1e-12)
    np.testing.assert_allclose(geo_to_cartesian(0.0, 90.0, 2.0).as_array(), [2.0, 0.0, 0.0], atol=1e-12)


@pytest.mark.parametrize("radius", [0.5, 5.0, 6371.0])
def test_round_trip(radius):
    for lat in (-89.9, -45.5, 0.0, 12.25, 33.0, 80.0, 89.9):
        for lon in (-179.9, -90.0, -0.5, 0.0, 33.0, 80.0, 179.999, 180.0):
            geo = cartesian_to_geo(geo_to_cartesian(lat, lon, radius))
            np.testing.assert_allclose(geo.lat, lat, rtol=1e-9, atol=1e-9)
            np.testing.assert_allclose(geo.lon, lon, rtol=1e-9, atol=1e-9)
            np.testing.assert_allclose(geo.radius, radius, rtol=1e-9)


@pytest.mark.parametrize("radius", [1e-20, 1e-12, 1e-10, 1e12, 1e15])
def test_round_trip_at_extreme_radii(radius):
    for lat, lon in ((-45.5, -179.9), (0.0, 0.0), (33.0, 33.0), (80.0, 180.0)):
        point = geo_to_cartesian(lat, lon, radius)
        np.testing.assert_allclose(point.norm(), radius, rtol=1e-9)
        np.testing.assert_allclose(point.as_array() / radius,
                                   geo_to_cartesian(lat, lon, 1.0).as_array(), atol=1e-12)
        geo = cartesian_to_geo(point)
        np.testing.assert_allclose(geo.lat, lat, rtol=1e-9, atol=1e-9)
        np.testing.assert_allclose(geo.lon, lon, rtol=1e-9, atol=1e-9)
        np.testing.assert_allclose(geo.radius, radius, rtol=1e-9)


def test_round_trip_at_poles_keeps_latitude():
    for lat in (-90.0, 90.0):
        geo = cartesian_to_geo(geo_to_cartesian(lat, 45.0, 5.0))
        np.testing.assert_allclose(geo.lat, lat, rtol=1e-9)


def test_continuous_across_date_line():
    east = geo_to_cartesian(10.0, 179.9999, 5.0).as_array()
    west = geo_to_cartesian(10.0, -179.9999, 5.0).as_array()
    assert np.linalg.norm(east - west) < 1e-4


def test_zero_radius():
    assert geo_to_cartesian(10.0, 20.0, 0.0) == CartesianPoint(0.0, 0.0, 0.0)
    with pytest.raises(DegenerateCoordinateError):
        cartesian_to_geo(CartesianPoint(0.0, 0.0, 0.0))


def test_out_of_range_latitude_rejected():
    with pytest.raises(InvalidCoordinateError):
        geo_to_cartesian(91.0, 0.0, 5.0)


def test_up_vector_maps_onto_surface_normal():
    point = geo_to_cartesian(33.0, 33.0, 5.0)
    r = orientation_from_up_vector(point)
    np.testing.assert_allclose(r.apply([0.0, 1.0, 0.0]), point.as_array() / 5.0, atol=1e-9)


def test_up_vector_rotation_is_stable_near_up():
    r1 = orientation_from_up_vector(CartesianPoint(0.0, 1.0, 0.0001))
    r2 = orientation_from_up_vector(CartesianPoint(0.0, 1.0, -0.0001))
    assert (r1.inv() * r2).magnitude() < 1e-3


def test_up_vector_rotation_is_stable_near_down():
    r1 = orientation_from_up_vector(CartesianPoint(0.0, -1.0, 0.0001))
    r2 = orientation_from_up_vector(CartesianPoint(0.0, -1.0, -0.0001))
    assert (r1.inv() * r2).magnitude() < 1e-3

    flipped = orientation_from_up_vector(CartesianPoint(0.0, -3.0, 0.0))
    np.testing.assert_allclose(flipped.apply([0.0, 1.0, 0.0]), [0.0, -1.0, 0.0], atol=1e-9)


def test_up_vector_of_origin_is_degenerate():
    with pytest.raises(DegenerateCoordinateError):
        orientation_from_up_vector(CartesianPoint(0.0, 0.0, 0.0))


def test_tangent_orientation_points_model_forward_along_tangent():
    r = orientation_from_tangent(np.array([1.0, 0.0, 0.0]))
    np.testing.assert_allclose(r.apply(MODEL_FORWARD), [1.0, 0.0, 0.0], atol=1e-9)
    np.testing.assert_allclose(r.apply([0.0, 1.0, 0.0]), [0.0, 1.0, 0.0], atol=1e-9)

    tangent = np.array([0.3, -0.2, 0.9])
    tangent /= np.linalg.norm(tangent)
    r = orientation_from_tangent(tangent)
    np.testing.assert_allclose(r.apply(MODEL_FORWARD), tangent, atol=1e-9)
    up = r.apply([0.0, 1.0, 0.0])
    assert abs(np.dot(up, tangent)) < 1e-9
    assert up[1] > 0.0


def test_vertical_tangent_still_gives_orientation():
    r = orientation_from_tangent(np.array([0.0, 1.0, 0.0]))
    np.testing.assert_allclose(r.apply(MODEL_FORWARD), [0.0, 1.0, 0.0], atol=1e-9)
    assert np.isfinite(r.as_quat()).all()

import math

import numpy as np
import pytest

from rgeo.geometry.sphere import (
    Cap,
    ChordAngle,
    angle_between,
    coord_from_point,
    distance_to_edges,
    distances_to_edge,
    point_from_coord,
    points_from_coords,
)


@pytest.mark.parametrize(
    "lon, lat, expected",
    [
        (0.0, 0.0, (1.0, 0.0, 0.0)),
        (90.0, 0.0, (0.0, 1.0, 0.0)),
        (0.0, 90.0, (0.0, 0.0, 1.0)),
        (180.0, 0.0, (-1.0, 0.0, 0.0)),
    ],
)
def test_point_from_coord(lon: float, lat: float, expected) -> None:
    assert point_from_coord(lon, lat).tolist() == pytest.approx(list(expected), abs=1e-12)


def test_points_from_coords_matches_scalar_version() -> None:
    coords = [[2.35, 48.85], [-74.0, 40.71, 10.0], [151.2, -33.86]]
    points = points_from_coords(coords)
    assert points.shape == (3, 3)
    for row, coord in zip(points, coords):
        assert row == pytest.approx(point_from_coord(coord[0], coord[1]))


def test_coord_from_point_inverts_point_from_coord() -> None:
    lon, lat = coord_from_point(point_from_coord(-122.42, 37.77))
    assert lon == pytest.approx(-122.42)
    assert lat == pytest.approx(37.77)


def test_angle_between_small_angles() -> None:
    a = point_from_coord(0.0, 0.0)
    b = point_from_coord(1e-7, 0.0)
    assert math.degrees(angle_between(a, b)) == pytest.approx(1e-7, rel=1e-6)


def test_chord_angle_conversions() -> None:
    assert ChordAngle.from_degrees(90).length2 == pytest.approx(2.0)
    assert ChordAngle.from_degrees(180).length2 == 4.0
    assert ChordAngle.from_angle(-1.0).length2 == 0.0
    assert math.degrees(ChordAngle.from_degrees(37.5).angle()) == pytest.approx(37.5)


def test_chord_angle_successor() -> None:
    angle = ChordAngle.from_degrees(1.0)
    assert angle.successor() > angle
    assert ChordAngle(0.0).successor() > ChordAngle(0.0)
    assert ChordAngle(4.0).successor() == ChordAngle(4.0)


def test_distance_to_edges_interior_and_endpoints() -> None:
    a = points_from_coords([[0.0, 0.0], [0.0, 0.0]])
    b = points_from_coords([[10.0, 0.0], [10.0, 0.0]])

    above = np.degrees(distance_to_edges(point_from_coord(5.0, 1.0), a, b))
    assert above[0] == pytest.approx(1.0)

    beyond = np.degrees(distance_to_edges(point_from_coord(-1.0, 0.0), a, b))
    assert beyond[0] == pytest.approx(1.0)

    on_edge = distance_to_edges(point_from_coord(5.0, 0.0), a, b)
    assert on_edge[0] == pytest.approx(0.0, abs=1e-15)


def test_distances_to_edge_agrees_with_distance_to_edges() -> None:
    a, b = point_from_coord(0.0, 0.0), point_from_coord(10.0, 0.0)
    points = points_from_coords([[5.0, 1.0], [-1.0, 0.0], [5.0, 0.0], [12.0, -2.0]])

    many = distances_to_edge(points, a, b)
    one_by_one = [distance_to_edges(p, a[None, :], b[None, :])[0] for p in points]
    assert many.tolist() == pytest.approx(one_by_one, abs=1e-12)

    # A zero-length arc is its endpoint.
    assert distances_to_edge(points[:1], a, a)[0] == pytest.approx(math.radians(math.hypot(5.0, 1.0)), rel=1e-3)


def test_cap_from_points() -> None:
    points = points_from_coords([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]])
    cap = Cap.from_points(points)
    assert cap.radius_degrees < 10.0
    assert cap.contains(point_from_coord(5.0, 5.0))
    assert not cap.contains(point_from_coord(30.0, 5.0))


def test_cap_from_spread_points_is_full() -> None:
    points = points_from_coords([[0.0, 0.0], [120.0, 0.0], [-120.0, 0.0]])
    assert Cap.from_points(points).radius == math.pi

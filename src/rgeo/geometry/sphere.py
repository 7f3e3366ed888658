"""Unit-sphere primitives: points, caps, chord angles and edge distances.

Every coordinate is converted to a 3D unit vector before any geometry is
done with it. Arrays of points are ``(n, 3)`` float64 numpy arrays.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

# Angular slack (radians) used when a point should count as lying on an edge
# or as touching a cap. About 6 micrometres on Earth.
BOUNDARY_EPS = 1e-12

# Largest squared chord length: two antipodal points.
MAX_LENGTH2 = 4.0


def point_from_coord(lon: float, lat: float) -> np.ndarray:
    """Convert a (longitude, latitude) pair in degrees to a unit vector."""
    phi = math.radians(lat)
    theta = math.radians(lon)
    cos_phi = math.cos(phi)
    return np.array([cos_phi * math.cos(theta), cos_phi * math.sin(theta), math.sin(phi)])


def points_from_coords(coords: Sequence[Sequence[float]]) -> np.ndarray:
    """Vectorised :func:`point_from_coord` for ``[[lon, lat], ...]`` input."""
    arr = np.asarray([(c[0], c[1]) for c in coords], dtype=np.float64).reshape(-1, 2)
    theta = np.radians(arr[:, 0])
    phi = np.radians(arr[:, 1])
    cos_phi = np.cos(phi)
    return np.column_stack((cos_phi * np.cos(theta), cos_phi * np.sin(theta), np.sin(phi)))


def coord_from_point(point: np.ndarray) -> Tuple[float, float]:
    x, y, z = (float(v) for v in point)
    lon = math.degrees(math.atan2(y, x))
    lat = math.degrees(math.atan2(z, math.hypot(x, y)))
    return lon, lat


def normalize(vector: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(vector)
    if norm == 0.0:
        raise ValueError("cannot normalise a zero vector")
    return vector / norm


def angle_between(a: np.ndarray, b: np.ndarray) -> float:
    """Angle in radians between two unit vectors, stable for tiny angles."""
    return float(math.atan2(np.linalg.norm(np.cross(a, b)), float(np.dot(a, b))))


def angles_to(point: np.ndarray, others: np.ndarray) -> np.ndarray:
    """Angles in radians from ``point`` to every row of ``others``."""
    cross = np.cross(others, point)
    return np.arctan2(np.linalg.norm(cross, axis=-1), others @ point)


@dataclass(frozen=True, eq=False)
class Cap:
    """A spherical cap: every point within ``radius`` radians of ``center``."""

    center: np.ndarray
    radius: float

    @classmethod
    def full(cls) -> "Cap":
        return cls(np.array([0.0, 0.0, 1.0]), math.pi)

    @classmethod
    def from_points(cls, points: np.ndarray) -> "Cap":
        """Cap around the normalised centroid of ``points``.

        Arcs between the points are covered only while the cap is smaller
        than a hemisphere, so larger caps are widened to the full sphere.
        """
        total = points.sum(axis=0)
        norm = np.linalg.norm(total)
        if norm < 1e-12:
            return cls.full()
        center = total / norm
        radius = float(angles_to(center, points).max()) + BOUNDARY_EPS
        if radius >= math.pi / 2:
            return cls(center, math.pi)
        return cls(center, radius)

    @property
    def radius_degrees(self) -> float:
        return math.degrees(self.radius)

    def contains(self, point: np.ndarray) -> bool:
        return angle_between(self.center, point) <= self.radius


@dataclass(frozen=True, order=True)
class ChordAngle:
    """Squared chord length between two points on the unit sphere.

    Monotonic in the angle it stands for, so proximity comparisons can be done
    without trigonometry.
    """

    length2: float

    @classmethod
    def from_angle(cls, radians: float) -> "ChordAngle":
        if radians <= 0:
            return cls(0.0)
        if radians >= math.pi:
            return cls(MAX_LENGTH2)
        length = 2.0 * math.sin(0.5 * radians)
        return cls(min(MAX_LENGTH2, length * length))

    @classmethod
    def from_degrees(cls, degrees: float) -> "ChordAngle":
        return cls.from_angle(math.radians(degrees))

    def angle(self) -> float:
        """The angle in radians this chord spans."""
        return 2.0 * math.asin(min(1.0, 0.5 * math.sqrt(self.length2)))

    def successor(self) -> "ChordAngle":
        """The next larger representable chord angle."""
        if self.length2 >= MAX_LENGTH2:
            return self
        return ChordAngle(math.nextafter(self.length2, MAX_LENGTH2))


def distance_to_edges(point: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Minimum angular distance from ``point`` to each great-circle arc ``a[i] -> b[i]``.

    When the foot of the perpendicular falls inside the arc the distance is
    the distance to the great circle, otherwise the nearer endpoint counts.
    """
    normals = np.cross(a, b)
    norms = np.linalg.norm(normals, axis=-1)
    valid = norms > 0.0
    safe = np.where(valid, norms, 1.0)
    unit_normals = normals / safe[:, None]

    # Both tests are signs of triple products, so they hold for the projected
    # point as well as for the point itself.
    after_a = np.einsum("ij,ij->i", np.cross(a, point), normals) > 0.0
    before_b = np.einsum("ij,ij->i", np.cross(point, b), normals) > 0.0

    sin_dist = np.abs(unit_normals @ point)
    to_circle = np.arcsin(np.clip(sin_dist, 0.0, 1.0))
    to_endpoints = np.minimum(angles_to(point, a), angles_to(point, b))
    return np.where(valid & after_a & before_b, to_circle, to_endpoints)


def distances_to_edge(points: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Angular distance from every row of ``points`` to the single arc ``a -> b``."""
    normal = np.cross(a, b)
    to_endpoints = np.minimum(angles_to(a, points), angles_to(b, points))
    norm = np.linalg.norm(normal)
    if norm == 0.0:
        return to_endpoints
    after_a = np.cross(a, points) @ normal > 0.0
    before_b = np.cross(points, b) @ normal > 0.0
    to_circle = np.arcsin(np.clip(np.abs(points @ (normal / norm)), 0.0, 1.0))
    return np.where(after_a & before_b, to_circle, to_endpoints)


__all__ = [
    "BOUNDARY_EPS",
    "Cap",
    "ChordAngle",
    "angle_between",
    "angles_to",
    "coord_from_point",
    "distance_to_edges",
    "distances_to_edge",
    "normalize",
    "point_from_coord",
    "points_from_coords",
]

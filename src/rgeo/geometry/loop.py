"""Spherical loops and polygons.

A loop's interior is the region to the left of its edges when the sphere is
seen from outside. Containment is tested in the gnomonic projection centred on
the loop's centre: that projection maps great-circle edges to straight
lines, so a planar even-odd test is exact for any loop whose vertices fit in
the open hemisphere around that centre.

Edges are grouped into chunks of consecutive edges, each with a bounding cap.
Large loops keep a cap tree over their chunks so that the boundary test and
the crossing count only touch the chunks near the query point and its ray.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional, Tuple

import numpy as np

from rgeo.errors import InvalidGeometry
from rgeo.geometry.sphere import BOUNDARY_EPS, Cap, angles_to, distance_to_edges
from rgeo.index.cap_tree import CapTree

OUTSIDE = 0
INSIDE = 1
BOUNDARY = 2

# Consecutive edges grouped under one cap.
EDGE_CHUNK = 16
# Loops with more chunks than this get a chunk tree.
TREE_MIN_CHUNKS = 4


class Loop:
    """A closed ring of at least three unit-sphere vertices."""

    def __init__(self, points: np.ndarray) -> None:
        vertices = np.ascontiguousarray(points, dtype=np.float64).reshape(-1, 3)
        if len(vertices) < 3:
            raise InvalidGeometry(f"loop needs at least 3 vertices, got {len(vertices)}")

        self._center = _hemisphere_center(vertices)
        if self._center is None:
            raise InvalidGeometry("loop vertices do not fit in a hemisphere")

        # Orthonormal frame with e1 x e2 == center, so positive planar area
        # in (e1, e2) means counter-clockwise seen from outside the sphere.
        axis = np.zeros(3)
        axis[int(np.argmin(np.abs(self._center)))] = 1.0
        e1 = np.cross(self._center, axis)
        e1 /= np.linalg.norm(e1)
        self._frame = np.vstack((e1, np.cross(self._center, e1)))
        self._set_vertices(vertices)

    def _set_vertices(self, vertices: np.ndarray) -> None:
        self._vertices = vertices
        self._projected = (vertices @ self._frame.T) / (vertices @ self._center)[:, None]
        x, y = self._projected[:, 0], self._projected[:, 1]
        self._ccw = float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y)) > 0.0
        # Every point of the region enclosed in the projection lies no farther
        # from the centre than the farthest vertex.
        self._inner_radius = float(angles_to(self._center, vertices).max()) + BOUNDARY_EPS

        self._chunk_centers, self._chunk_radii = _chunk_caps(vertices)
        self._chunk_tree: Optional[CapTree] = None
        if len(self._chunk_radii) > TREE_MIN_CHUNKS:
            self._chunk_tree = CapTree(self._chunk_centers, self._chunk_radii)

    @property
    def vertices(self) -> np.ndarray:
        return self._vertices

    @property
    def num_vertices(self) -> int:
        return len(self._vertices)

    @property
    def num_chunks(self) -> int:
        return len(self._chunk_radii)

    @property
    def is_ccw(self) -> bool:
        """True when the interior is the side holding the loop's centre."""
        return self._ccw

    def edges(self) -> Tuple[np.ndarray, np.ndarray]:
        """Start and end points of every edge, closing edge included."""
        return self._vertices, np.roll(self._vertices, -1, axis=0)

    def chunk_caps(self) -> Tuple[np.ndarray, np.ndarray]:
        """Centres and radii of the caps bounding each chunk of edges."""
        return self._chunk_centers, self._chunk_radii

    def chunk_edges(self, chunk: int) -> Tuple[np.ndarray, np.ndarray]:
        """Start and end points of the edges in one chunk."""
        first = chunk * EDGE_CHUNK
        indices = np.arange(first, min(first + EDGE_CHUNK, self.num_vertices))
        return self._vertices[indices], self._vertices[(indices + 1) % self.num_vertices]

    def invert(self) -> None:
        """Turn the loop into its complement by reversing the vertex order."""
        self._set_vertices(np.ascontiguousarray(self._vertices[::-1]))

    def cap_bound(self) -> Cap:
        """Smallest cap (around the centre or its antipode) holding the interior."""
        if self._ccw:
            return Cap(self._center, self._inner_radius)
        if self._enclosed(self._center):
            return Cap.full()
        a, b = self.edges()
        nearest = float(distance_to_edges(self._center, a, b).min())
        return Cap(-self._center, min(math.pi, math.pi - nearest + BOUNDARY_EPS))

    def on_boundary(self, point: np.ndarray) -> bool:
        """True when ``point`` lies within BOUNDARY_EPS of an edge or vertex."""
        if self._chunk_tree is None:
            a, b = self.edges()
            return bool(distance_to_edges(point, a, b).min() <= BOUNDARY_EPS)
        for chunk in self._chunk_tree.containing(point, slack=BOUNDARY_EPS):
            a, b = self.chunk_edges(chunk)
            if distance_to_edges(point, a, b).min() <= BOUNDARY_EPS:
                return True
        return False

    def locate(self, point: np.ndarray) -> int:
        """Classify ``point`` as INSIDE, OUTSIDE or on the BOUNDARY."""
        near = float(np.dot(point, self._center)) > 0.0 and (
            angles_to(point, self._center[None, :])[0] <= self._inner_radius + BOUNDARY_EPS
        )
        if not near:
            return OUTSIDE if self._ccw else INSIDE
        if self.on_boundary(point):
            return BOUNDARY
        enclosed = self._enclosed(point)
        return INSIDE if enclosed == self._ccw else OUTSIDE

    def contains_point(self, point: np.ndarray) -> bool:
        """Open containment: points on an edge or vertex are not contained."""
        return self.locate(point) == INSIDE

    def _enclosed(self, point: np.ndarray) -> bool:
        depth = float(np.dot(point, self._center))
        if depth <= 0.0:
            return False
        px, py = (self._frame @ point) / depth

        n = self.num_vertices
        if self._chunk_tree is None:
            starts = np.arange(n)
        else:
            # The ray towards +x in the projection is the arc from the point
            # to e1 on the sphere; only chunks meeting that arc can cross it.
            chunks = sorted(self._chunk_tree.near_arc(point, self._frame[0], slack=BOUNDARY_EPS))
            if not chunks:
                return False
            starts = np.concatenate(
                [np.arange(c * EDGE_CHUNK, min((c + 1) * EDGE_CHUNK, n)) for c in chunks]
            )

        x1, y1 = self._projected[starts, 0], self._projected[starts, 1]
        ends = (starts + 1) % n
        x2, y2 = self._projected[ends, 0], self._projected[ends, 1]
        straddles = (y1 > py) != (y2 > py)
        dy = np.where(straddles, y2 - y1, 1.0)
        x_cross = x1 + (py - y1) * (x2 - x1) / dy
        return bool(np.count_nonzero(straddles & (px < x_cross)) % 2)

    def __repr__(self) -> str:
        return f"Loop(num_vertices={self.num_vertices}, ccw={self._ccw})"


def _hemisphere_center(vertices: np.ndarray) -> Optional[np.ndarray]:
    """Centre whose open hemisphere holds every vertex, or None.

    The edge-length weighted centroid does not drift towards densely sampled
    stretches of the boundary; the plain vertex mean is the fallback.
    """
    following = np.roll(vertices, -1, axis=0)
    midpoints = vertices + following
    norms = np.linalg.norm(midpoints, axis=-1)
    lengths = np.arctan2(np.linalg.norm(np.cross(vertices, following), axis=-1), np.einsum("ij,ij->i", vertices, following))
    weights = np.where(norms > 0.0, lengths / np.where(norms > 0.0, norms, 1.0), 0.0)

    for total in ((midpoints * weights[:, None]).sum(axis=0), vertices.sum(axis=0)):
        norm = np.linalg.norm(total)
        if norm < 1e-12:
            continue
        center = total / norm
        if np.all(vertices @ center > 0.0):
            return center
    return None


def _chunk_caps(vertices: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Bounding caps for every EDGE_CHUNK consecutive edges, computed together."""
    n = len(vertices)
    firsts = np.arange(0, n, EDGE_CHUNK)
    lasts = np.minimum(firsts + EDGE_CHUNK, n)
    # Each chunk holds its edges' start points plus the end of its last edge.
    offsets = np.minimum(firsts[:, None] + np.arange(EDGE_CHUNK + 1)[None, :], lasts[:, None])
    points = vertices[offsets % n]

    totals = points.sum(axis=1)
    norms = np.linalg.norm(totals, axis=-1)
    degenerate = norms < 1e-12
    centers = np.where(degenerate[:, None], np.array([0.0, 0.0, 1.0]), totals / np.where(degenerate, 1.0, norms)[:, None])

    cross = np.cross(points, centers[:, None, :])
    dots = np.einsum("ijk,ik->ij", points, centers)
    radii = np.arctan2(np.linalg.norm(cross, axis=-1), dots).max(axis=1) + BOUNDARY_EPS
    # Arcs stay inside a cap only while it is smaller than a hemisphere.
    radii = np.where(degenerate | (radii >= math.pi / 2), math.pi, radii)
    return centers, radii


class Polygon:
    """Outer boundaries and holes as one flat list of loops.

    A point is inside when it lies strictly inside an odd number of loops and
    on none of their boundaries.
    """

    def __init__(self, loops: Iterable[Loop]) -> None:
        self._loops: List[Loop] = list(loops)

    @property
    def loops(self) -> List[Loop]:
        return self._loops

    @property
    def num_loops(self) -> int:
        return len(self._loops)

    @property
    def num_vertices(self) -> int:
        return sum(loop.num_vertices for loop in self._loops)

    def locate(self, point: np.ndarray) -> int:
        return locate_in_loops(self._loops, point)

    def contains_point(self, point: np.ndarray) -> bool:
        return self.locate(point) == INSIDE

    def __repr__(self) -> str:
        return f"Polygon(num_loops={self.num_loops}, num_vertices={self.num_vertices})"


def locate_in_loops(loops: Iterable[Loop], point: np.ndarray) -> int:
    inside = False
    for loop in loops:
        where = loop.locate(point)
        if where == BOUNDARY:
            return BOUNDARY
        if where == INSIDE:
            inside = not inside
    return INSIDE if inside else OUTSIDE


__all__ = ["BOUNDARY", "INSIDE", "OUTSIDE", "Loop", "Polygon", "locate_in_loops"]

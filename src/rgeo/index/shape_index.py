"""Spatial index over (polygon, location) shapes.

Shapes are collected by a :class:`ShapeIndexBuilder`; ``build()`` turns them
into an immutable :class:`ShapeIndex` that only answers queries. Once built,
the index can be shared between threads.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from rgeo.errors import IndexFrozenError
from rgeo.geometry.loop import INSIDE, Loop, Polygon, locate_in_loops
from rgeo.geometry.sphere import BOUNDARY_EPS, ChordAngle, distance_to_edges
from rgeo.index.cap_tree import CapTree
from rgeo.location import Location

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Shape:
    polygon: Polygon
    location: Location


class ShapeIndexBuilder:
    """Insert-only collection of shapes."""

    def __init__(self) -> None:
        self._shapes: List[Shape] = []
        self._index: Optional[ShapeIndex] = None

    def __len__(self) -> int:
        return len(self._shapes)

    @property
    def is_built(self) -> bool:
        return self._index is not None

    def add(self, polygon: Polygon, location: Location) -> int:
        """Add a shape and return its id. Overlapping shapes are all kept."""
        if self._index is not None:
            raise IndexFrozenError("cannot add shapes after the index has been built")
        self._shapes.append(Shape(polygon, location))
        return len(self._shapes) - 1

    def build(self) -> "ShapeIndex":
        """Finalise the shapes into a query-only index. Repeated calls return the same index."""
        if self._index is None:
            self._index = ShapeIndex(self._shapes)
        return self._index


class ShapeIndex:
    """Read-only index answering containment and nearest-edge queries."""

    def __init__(self, shapes: Sequence[Shape]) -> None:
        started = time.perf_counter()
        self._shapes: Tuple[Shape, ...] = tuple(shapes)

        self._loops: List[Tuple[int, Loop]] = []
        loop_centers, loop_radii = [], []
        # (shape id, loop, chunk number) for every chunk of edges
        self._chunks: List[Tuple[int, Loop, int]] = []
        chunk_centers, chunk_radii = [], []

        for shape_id, shape in enumerate(self._shapes):
            for loop in shape.polygon.loops:
                cap = loop.cap_bound()
                self._loops.append((shape_id, loop))
                loop_centers.append(cap.center)
                loop_radii.append(cap.radius)

                centers, radii = loop.chunk_caps()
                self._chunks.extend((shape_id, loop, chunk) for chunk in range(loop.num_chunks))
                chunk_centers.append(centers)
                chunk_radii.append(radii)

        self._loop_tree = CapTree(np.array(loop_centers).reshape(-1, 3), np.array(loop_radii))
        self._edge_tree = CapTree(
            np.concatenate(chunk_centers) if chunk_centers else np.empty((0, 3)),
            np.concatenate(chunk_radii) if chunk_radii else np.empty(0),
        )
        self._num_edges = sum(loop.num_vertices for _, loop in self._loops)

        LOGGER.info(
            "Built shape index: %d shapes, %d loops, %d edges in %.2fs",
            len(self._shapes),
            len(self._loops),
            self._num_edges,
            time.perf_counter() - started,
        )

    def __len__(self) -> int:
        return len(self._shapes)

    @property
    def num_edges(self) -> int:
        return self._num_edges

    def shape(self, shape_id: int) -> Shape:
        return self._shapes[shape_id]

    def containing_shapes(self, point: np.ndarray) -> List[int]:
        """Ids, ascending, of every shape whose interior holds ``point``.

        Points on an edge or vertex of a shape are not inside it.
        """
        candidates: Dict[int, List[Loop]] = defaultdict(list)
        for item in self._loop_tree.containing(point, slack=BOUNDARY_EPS):
            shape_id, loop = self._loops[item]
            candidates[shape_id].append(loop)
        # Loops whose caps miss the point cannot contain it or touch it.
        return [
            shape_id
            for shape_id in sorted(candidates)
            if locate_in_loops(candidates[shape_id], point) == INSIDE
        ]

    def nearest_edge_within(self, point: np.ndarray, max_distance: ChordAngle) -> Optional[int]:
        """Id of the shape with the closest edge, if it is within ``max_distance``."""

        def chunk_distance(item: int) -> float:
            _, loop, chunk = self._chunks[item]
            a, b = loop.chunk_edges(chunk)
            return float(distance_to_edges(point, a, b).min())

        found = self._edge_tree.nearest(point, chunk_distance, max_distance.angle() + BOUNDARY_EPS)
        if found is None:
            return None
        item, distance = found
        if ChordAngle.from_angle(distance) > max_distance:
            return None
        return self._chunks[item][0]


__all__ = ["Shape", "ShapeIndex", "ShapeIndexBuilder"]

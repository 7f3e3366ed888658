"""Turn GeoJSON-style rings of [lon, lat] coordinates into spherical polygons."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Sequence

from rgeo.errors import InvalidGeometry, UnsupportedGeometry
from rgeo.geometry.loop import Loop, Polygon
from rgeo.geometry.sphere import points_from_coords

LOGGER = logging.getLogger(__name__)

Ring = Sequence[Sequence[float]]


def polygon_from_geometry(geometry: Mapping[str, Any]) -> Polygon:
    """Build a polygon from a GeoJSON ``Polygon`` or ``MultiPolygon`` geometry."""
    kind = geometry.get("type") if geometry else None
    if kind == "Polygon":
        return build_polygon(geometry["coordinates"])
    if kind == "MultiPolygon":
        return build_multipolygon(geometry["coordinates"])
    raise UnsupportedGeometry(f"needs Polygon or MultiPolygon, got {kind}")


def build_polygon(rings: Sequence[Ring]) -> Polygon:
    return Polygon(loops_from_rings(rings))


def build_multipolygon(polygons: Sequence[Sequence[Ring]]) -> Polygon:
    loops: List[Loop] = []
    for rings in polygons:
        loops.extend(loops_from_rings(rings))
    return Polygon(loops)


def loops_from_rings(rings: Sequence[Ring]) -> List[Loop]:
    loops = []
    for ring in rings:
        n = len(ring)
        if n < 4:
            raise InvalidGeometry(f"can't convert ring with less than 4 points (got {n})")
        if tuple(ring[0][:2]) != tuple(ring[-1][:2]):
            raise InvalidGeometry(f"last coordinate not same as first: {ring[0]} != {ring[-1]}")

        # Loops are counter-clockwise. GeoJSON sources do not agree on ring
        # orientation, so assume every ring bounds less than a hemisphere.
        loop = loop_from_ring(ring, reverse=is_clockwise(ring))

        # The planar test is wrong near the poles and across the antimeridian.
        if loop.cap_bound().radius_degrees > 90:
            LOGGER.debug("Inverting loop of %d vertices after orientation check", loop.num_vertices)
            loop.invert()
        loops.append(loop)
    return loops


def is_clockwise(ring: Ring) -> bool:
    """Planar shoelace test treating longitude and latitude as x and y."""
    area = 0.0
    n = len(ring)
    for i in range(n):
        x1, y1 = ring[i][0], ring[i][1]
        x2, y2 = ring[(i + 1) % n][0], ring[(i + 1) % n][1]
        area += (x2 - x1) * (y1 + y2)
    return area > 0


def loop_from_ring(ring: Ring, *, reverse: bool = False) -> Loop:
    # The closing coordinate repeats the first one; loops are implicitly closed.
    coords = list(reversed(ring[1:])) if reverse else list(ring[:-1])
    return Loop(points_from_coords(coords))


__all__ = [
    "build_multipolygon",
    "build_polygon",
    "is_clockwise",
    "loop_from_ring",
    "loops_from_rings",
    "polygon_from_geometry",
]

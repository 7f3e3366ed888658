"""Reverse geocoding on top of the shape index."""

from __future__ import annotations

import logging
import math
import threading
from typing import Callable, Iterable, Optional, Union

from rgeo.config import EARTH_RADIUS_KM, Settings
from rgeo.data.codec import Feature
from rgeo.errors import LocationNotFound, NoDatasetError
from rgeo.geometry.sphere import ChordAngle, point_from_coord
from rgeo.index.shape_index import ShapeIndex, ShapeIndexBuilder
from rgeo.location import Location, combine_locations

LOGGER = logging.getLogger(__name__)

DatasetSource = Union[Iterable[Feature], Callable[[], Iterable[Feature]]]


class Rgeo:
    """Answers "where is this coordinate" from bundled region polygons.

    Each dataset is either an iterable of features or a zero-argument callable
    returning one. Call :meth:`build` at startup; otherwise the first query
    builds the index and is markedly slower than the following ones.
    """

    def __init__(self, *datasets: DatasetSource, settings: Optional[Settings] = None) -> None:
        if not datasets:
            raise NoDatasetError("no datasets provided")
        settings = settings or Settings()

        self._builder = ShapeIndexBuilder()
        self._index: Optional[ShapeIndex] = None
        self._lock = threading.Lock()
        self._snap_distance = ChordAngle(0.0)

        for dataset in datasets:
            features = dataset() if callable(dataset) else dataset
            for feature in features:
                self._builder.add(feature.polygon, feature.location)
        LOGGER.debug("Collected %d shapes from %d datasets", len(self._builder), len(datasets))

        self.set_snapping_distance_custom(settings.snap_distance_km, settings.earth_radius_km)

    def __len__(self) -> int:
        return len(self._builder)

    @property
    def snap_distance(self) -> ChordAngle:
        return self._snap_distance

    @property
    def index(self) -> ShapeIndex:
        index = self._index
        if index is None:
            with self._lock:
                if self._index is None:
                    LOGGER.warning("Building shape index on first query; call build() at startup to avoid this delay")
                    self._index = self._builder.build()
                index = self._index
        return index

    def build(self) -> None:
        """Build the shape index now so that later lookups are fast."""
        with self._lock:
            self._index = self._builder.build()

    def set_snapping_distance_earth(self, distance_km: float) -> None:
        """Snap distance for :meth:`reverse_geocode_snapping`, in kilometres on Earth."""
        self.set_snapping_distance_custom(distance_km, EARTH_RADIUS_KM)

    def set_snapping_distance_custom(self, distance: float, radius: float) -> None:
        """Snap distance on a sphere of ``radius``, both in the same unit."""
        if radius <= 0:
            raise ValueError(f"sphere radius must be positive, got {radius}")
        if not 0 <= distance <= radius:
            raise ValueError(f"snapping distance must be between 0 and {radius}, got {distance}")
        angle = math.asin(distance / radius)
        self._snap_distance = ChordAngle.from_angle(angle).successor()

    def reverse_geocode(self, lon: float, lat: float) -> Location:
        """Location of the regions containing (lon, lat).

        Raises :class:`LocationNotFound` when no region contains the point.
        """
        index = self.index
        shape_ids = index.containing_shapes(point_from_coord(lon, lat))
        if not shape_ids:
            raise LocationNotFound()
        return combine_locations(index.shape(shape_id).location for shape_id in shape_ids)

    def reverse_geocode_snapping(self, lon: float, lat: float) -> Location:
        """Like :meth:`reverse_geocode`, falling back to the nearest border within the snap distance."""
        try:
            return self.reverse_geocode(lon, lat)
        except LocationNotFound:
            pass

        index = self.index
        shape_id = index.nearest_edge_within(point_from_coord(lon, lat), self._snap_distance)
        if shape_id is None:
            raise LocationNotFound()
        LOGGER.debug("Snapped (%.5f, %.5f) to shape %d", lon, lat, shape_id)
        return combine_locations([index.shape(shape_id).location])


__all__ = ["DatasetSource", "Rgeo"]

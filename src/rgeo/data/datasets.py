"""Load feature datasets from disk."""

from __future__ import annotations

import gzip
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from rgeo.data.codec import FeatureCollection, decode_feature_stream
from rgeo.data.geojson import features_from_geojson, merge_properties
from rgeo.errors import DatasetError

LOGGER = logging.getLogger(__name__)

Dataset = Callable[[], FeatureCollection]
PathLike = Union[str, Path]

GEOJSON_SUFFIXES = {".geojson", ".json"}


def _read(path: Path) -> Tuple[bytes, List[str]]:
    """File contents, gunzipped when the name ends in ``.gz``, and the remaining suffixes."""
    data = path.read_bytes()
    if not data:
        raise DatasetError(f"empty dataset: {path}")

    suffixes = [s.lower() for s in path.suffixes]
    if suffixes and suffixes[-1] == ".gz":
        data = gzip.decompress(data)
        suffixes = suffixes[:-1]
    return data, suffixes


def read_geojson(path: PathLike) -> Dict[str, Any]:
    """Parse a (possibly gzipped) GeoJSON document."""
    data, _ = _read(Path(path))
    return json.loads(data.decode("utf-8"))


def load_dataset(path: PathLike, merge: Optional[PathLike] = None) -> FeatureCollection:
    """Read a feature stream (optionally gzipped) or a GeoJSON file.

    ``merge`` names a GeoJSON file whose country properties are copied onto
    the features of a GeoJSON ``path`` (see :func:`merge_properties`).
    """
    path = Path(path)
    data, suffixes = _read(path)

    if suffixes and suffixes[-1] in GEOJSON_SUFFIXES:
        collection = json.loads(data.decode("utf-8"))
        if merge is not None:
            collection = merge_properties(collection, read_geojson(merge))
            LOGGER.info("Merged properties from %s into %s", merge, path)
        features = features_from_geojson(collection)
    elif merge is not None:
        raise DatasetError(f"cannot merge properties into feature stream {path}")
    else:
        features = decode_feature_stream(data)
    LOGGER.info("Loaded %d features from %s", len(features), path)
    return features


def dataset_from_path(path: PathLike) -> Dataset:
    """Defer loading ``path`` until the engine asks for it."""

    def load() -> FeatureCollection:
        return load_dataset(path)

    load.__name__ = f"dataset({Path(path).name})"
    return load


__all__ = ["Dataset", "dataset_from_path", "load_dataset", "read_geojson"]

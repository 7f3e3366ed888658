"""Read GeoJSON feature collections into rgeo features."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from rgeo.data.codec import Feature, FeatureCollection
from rgeo.errors import InvalidGeometry, UnsupportedGeometry
from rgeo.geometry.builder import polygon_from_geometry
from rgeo.location import Location

LOGGER = logging.getLogger(__name__)

# Natural Earth city names carry a trailing "2" artifact.
CITY_NAME_SUFFIX = "2"


def location_from_properties(properties: Mapping[str, Any]) -> Location:
    """Pick the Location fields out of Natural Earth style feature properties."""
    return Location(
        country=_property(properties, "ADMIN", "admin"),
        country_long=_property(properties, "FORMAL_EN"),
        country_code2=_property(properties, "ISO_A2_EH"),
        country_code3=_property(properties, "ISO_A3_EH"),
        continent=_property(properties, "CONTINENT"),
        region=_property(properties, "REGION_UN"),
        subregion=_property(properties, "SUBREGION"),
        province=_property(properties, "name"),
        province_code=_property(properties, "iso_3166_2"),
        city=_strip_suffix(_property(properties, "name_conve"), CITY_NAME_SUFFIX),
    )


def features_from_geojson(collection: Mapping[str, Any]) -> FeatureCollection:
    features = []
    for i, item in enumerate(collection.get("features", [])):
        try:
            polygon = polygon_from_geometry(item.get("geometry"))
        except InvalidGeometry as exc:
            raise InvalidGeometry(f"bad polygon in geometry of feature {i}: {exc}") from exc
        except UnsupportedGeometry as exc:
            raise UnsupportedGeometry(f"bad polygon in geometry of feature {i}: {exc}") from exc
        features.append(Feature(location_from_properties(item.get("properties") or {}), polygon))
    return features


def merge_properties(collection: Mapping[str, Any], extra: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy country properties from ``extra`` onto the features of ``collection``.

    Features of ``collection`` name their country under ``admin`` (the
    province layout); every feature of ``extra`` whose ``ADMIN`` is the same
    country, ignoring case and spacing, contributes its properties, which
    override the feature's own. A new collection is returned.
    """
    by_country: Dict[str, List[Mapping[str, Any]]] = {}
    for item in extra.get("features", []):
        properties = item.get("properties") or {}
        name = properties.get("ADMIN")
        if isinstance(name, str):
            by_country.setdefault(_country_key(name), []).append(properties)

    features = []
    for i, item in enumerate(collection.get("features", [])):
        properties = dict(item.get("properties") or {})
        country = properties.get("admin")
        if not isinstance(country, str):
            LOGGER.warning("Feature %d has no country name under 'admin', not merged", i)
        else:
            for match in by_country.get(_country_key(country), []):
                properties.update(match)
        features.append({**item, "properties": properties})
    return {**collection, "features": features}


def _country_key(name: str) -> str:
    return " ".join(name.split()).casefold()


def _property(properties: Mapping[str, Any], *keys: str) -> str:
    """First string value found under any of ``keys``."""
    for key in keys:
        value = properties.get(key)
        if isinstance(value, str):
            return value
    return ""


def _strip_suffix(text: str, suffix: str) -> str:
    if suffix and text.endswith(suffix):
        return text[: -len(suffix)]
    return text


__all__ = ["CITY_NAME_SUFFIX", "features_from_geojson", "location_from_properties", "merge_properties"]

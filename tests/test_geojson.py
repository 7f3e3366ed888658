import logging

import pytest

from rgeo.data.geojson import features_from_geojson, location_from_properties, merge_properties
from rgeo.errors import UnsupportedGeometry
from rgeo.geometry.sphere import point_from_coord


def square(lon0: float, lat0: float, lon1: float, lat1: float):
    return [[lon0, lat0], [lon1, lat0], [lon1, lat1], [lon0, lat1], [lon0, lat0]]


def test_location_from_country_properties() -> None:
    location = location_from_properties(
        {
            "ADMIN": "France",
            "FORMAL_EN": "French Republic",
            "ISO_A2_EH": "FR",
            "ISO_A3_EH": "FRA",
            "CONTINENT": "Europe",
            "REGION_UN": "Europe",
            "SUBREGION": "Western Europe",
            "POP_EST": 67059887,
        }
    )
    assert location.country == "France"
    assert location.country_long == "French Republic"
    assert location.country_code2 == "FR"
    assert location.country_code3 == "FRA"
    assert location.subregion == "Western Europe"
    assert location.province == ""


def test_location_from_province_and_city_properties() -> None:
    location = location_from_properties({"admin": "Spain", "name": "Madrid", "iso_3166_2": "ES-M", "name_conve": "Madrid2"})
    assert location.country == "Spain"
    assert location.province == "Madrid"
    assert location.province_code == "ES-M"
    assert location.city == "Madrid"


def test_non_string_properties_are_ignored() -> None:
    assert location_from_properties({"ADMIN": None, "admin": "Peru", "name": 3}).country == "Peru"
    assert location_from_properties({"name": 3}).province == ""


def test_features_from_geojson() -> None:
    collection = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"ADMIN": "Squareland"},
                "geometry": {"type": "Polygon", "coordinates": [square(0, 0, 10, 10)]},
            },
            {
                "type": "Feature",
                "properties": None,
                "geometry": {"type": "MultiPolygon", "coordinates": [[square(20, 0, 21, 1)], [square(30, 0, 31, 1)]]},
            },
        ],
    }
    features = features_from_geojson(collection)
    assert [f.location.country for f in features] == ["Squareland", ""]
    assert features[1].polygon.num_loops == 2
    assert features[0].polygon.contains_point(point_from_coord(5, 5))


def test_unsupported_geometry_names_the_feature() -> None:
    collection = {
        "features": [
            {"properties": {}, "geometry": {"type": "Polygon", "coordinates": [square(0, 0, 1, 1)]}},
            {"properties": {}, "geometry": {"type": "Point", "coordinates": [0, 0]}},
        ]
    }
    with pytest.raises(UnsupportedGeometry, match="feature 1"):
        features_from_geojson(collection)


COUNTRIES = {
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "properties": {"ADMIN": "United Kingdom", "ISO_A2_EH": "GB"}, "geometry": None},
        {"type": "Feature", "properties": {"ADMIN": "Ireland", "ISO_A2_EH": "IE"}, "geometry": None},
    ],
}


def province(admin, name: str):
    return {
        "type": "Feature",
        "properties": {"admin": admin, "name": name, "ISO_A2_EH": "??"},
        "geometry": {"type": "Polygon", "coordinates": [square(0, 50, 1, 51)]},
    }


def test_merge_matches_country_ignoring_case_and_spacing() -> None:
    collection = {"type": "FeatureCollection", "features": [province("united  kingdom ", "Kent")]}
    merged = merge_properties(collection, COUNTRIES)

    properties = merged["features"][0]["properties"]
    assert properties["ADMIN"] == "United Kingdom"
    assert properties["ISO_A2_EH"] == "GB"
    assert properties["name"] == "Kent"
    assert collection["features"][0]["properties"]["ISO_A2_EH"] == "??"

    location = features_from_geojson(merged)[0].location
    assert (location.country, location.country_code2, location.province) == ("United Kingdom", "GB", "Kent")


def test_merge_leaves_unmatched_features_alone(caplog: pytest.LogCaptureFixture) -> None:
    collection = {"features": [province("Atlantis", "Deep"), province(None, "Nowhere"), province("Ireland", "Cork")]}
    with caplog.at_level(logging.WARNING, logger="rgeo.data.geojson"):
        merged = merge_properties(collection, COUNTRIES)

    assert [f["properties"]["ISO_A2_EH"] for f in merged["features"]] == ["??", "??", "IE"]
    assert "Feature 1" in caplog.text

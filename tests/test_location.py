import pytest

from rgeo.location import Location, combine_locations


@pytest.mark.parametrize(
    "location, expected",
    [
        (Location(), "<Location> Empty Location"),
        (
            Location(city="Paris", province="Paris", country="France", country_code3="FRA", continent="Europe"),
            "<Location> Paris, Paris, France (FRA), Europe",
        ),
        (Location(country_long="French Republic", country_code2="FR"), "<Location> French Republic (FR),"),
        (Location(region="Europe"), "<Location> Europe"),
        (Location(country="Chile", subregion="South America"), "<Location> Chile, South America"),
    ],
)
def test_location_str(location: Location, expected: str) -> None:
    assert str(location) == expected


def test_location_dict_round_trip() -> None:
    location = Location(country="France", country_code2="FR", province_code="FR-75")
    data = location.to_dict()
    assert data == {"country": "France", "country_code_2": "FR", "province_code": "FR-75"}
    assert Location.from_dict(data) == location


def test_location_from_dict_rejects_non_strings() -> None:
    with pytest.raises(TypeError):
        Location.from_dict({"country": 5})


def test_combine_keeps_first_non_empty_value() -> None:
    country = Location(country="France", country_code2="FR", continent="Europe")
    province = Location(province="Bretagne", province_code="FR-BRE", country="Ignored")

    combined = combine_locations([country, province])
    assert combined == Location(
        country="France",
        country_code2="FR",
        continent="Europe",
        province="Bretagne",
        province_code="FR-BRE",
    )


def test_combine_never_overwrites_with_empty_values() -> None:
    combined = combine_locations([Location(city="Lyon"), Location(), Location(country="France")])
    assert combined.city == "Lyon"
    assert combined.country == "France"
    assert combine_locations([]).is_empty()

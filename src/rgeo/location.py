"""Location metadata attached to every indexed region."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Dict, Iterable, Mapping

# Field name -> JSON key used in the persisted feature stream.
JSON_KEYS: Dict[str, str] = {
    "country": "country",
    "country_long": "country_long",
    "country_code2": "country_code_2",
    "country_code3": "country_code_3",
    "continent": "continent",
    "region": "region",
    "subregion": "subregion",
    "province": "province",
    "province_code": "province_code",
    "city": "city",
}


@dataclass(frozen=True)
class Location:
    """Flat record describing where a point is. Empty string means absent."""

    # Commonly used country name
    country: str = ""
    # Formal name of country
    country_long: str = ""
    # ISO 3166-1 alpha-2 and alpha-3 codes
    country_code2: str = ""
    country_code3: str = ""
    continent: str = ""
    region: str = ""
    subregion: str = ""
    province: str = ""
    # ISO 3166-2 code
    province_code: str = ""
    city: str = ""

    def is_empty(self) -> bool:
        return not any(getattr(self, f.name) for f in fields(self))

    def to_dict(self) -> Dict[str, str]:
        """Return the JSON form, leaving out empty fields."""
        return {JSON_KEYS[name]: value for name, value in asdict(self).items() if value}

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "Location":
        values = {}
        for name, key in JSON_KEYS.items():
            value = data.get(key)
            if value is None:
                continue
            if not isinstance(value, str):
                raise TypeError(f"location field {key!r} must be a string, got {type(value).__name__}")
            values[name] = value
        return cls(**values)

    def __str__(self) -> str:
        ret = "<Location>"
        if self.is_empty():
            return ret + " Empty Location"

        if self.city:
            ret += " " + self.city + ","
        if self.province:
            ret += " " + self.province + ","

        if self.country:
            ret += " " + self.country
        elif self.country_long:
            ret += " " + self.country_long

        if self.country_code3:
            ret += " (" + self.country_code3 + ")"
        elif self.country_code2:
            ret += " (" + self.country_code2 + ")"

        if len(ret) > len("<Location>"):
            ret += ","

        area = self.continent or self.region or self.subregion
        if area:
            ret += " " + area
        return ret


def combine_locations(locations: Iterable[Location]) -> Location:
    """Merge locations field by field, keeping the first non-empty value.

    A country polygon can thus supply the country fields while an overlapping
    province polygon supplies the province fields.
    """
    combined = Location()
    for location in locations:
        updates = {
            f.name: getattr(location, f.name)
            for f in fields(Location)
            if not getattr(combined, f.name) and getattr(location, f.name)
        }
        if updates:
            combined = replace(combined, **updates)
    return combined


__all__ = ["JSON_KEYS", "Location", "combine_locations"]

"""Exception types raised by the reverse geocoder."""

from __future__ import annotations


class RgeoError(Exception):
    """Base class for every error raised by rgeo."""


class InvalidGeometry(RgeoError, ValueError):
    """A ring is too short or not closed."""


class UnsupportedGeometry(RgeoError, ValueError):
    """The geometry is not a Polygon or MultiPolygon."""


class DecodeError(RgeoError):
    """A persisted feature record could not be decoded."""

    def __init__(self, record_index: int, reason: str) -> None:
        super().__init__(f"decode feature {record_index}: {reason}")
        self.record_index = record_index
        self.reason = reason


class LocationNotFound(RgeoError, LookupError):
    """No region contains (or lies close enough to) the query point."""

    def __init__(self, message: str = "country not found") -> None:
        super().__init__(message)


class NoDatasetError(RgeoError, ValueError):
    """The engine was created without any dataset."""


class IndexFrozenError(RgeoError, RuntimeError):
    """A shape was added to a builder that has already been built."""


class DatasetError(RgeoError):
    """A dataset file is empty or has an unknown format."""


__all__ = [
    "DatasetError",
    "DecodeError",
    "IndexFrozenError",
    "InvalidGeometry",
    "LocationNotFound",
    "NoDatasetError",
    "RgeoError",
    "UnsupportedGeometry",
]

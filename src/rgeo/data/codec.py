"""Binary feature stream: length-prefixed Location JSON and polygon records.

Each record is::

    <u32 LE length><Location JSON><u32 LE length><polygon bytes>

and records follow each other until the end of the stream. Polygon bytes are
a version byte, a ``u32`` loop count, then for every loop a ``u32`` vertex
count followed by the vertices as little-endian float64 ``x, y, z`` triples.
"""

from __future__ import annotations

import io
import json
import struct
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Iterator, List, Optional

import numpy as np

from rgeo.errors import DecodeError
from rgeo.geometry.loop import Loop, Polygon
from rgeo.location import Location

POLYGON_VERSION = 1

_LENGTH = struct.Struct("<I")
_POLYGON_HEADER = struct.Struct("<BI")
_VERTEX_DTYPE = np.dtype("<f8")


@dataclass(eq=False)
class Feature:
    location: Location
    polygon: Polygon


FeatureCollection = List[Feature]


class _Truncated(Exception):
    pass


def encode_polygon(polygon: Polygon) -> bytes:
    parts = [_POLYGON_HEADER.pack(POLYGON_VERSION, polygon.num_loops)]
    for loop in polygon.loops:
        parts.append(_LENGTH.pack(loop.num_vertices))
        parts.append(loop.vertices.astype(_VERTEX_DTYPE).tobytes())
    return b"".join(parts)


def decode_polygon(data: bytes) -> Polygon:
    if len(data) < _POLYGON_HEADER.size:
        raise ValueError("polygon header is truncated")
    version, num_loops = _POLYGON_HEADER.unpack_from(data)
    if version != POLYGON_VERSION:
        raise ValueError(f"unknown polygon encoding version {version}")

    offset = _POLYGON_HEADER.size
    loops = []
    for _ in range(num_loops):
        if offset + _LENGTH.size > len(data):
            raise ValueError("loop header is truncated")
        (count,) = _LENGTH.unpack_from(data, offset)
        offset += _LENGTH.size
        size = count * 3 * _VERTEX_DTYPE.itemsize
        if offset + size > len(data):
            raise ValueError("loop vertices are truncated")
        vertices = np.frombuffer(data, dtype=_VERTEX_DTYPE, count=count * 3, offset=offset)
        loops.append(Loop(vertices.reshape(count, 3).astype(np.float64)))
        offset += size
    if offset != len(data):
        raise ValueError(f"{len(data) - offset} trailing bytes after polygon")
    return Polygon(loops)


def encode_feature(feature: Feature) -> bytes:
    location = json.dumps(feature.location.to_dict(), separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    polygon = encode_polygon(feature.polygon)
    return b"".join((_LENGTH.pack(len(location)), location, _LENGTH.pack(len(polygon)), polygon))


def encode_feature_stream(features: Iterable[Feature], fp: BinaryIO) -> int:
    """Write every feature to ``fp`` and return how many were written."""
    count = 0
    for feature in features:
        fp.write(encode_feature(feature))
        count += 1
    return count


def decode_feature(fp: BinaryIO, record_index: int = 0) -> Optional[Feature]:
    """Read one record from ``fp``; ``None`` means the stream ended cleanly."""
    header = fp.read(_LENGTH.size)
    if not header:
        return None
    try:
        location_bytes = _read_block(fp, header, "location")
        polygon_bytes = _read_block(fp, fp.read(_LENGTH.size), "polygon")
    except _Truncated as exc:
        raise DecodeError(record_index, str(exc)) from None

    try:
        location = Location.from_dict(json.loads(location_bytes.decode("utf-8")))
    except (ValueError, TypeError, AttributeError) as exc:
        raise DecodeError(record_index, f"decode location: {exc}") from exc
    try:
        polygon = decode_polygon(polygon_bytes)
    except ValueError as exc:
        raise DecodeError(record_index, f"bad polygon in geometry: {exc}") from exc
    return Feature(location, polygon)


def iter_feature_stream(fp: BinaryIO) -> Iterator[Feature]:
    record_index = 0
    while True:
        feature = decode_feature(fp, record_index)
        if feature is None:
            return
        yield feature
        record_index += 1


def decode_feature_stream(data: bytes) -> FeatureCollection:
    """Decode a complete in-memory feature stream."""
    return list(iter_feature_stream(io.BytesIO(data)))


def _read_block(fp: BinaryIO, header: bytes, what: str) -> bytes:
    if len(header) != _LENGTH.size:
        raise _Truncated(f"read {what} length: unexpected end of stream")
    (length,) = _LENGTH.unpack(header)
    block = fp.read(length)
    if len(block) != length:
        raise _Truncated(f"read {what}: expected {length} bytes, got {len(block)}")
    return block


__all__ = [
    "Feature",
    "FeatureCollection",
    "decode_feature",
    "decode_feature_stream",
    "decode_polygon",
    "encode_feature",
    "encode_feature_stream",
    "encode_polygon",
    "iter_feature_stream",
]

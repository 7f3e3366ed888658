import io
import json
import struct

import numpy as np
import pytest

from rgeo.data.codec import (
    Feature,
    decode_feature,
    decode_feature_stream,
    encode_feature,
    encode_feature_stream,
)
from rgeo.errors import DecodeError
from rgeo.geometry.builder import build_polygon
from rgeo.location import Location


def square(lon0: float, lat0: float, lon1: float, lat1: float):
    return [[lon0, lat0], [lon1, lat0], [lon1, lat1], [lon0, lat1], [lon0, lat0]]


def make_feature(name: str = "France", offset: float = 0.0) -> Feature:
    outer = square(offset, 0, offset + 10, 10)
    hole = list(reversed(square(offset + 4, 4, offset + 6, 6)))
    return Feature(
        Location(country=name, country_code2="FR", continent="Europe"),
        build_polygon([outer, hole]),
    )


def test_feature_round_trip() -> None:
    feature = make_feature()
    (decoded,) = decode_feature_stream(encode_feature(feature))

    assert decoded.location == feature.location
    assert decoded.polygon.num_loops == feature.polygon.num_loops
    for original, loop in zip(feature.polygon.loops, decoded.polygon.loops):
        assert loop.num_vertices == original.num_vertices
        assert loop.is_ccw == original.is_ccw
        np.testing.assert_array_equal(loop.vertices, original.vertices)


def test_location_is_stored_as_compact_json() -> None:
    data = encode_feature(make_feature())
    (length,) = struct.unpack_from("<I", data)
    assert json.loads(data[4:4 + length]) == {
        "country": "France",
        "country_code_2": "FR",
        "continent": "Europe",
    }


def test_stream_preserves_order() -> None:
    features = [make_feature(name, offset) for name, offset in (("A", 0), ("B", 20), ("C", 40))]
    buffer = io.BytesIO()
    assert encode_feature_stream(features, buffer) == 3

    decoded = decode_feature_stream(buffer.getvalue())
    assert [f.location.country for f in decoded] == ["A", "B", "C"]


def test_empty_stream_decodes_to_nothing() -> None:
    assert decode_feature_stream(b"") == []
    assert decode_feature(io.BytesIO(b"")) is None


@pytest.mark.parametrize("cut", [1, 10, 200])
def test_truncated_record_names_the_record(cut: int) -> None:
    data = encode_feature(make_feature("A")) + encode_feature(make_feature("B", 20))
    with pytest.raises(DecodeError) as excinfo:
        decode_feature_stream(data[:-cut])
    assert excinfo.value.record_index == 1


def test_partial_length_header_is_an_error() -> None:
    data = encode_feature(make_feature()) + b"\x05\x00"
    with pytest.raises(DecodeError) as excinfo:
        decode_feature_stream(data)
    assert excinfo.value.record_index == 1
    assert "decode feature 1" in str(excinfo.value)


def test_malformed_location_is_an_error() -> None:
    body = b"{not json"
    data = struct.pack("<I", len(body)) + body + struct.pack("<I", 0)
    with pytest.raises(DecodeError) as excinfo:
        decode_feature_stream(data)
    assert excinfo.value.record_index == 0


def test_malformed_polygon_is_an_error() -> None:
    location = b"{}"
    polygon = struct.pack("<BI", 1, 1) + struct.pack("<I", 2) + b"\x00" * 48
    data = struct.pack("<I", len(location)) + location + struct.pack("<I", len(polygon)) + polygon
    with pytest.raises(DecodeError, match="bad polygon"):
        decode_feature_stream(data)

import pytest

from godis.geohash import (
    decode,
    distance,
    encode,
    from_int,
    get_neighbours,
    to_int,
    to_range,
    to_string,
)

MOD = 1 << 64


def test_to_range():
    neighbor = bytes([0x00, 0x00, 0x00, 0x00, 0xE0, 0x00, 0x00, 0x00])
    lower, upper = to_range(neighbor, 36)
    assert lower == to_int(bytes([0x00, 0x00, 0x00, 0x00, 0xE0, 0x00, 0x00, 0x00]))
    assert upper == to_int(bytes([0x00, 0x00, 0x00, 0x00, 0xF0, 0x00, 0x00, 0x00]))


def test_encode():
    lat0, lng0 = 48.669, -4.32913
    code = encode(lat0, lng0)
    assert to_string(from_int(code)) == "gbsuv7zt7zntw"
    lat, lng = decode(code)
    assert abs(lat - lat0) <= 1e-6
    assert abs(lng - lng0) <= 1e-6


@pytest.mark.parametrize(
    "lat,lng", [(0.0, 0.0), (-33.8688, 151.2093), (89.5, -179.5), (-89.9, 179.9)]
)
def test_decode_round_trip(lat, lng):
    got_lat, got_lng = decode(encode(lat, lng))
    assert got_lat == pytest.approx(lat, abs=1e-6)
    assert got_lng == pytest.approx(lng, abs=1e-6)


def test_get_neighbours():
    ranges = get_neighbours(90, 180, 630 * 1000)
    assert len(ranges) == 9
    widths = {(upper - lower) % MOD for lower, upper in ranges}
    assert len(widths) == 1
    width = widths.pop()
    center_lower, _ = ranges[4]
    assert (encode(90, 180) - center_lower) % MOD < width


def test_get_neighbours_center_contains_point():
    lat, lng = 48.669, -4.32913
    ranges = get_neighbours(lat, lng, 1000)
    lower, upper = ranges[4]
    assert lower <= encode(lat, lng) < upper


def test_get_neighbours_negative_radius():
    with pytest.raises(ValueError):
        get_neighbours(0, 0, -1)


def test_int_bytes_round_trip():
    code = encode(10.5, 20.25)
    assert to_int(from_int(code)) == code
    assert len(from_int(code)) == 8


def test_to_int_pads_on_the_right():
    assert to_int(b"\x01") == to_int(b"\x01\x00\x00\x00\x00\x00\x00\x00")


def test_distance_invariants():
    assert distance(10, 20, 10, 20) == 0
    d1 = distance(1, 2, 3, 4)
    d2 = distance(3, 4, 1, 2)
    assert d1 == pytest.approx(d2)
    assert distance(0, 0, 0, 1) == pytest.approx(distance(0, 0, 1, 0))
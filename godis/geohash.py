"""Geohash encoding and neighbour search for GEO commands."""

from __future__ import annotations

import base64
import math

DEFAULT_BIT_SIZE = 64  # 32 bits for latitude, 32 for longitude
EARTH_RADIUS = 6372797.560856
MERCATOR_MAX = 20037726.37  # pi * earth radius

_UINT64_MASK = (1 << 64) - 1
_DR = math.pi / 180.0
_TO_GEOHASH_ALPHABET = bytes.maketrans(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZ234567", b"0123456789bcdefghjkmnpqrstuvwxyz"
)


def _encode(
    latitude: float, longitude: float, bit_size: int
) -> tuple[bytes, list[list[float]]]:
    """Return the hash bits and the final (lng, lat) box."""
    box = [[-180.0, 180.0], [-90.0, 90.0]]
    pos = (longitude, latitude)
    code = bytearray((bit_size + 7) // 8)
    for precision in range(bit_size):
        direction = precision % 2
        mid = (box[direction][0] + box[direction][1]) / 2
        if pos[direction] < mid:
            box[direction][1] = mid
        else:
            box[direction][0] = mid
            code[precision >> 3] |= 1 << (7 - (precision & 7))
    return bytes(code), box


def _decode(code: bytes) -> list[list[float]]:
    box = [[-180.0, 180.0], [-90.0, 90.0]]
    direction = 0
    for byte in code:
        for shift in range(7, -1, -1):
            mid = (box[direction][0] + box[direction][1]) / 2
            if (byte >> shift) & 1:
                box[direction][0] = mid
            else:
                box[direction][1] = mid
            direction ^= 1
    return box


def to_int(buf: bytes) -> int:
    """Read a geohash as a big-endian 64-bit code, zero padded on the right."""
    return int.from_bytes(bytes(buf[:8]).ljust(8, b"\0"), "big")


def from_int(code: int) -> bytes:
    """Write a 64-bit geohash code as 8 big-endian bytes."""
    return (code & _UINT64_MASK).to_bytes(8, "big")


def to_string(buf: bytes) -> str:
    """Render geohash bytes in the base32 geohash alphabet."""
    encoded = base64.b32encode(bytes(buf)).rstrip(b"=")
    return encoded.translate(_TO_GEOHASH_ALPHABET).decode("ascii")


def encode(latitude: float, longitude: float) -> int:
    """Encode a coordinate as a 64-bit geohash code."""
    code, _ = _encode(latitude, longitude, DEFAULT_BIT_SIZE)
    return to_int(code)


def decode(code: int) -> tuple[float, float]:
    """Decode a 64-bit geohash code to (latitude, longitude)."""
    box = _decode(from_int(code))
    lng = (box[0][0] + box[0][1]) / 2
    lat = (box[1][0] + box[1][1]) / 2
    return lat, lng


def _estimate_precision(radius_meters: float, latitude: float) -> int:
    if radius_meters < 0:
        raise ValueError("radius must not be negative")
    if radius_meters == 0:
        return DEFAULT_BIT_SIZE - 1
    precision = 1
    while radius_meters < MERCATOR_MAX:
        radius_meters *= 2
        precision += 1
    # make sure the range is covered in most cases
    precision -= 2
    if latitude > 66 or latitude < -66:
        precision -= 1
        if latitude > 80 or latitude < -80:
            precision -= 1
    if precision < 0:
        # a negative step count wraps around to the widest precision
        precision = 32
    precision = min(max(precision, 1), 32)
    return precision * 2 - 1


def distance(
    latitude1: float, longitude1: float, latitude2: float, longitude2: float
) -> float:
    """Great-circle distance in meters between two coordinates."""
    rad_lat1 = latitude1 * _DR
    rad_lat2 = latitude2 * _DR
    a = rad_lat1 - rad_lat2
    b = longitude1 * _DR - longitude2 * _DR
    return (
        2
        * EARTH_RADIUS
        * math.asin(
            math.sqrt(
                math.sin(a / 2) ** 2
                + math.cos(rad_lat1) * math.cos(rad_lat2) * math.sin(b / 2) ** 2
            )
        )
    )


def to_range(scope: bytes, precision: int) -> tuple[int, int]:
    """Turn a geohash prefix into a [lower, upper) range of 64-bit codes."""
    lower = to_int(scope)
    radius = (1 << (64 - precision)) & _UINT64_MASK
    return lower, (lower + radius) & _UINT64_MASK


def _valid_lat(lat: float) -> float:
    return max(-90.0, min(90.0, lat))


def _valid_lng(lng: float) -> float:
    if lng > 180:
        return lng - 360
    if lng < -180:
        return lng + 360
    return lng


def get_neighbours(
    latitude: float, longitude: float, radius_meters: float
) -> list[tuple[int, int]]:
    """Return code ranges of the nine blocks around a coordinate.

    The order is upper-left, upper, upper-right, left, centre, right,
    lower-left, lower, lower-right.
    """
    precision = _estimate_precision(radius_meters, latitude)
    center, box = _encode(latitude, longitude, precision)
    height = box[0][1] - box[0][0]
    width = box[1][1] - box[1][0]
    center_lng = (box[0][1] + box[0][0]) / 2
    center_lat = (box[1][1] + box[1][0]) / 2
    max_lat = _valid_lat(center_lat + height)
    min_lat = _valid_lat(center_lat - height)
    max_lng = _valid_lng(center_lng + width)
    min_lng = _valid_lng(center_lng - width)

    def block(lat: float, lng: float) -> tuple[int, int]:
        code, _ = _encode(lat, lng, precision)
        return to_range(code, precision)

    return [
        block(max_lat, min_lng),
        block(max_lat, center_lng),
        block(max_lat, max_lng),
        block(center_lat, min_lng),
        to_range(center, precision),
        block(center_lat, max_lng),
        block(min_lat, min_lng),
        block(min_lat, center_lng),
        block(min_lat, max_lng),
    ]
"""Great-circle distance and geohash bucketing."""

import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0

# Precision 5 geohash cells are roughly 4.9 km x 4.9 km
BUCKET_PRECISION = 5

_BASE32 = "0123456789bcdefghjkmnpqrstuvwxyz"
_BASE32_INDEX = {char: index for index, char in enumerate(_BASE32)}

# (lat step, lon step) in cell units: N, NE, E, SE, S, SW, W, NW
_NEIGHBOR_STEPS = (
    (1, 0),
    (1, 1),
    (0, 1),
    (-1, 1),
    (-1, 0),
    (-1, -1),
    (0, -1),
    (1, -1),
)


@dataclass(frozen=True)
class BucketBounds:
    """Center and half-size of a geohash cell, in degrees."""

    lat: float
    lon: float
    lat_err: float
    lon_err: float


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates in kilometers.

    Args:
        lat1: Latitude of the first point
        lon1: Longitude of the first point
        lat2: Latitude of the second point
        lon2: Longitude of the second point

    Returns:
        Distance in kilometers on a sphere of radius 6371 km
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    s_lat = math.sin(d_lat / 2)
    s_lon = math.sin(d_lon / 2)
    a = s_lat * s_lat + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * s_lon * s_lon
    return EARTH_RADIUS_KM * 2 * math.asin(min(1.0, math.sqrt(a)))


def bucket_key(lat: float, lon: float, precision: int = BUCKET_PRECISION) -> str:
    """Encode a coordinate as a geohash of the given precision.

    Bits alternate longitude first; each character carries five bits.
    """
    lat_lo, lat_hi = -90.0, 90.0
    lon_lo, lon_hi = -180.0, 180.0
    chars: list[str] = []
    value = 0
    bits = 0
    use_lon = True

    while len(chars) < precision:
        if use_lon:
            mid = (lon_lo + lon_hi) / 2
            if lon > mid:
                value = (value << 1) | 1
                lon_lo = mid
            else:
                value <<= 1
                lon_hi = mid
        else:
            mid = (lat_lo + lat_hi) / 2
            if lat > mid:
                value = (value << 1) | 1
                lat_lo = mid
            else:
                value <<= 1
                lat_hi = mid
        use_lon = not use_lon
        bits += 1
        if bits == 5:
            chars.append(_BASE32[value])
            value = 0
            bits = 0

    return "".join(chars)


def decode_bucket(key: str) -> BucketBounds:
    """Decode a geohash into its cell center and half-size.

    Raises:
        ValueError: If the key is empty or contains non-geohash characters
    """
    if not key:
        raise ValueError("Bucket key must not be empty")

    lat_lo, lat_hi = -90.0, 90.0
    lon_lo, lon_hi = -180.0, 180.0
    use_lon = True

    for char in key.lower():
        if char not in _BASE32_INDEX:
            raise ValueError(f"Invalid bucket key character: {char!r}")
        value = _BASE32_INDEX[char]
        for shift in range(4, -1, -1):
            bit = (value >> shift) & 1
            if use_lon:
                mid = (lon_lo + lon_hi) / 2
                if bit:
                    lon_lo = mid
                else:
                    lon_hi = mid
            else:
                mid = (lat_lo + lat_hi) / 2
                if bit:
                    lat_lo = mid
                else:
                    lat_hi = mid
            use_lon = not use_lon

    return BucketBounds(
        lat=(lat_lo + lat_hi) / 2,
        lon=(lon_lo + lon_hi) / 2,
        lat_err=(lat_hi - lat_lo) / 2,
        lon_err=(lon_hi - lon_lo) / 2,
    )


def neighbor_keys(key: str) -> list[str]:
    """Return the 8 cells adjacent to ``key`` in order N, NE, E, SE, S, SW, W, NW.

    The order is compass order, not distance order. Longitude wraps at the
    antimeridian; latitude is clamped, so a polar cell can be its own
    northern or southern neighbor.
    """
    cell = decode_bucket(key)
    neighbors = []
    for lat_step, lon_step in _NEIGHBOR_STEPS:
        lat = cell.lat + lat_step * cell.lat_err * 2
        lon = cell.lon + lon_step * cell.lon_err * 2
        lat = max(-90.0, min(90.0, lat))
        lon = (lon + 180.0) % 360.0 - 180.0
        neighbors.append(bucket_key(lat, lon, len(key)))
    return neighbors

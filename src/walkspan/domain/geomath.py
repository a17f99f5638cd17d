# walkspan/domain/geomath.py
"""
Planar coordinate helpers for local sidewalk queries.

Degrees are treated as flat x/y coordinates. That is only acceptable because
every query is confined to a small neighbourhood around the query point.
"""

import math
from typing import Literal

from walkspan.domain.entities.geography import BoundingBox, Segment
from walkspan.domain.errors import InvalidGeometry

METERS_PER_MILE = 1609.344
KM_PER_DEG_LAT = 110.574235
KM_PER_DEG_LNG_AT_EQUATOR = 110.572833
DEFAULT_MAX_ABS_LATITUDE = 89.9

Membership = Literal["any_endpoint", "both_endpoints", "intersects"]
MEMBERSHIPS: tuple[str, ...] = ("any_endpoint", "both_endpoints", "intersects")


def _as_degrees(value, name: str) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise InvalidGeometry(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(v):
        raise InvalidGeometry(f"{name} must be finite, got {v}")
    return v


def check_coordinates(latitude, longitude) -> tuple[float, float]:
    lat = _as_degrees(latitude, "latitude")
    lon = _as_degrees(longitude, "longitude")
    if not -90.0 <= lat <= 90.0:
        raise InvalidGeometry(f"latitude must be within [-90, 90], got {lat}")
    if not -180.0 <= lon <= 180.0:
        raise InvalidGeometry(f"longitude must be within [-180, 180], got {lon}")
    return lat, lon


def derive_bounding_box(
    latitude,
    longitude,
    range_miles,
    *,
    max_abs_latitude: float = DEFAULT_MAX_ABS_LATITUDE,
) -> BoundingBox:
    """
    Flat-Earth box of half-width ``range_miles`` around (latitude, longitude).

    The arithmetic order is fixed so identical inputs give identical floats.
    Latitudes at or beyond ``max_abs_latitude`` are rejected: the longitude
    delta diverges as cos(latitude) goes to zero.
    """
    lat, lon = check_coordinates(latitude, longitude)
    r = _as_degrees(range_miles, "range_miles")
    if r <= 0:
        raise InvalidGeometry(f"range_miles must be > 0, got {r}")
    if abs(lat) >= max_abs_latitude:
        raise InvalidGeometry(f"latitude {lat} too close to a pole (limit {max_abs_latitude})")

    meters = r * METERS_PER_MILE
    lat_rad = lat * math.pi / 180
    deg_lng_km = KM_PER_DEG_LNG_AT_EQUATOR * math.cos(lat_rad)
    delta_lat = meters / 1000.0 / KM_PER_DEG_LAT
    delta_lng = meters / 1000.0 / deg_lng_km
    if not math.isfinite(delta_lng) or delta_lng > 180.0:
        raise InvalidGeometry(f"longitude span {delta_lng} is degenerate at latitude {lat}")

    return BoundingBox(
        top_lat=lat + delta_lat,
        bottom_lat=lat - delta_lat,
        left_lng=lon - delta_lng,
        right_lng=lon + delta_lng,
    )


def distance_to_segment(px, py, ax, ay, bx, by) -> float:
    """Minimum Euclidean distance from p to segment a-b, in the input units."""
    dx, dy = bx - ax, by - ay
    L2 = dx * dx + dy * dy
    if L2 == 0.0:
        return math.hypot(px - ax, py - ay)
    t = ((px - ax) * dx + (py - ay) * dy) / L2
    t = max(0.0, min(1.0, t))
    return math.hypot(px - (ax + t * dx), py - (ay + t * dy))


def segment_distance(lat: float, lon: float, s: Segment) -> float:
    return distance_to_segment(lat, lon, s.start.lat, s.start.lon, s.end.lat, s.end.lon)


def endpoint_manhattan(lat: float, lon: float, s: Segment) -> float:
    return min(
        abs(s.start.lat - lat) + abs(s.start.lon - lon),
        abs(s.end.lat - lat) + abs(s.end.lon - lon),
    )


def segment_crosses_box(s: Segment, box: BoundingBox) -> bool:
    """Liang-Barsky clip of the segment against the (inclusive) box."""
    x0, y0 = s.start.lon, s.start.lat
    dx, dy = s.end.lon - x0, s.end.lat - y0
    t0, t1 = 0.0, 1.0
    for p, q in (
        (-dx, x0 - box.left_lng),
        (dx, box.right_lng - x0),
        (-dy, y0 - box.bottom_lat),
        (dy, box.top_lat - y0),
    ):
        if p == 0.0:
            if q < 0.0:
                return False  # parallel and outside
            continue
        r = q / p
        if p < 0.0:
            if r > t1:
                return False
            t0 = max(t0, r)
        else:
            if r < t0:
                return False
            t1 = min(t1, r)
    return True


def segment_in_box(s: Segment, box: BoundingBox, membership: Membership = "any_endpoint") -> bool:
    start_in = box.contains(s.start.lat, s.start.lon)
    end_in = box.contains(s.end.lat, s.end.lon)
    if membership == "any_endpoint":
        return start_in or end_in
    if membership == "both_endpoints":
        return start_in and end_in
    if membership == "intersects":
        return start_in or end_in or segment_crosses_box(s, box)
    raise ValueError(f"Unknown membership {membership!r}")

# walkspan/domain/entities/geography.py
import math
from collections.abc import Mapping
from dataclasses import dataclass, field

from walkspan.domain.errors import MalformedSegment


# Core geometry types used by the query engine
@dataclass(frozen=True)
class LatLon:
    lat: float  # decimal degrees
    lon: float


@dataclass(frozen=True)
class Segment:
    start: LatLon
    end: LatLon
    scores: Mapping[str, float] = field(default_factory=dict, hash=False)
    segment_id: int | None = None  # rowid / load order in the backing store

    @property
    def is_degenerate(self) -> bool:
        return self.start == self.end

    def check(self) -> "Segment":
        """Raise MalformedSegment unless both endpoints are finite, in-range degrees."""
        for name, p in (("start", self.start), ("end", self.end)):
            if not (math.isfinite(p.lat) and math.isfinite(p.lon)):
                raise MalformedSegment(f"segment {self.segment_id}: non-finite {name} {p}")
            if not (-90.0 <= p.lat <= 90.0 and -180.0 <= p.lon <= 180.0):
                raise MalformedSegment(f"segment {self.segment_id}: {name} out of range {p}")
        return self


@dataclass(frozen=True)
class BoundingBox:
    top_lat: float
    bottom_lat: float
    left_lng: float
    right_lng: float

    def contains(self, lat: float, lon: float) -> bool:
        # inclusive on all four sides
        return (
            self.bottom_lat <= lat <= self.top_lat and self.left_lng <= lon <= self.right_lng
        )

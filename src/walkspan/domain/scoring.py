# walkspan/domain/scoring.py
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from walkspan.domain.entities.geography import Segment

_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def check_identifier(name: str) -> str:
    if not _IDENT.match(name):
        raise ValueError(f"not a plain SQL identifier: {name!r}")
    return name


@dataclass(frozen=True)
class SegmentLayout:
    """Where a dataset keeps its endpoints and which columns hold which score."""

    table: str
    start_lat: str
    start_lon: str
    end_lat: str
    end_lon: str
    scores: Mapping[str, str] = field(default_factory=dict, hash=False)  # score name -> column

    def __post_init__(self):
        object.__setattr__(self, "scores", MappingProxyType(dict(self.scores)))
        for col in (self.table, self.start_lat, self.start_lon, self.end_lat, self.end_lon):
            check_identifier(col)
        for col in self.scores.values():
            check_identifier(col)

    @property
    def columns(self) -> list[str]:
        return [
            *self.scores.values(),
            self.start_lat,
            self.start_lon,
            self.end_lat,
            self.end_lon,
        ]


WALKSPAN = SegmentLayout(
    table="Walkspan",
    start_lat="sidewalk_starting_latitude",
    start_lon="sidewalk_starting_longitude",
    end_lat="sidewalk_ending_latitude",
    end_lon="sidewalk_ending_longitude",
    scores={
        "natural_beauty": "natural_beauty_score",
        "manmade_beauty": "manmade_beauty_score",
        "comfort": "comfort_score",
        "interest": "interest_score",
        "safety": "safety_score",
        "access": "access_score",
        "amenities": "amenities_score",
    },
)

# Borough dataset; its scales are not comparable with WALKSPAN.
BRONX_WALKABILITY = SegmentLayout(
    table="Bronx_Walkability",
    start_lat="start_lat",
    start_lon="start_long",
    end_lat="end_lat",
    end_lon="end_long",
    scores={
        "natural_beauty": "beauty_n",
        "manmade_beauty": "beauty_m",
        "access": "access",
        "interest": "interest",
        "amenities": "amenities",
        "total1": "total1",
        "total2": "total2",
    },
)

LAYOUTS: dict[str, SegmentLayout] = {
    "walkspan": WALKSPAN,
    "bronx_walkability": BRONX_WALKABILITY,
}


def score_payload(segment: Segment, latitude: float, longitude: float) -> dict:
    """Scores of ``segment`` alongside the point they were requested for."""
    return {**segment.scores, "latitude": latitude, "longitude": longitude}

# walkspan/query/engine.py
"""
Nearest-sidewalk and sidewalks-in-range lookups over injected segment stores.

Nearest queries are two-phase. The store returns the ``k`` segments whose
closer endpoint is nearest in Manhattan distance; the engine then ranks those
candidates by exact point-to-segment distance. The pre-filter is best effort:
on a sparse network the true nearest segment may have both endpoints far away
and never reach the candidate list. Raising ``k`` widens the net.
"""

import time
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass

from walkspan.app.protocols import QueryHooks, SegmentStore
from walkspan.domain.entities.geography import BoundingBox, Segment
from walkspan.domain.errors import AmbiguousSource, MalformedSegment, NotFound, UnknownSource
from walkspan.domain.geomath import (
    DEFAULT_MAX_ABS_LATITUDE,
    MEMBERSHIPS,
    Membership,
    check_coordinates,
    derive_bounding_box,
    segment_distance,
    segment_in_box,
)
from walkspan.query.hooks import NoopHooks

DEFAULT_K = 8
DEFAULT_RANGE_MILES = 0.35


@dataclass(frozen=True)
class Survey:
    """Everything a score widget needs around one point, from a single source."""

    source: str
    nearest: Segment
    in_range: list[Segment]
    bbox: BoundingBox


class QueryEngine:
    def __init__(
        self,
        stores: Mapping[str, SegmentStore],
        *,
        default_source: str | None = None,
        k: int = DEFAULT_K,
        membership: Membership = "any_endpoint",
        default_range_miles: float = DEFAULT_RANGE_MILES,
        max_abs_latitude: float = DEFAULT_MAX_ABS_LATITUDE,
        hooks: QueryHooks | None = None,
    ):
        if default_source is not None and default_source not in stores:
            raise UnknownSource(f"default source {default_source!r} is not configured")
        self._stores = dict(stores)
        self.default_source = default_source
        self.k = self._check_k(k)
        self.membership = self._check_membership(membership)
        self.default_range_miles = default_range_miles
        self.max_abs_latitude = max_abs_latitude
        self.hooks = hooks or NoopHooks()

    # --------------- Helpers -----------------------------

    @staticmethod
    def _check_k(k: int) -> int:
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}")
        return int(k)

    @staticmethod
    def _check_membership(m: str) -> str:
        if m not in MEMBERSHIPS:
            raise ValueError(f"Unknown membership {m!r}; expected one of {MEMBERSHIPS}")
        return m

    @contextmanager
    def _observe(self, op: str, **ctx) -> Iterator[dict]:
        t0 = time.perf_counter()
        end: dict = {"results": 0}
        self.hooks.query_start(op, **ctx)
        try:
            yield end
        except Exception as exc:
            self.hooks.error(op, exc=exc, **ctx)
            raise
        self.hooks.query_end(op, ms=(time.perf_counter() - t0) * 1000, **ctx, **end)

    # --------------------------------------------------------

    @property
    def sources(self) -> tuple[str, ...]:
        return tuple(self._stores)

    def resolve_source(self, source: str | None = None) -> tuple[str, SegmentStore]:
        """
        Pick exactly one store. Datasets are never merged: their score scales differ.
        """
        if source is None:
            source = self.default_source
        if source is None:
            if len(self._stores) == 1:
                source = next(iter(self._stores))
            else:
                raise AmbiguousSource(
                    f"{len(self._stores)} sources configured ({', '.join(self._stores) or 'none'});"
                    " pass source= or set a default_source"
                )
        try:
            return source, self._stores[source]
        except KeyError:
            raise UnknownSource(f"Unknown source {source!r}") from None

    def rank_candidates(
        self, lat: float, lon: float, candidates: Iterable[Segment], *, op: str = "nearest"
    ) -> list[tuple[float, Segment]]:
        """(distance, segment) by exact distance; equal distances keep candidate order."""
        ranked = []
        for s in candidates:
            try:
                s.check()
            except MalformedSegment as exc:
                self.hooks.candidate_skipped(op, segment_id=s.segment_id, reason=str(exc))
                continue
            ranked.append((segment_distance(lat, lon, s), s))
        ranked.sort(key=lambda pair: pair[0])
        return ranked

    def _nearest(self, name: str, store: SegmentStore, lat: float, lon: float, k: int, end: dict):
        candidates = store.nearest_candidates(lat, lon, k)
        ranked = self.rank_candidates(lat, lon, candidates)
        end["candidates"] = len(candidates)
        if not ranked:
            raise NotFound(f"no sidewalk found near ({lat}, {lon}) in source {name!r}")
        end["distance"] = ranked[0][0]
        return ranked[0][1]

    def _in_range(self, store: SegmentStore, bbox: BoundingBox, membership: str) -> list[Segment]:
        if membership == "intersects":
            pool = store.extent_overlaps(bbox)
        else:
            pool = store.endpoints_within(bbox)
        return [s for s in pool if segment_in_box(s, bbox, membership)]

    def find_nearest_segment(
        self, latitude, longitude, *, source: str | None = None, k: int | None = None
    ) -> Segment:
        """Closest sidewalk to the point; raises NotFound when the store yields nothing usable."""
        with self._observe("nearest", latitude=latitude, longitude=longitude, source=source) as end:
            lat, lon = check_coordinates(latitude, longitude)
            name, store = self.resolve_source(source)
            k = self._check_k(self.k if k is None else k)
            seg = self._nearest(name, store, lat, lon, k, end)
            end["results"] = 1
            return seg

    def find_segments_in_range(
        self,
        latitude,
        longitude,
        range_miles: float | None = None,
        *,
        source: str | None = None,
        membership: Membership | None = None,
    ) -> list[Segment]:
        """
        Sidewalks belonging to the box ``range_miles`` around the point.
        With the default membership a segment counts when either endpoint is in the
        box; segments that only pass through the box need ``membership="intersects"``.
        An empty list is a normal answer.
        """
        r = self.default_range_miles if range_miles is None else range_miles
        m = self._check_membership(membership or self.membership)
        with self._observe(
            "in_range", latitude=latitude, longitude=longitude, range_miles=r, source=source
        ) as end:
            bbox = derive_bounding_box(
                latitude, longitude, r, max_abs_latitude=self.max_abs_latitude
            )
            _, store = self.resolve_source(source)
            found = self._in_range(store, bbox, m)
            end["results"] = len(found)
            return found

    def survey(
        self,
        latitude,
        longitude,
        range_miles: float | None = None,
        *,
        source: str | None = None,
    ) -> Survey:
        r = self.default_range_miles if range_miles is None else range_miles
        with self._observe(
            "survey", latitude=latitude, longitude=longitude, range_miles=r, source=source
        ) as end:
            bbox = derive_bounding_box(
                latitude, longitude, r, max_abs_latitude=self.max_abs_latitude
            )
            lat, lon = check_coordinates(latitude, longitude)
            name, store = self.resolve_source(source)
            nearest = self._nearest(name, store, lat, lon, self.k, end)
            in_range = self._in_range(store, bbox, self.membership)
            end["results"] = 1 + len(in_range)
            return Survey(source=name, nearest=nearest, in_range=in_range, bbox=bbox)

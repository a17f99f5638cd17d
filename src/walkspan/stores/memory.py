# walkspan/stores/memory.py
import logging
from collections.abc import Iterable

import numpy as np

from walkspan.app.protocols import SegmentStore
from walkspan.domain.entities.geography import BoundingBox, Segment
from walkspan.stores.common import OnMalformed, usable_segments

log = logging.getLogger(__name__)


class MemorySegmentStore(SegmentStore):
    """
    Resident copy of a segment dataset.
    Endpoint coordinates live in numpy columns; nothing is mutated after __init__,
    so one instance can serve concurrent readers.
    """

    def __init__(self, segments: Iterable[Segment], *, on_malformed: OnMalformed = "skip"):
        self._segments: tuple[Segment, ...] = tuple(
            usable_segments(
                segments, lambda s: s, on_malformed=on_malformed, logger=log, source="memory"
            )
        )
        coords = np.array(
            [(s.start.lat, s.start.lon, s.end.lat, s.end.lon) for s in self._segments],
            dtype=float,
        ).reshape(-1, 4)
        self._slat, self._slon, self._elat, self._elon = (coords[:, i].copy() for i in range(4))

    def __len__(self) -> int:
        return len(self._segments)

    def _take(self, idx) -> list[Segment]:
        return [self._segments[int(i)] for i in idx]

    def nearest_candidates(self, lat: float, lon: float, k: int) -> list[Segment]:
        if k <= 0 or not self._segments:
            return []
        d = np.minimum(
            np.abs(self._slat - lat) + np.abs(self._slon - lon),
            np.abs(self._elat - lat) + np.abs(self._elon - lon),
        )
        # stable => ties keep load order
        return self._take(np.argsort(d, kind="stable")[:k])

    def _inside(self, lat, lon, bbox: BoundingBox):
        return (
            (bbox.bottom_lat <= lat)
            & (lat <= bbox.top_lat)
            & (bbox.left_lng <= lon)
            & (lon <= bbox.right_lng)
        )

    def endpoints_within(self, bbox: BoundingBox) -> list[Segment]:
        mask = self._inside(self._slat, self._slon, bbox) | self._inside(
            self._elat, self._elon, bbox
        )
        return self._take(np.flatnonzero(mask))

    def extent_overlaps(self, bbox: BoundingBox) -> list[Segment]:
        mask = (
            (np.minimum(self._slat, self._elat) <= bbox.top_lat)
            & (np.maximum(self._slat, self._elat) >= bbox.bottom_lat)
            & (np.minimum(self._slon, self._elon) <= bbox.right_lng)
            & (np.maximum(self._slon, self._elon) >= bbox.left_lng)
        )
        return self._take(np.flatnonzero(mask))

    def close(self) -> None:
        pass

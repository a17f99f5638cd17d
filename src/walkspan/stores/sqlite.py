# walkspan/stores/sqlite.py
import logging
import math
import os
import sqlite3
import threading
from collections.abc import Iterator
from pathlib import Path

from walkspan.app.protocols import SegmentStore
from walkspan.domain.entities.geography import BoundingBox, LatLon, Segment
from walkspan.domain.errors import MalformedSegment
from walkspan.domain.scoring import SegmentLayout
from walkspan.stores.common import OnMalformed, usable_segments

log = logging.getLogger(__name__)


def _coord(row: sqlite3.Row, col: str) -> float:
    v = row[col]
    if not isinstance(v, (int, float)):
        raise MalformedSegment(f"row {row['_rowid']}: {col}={v!r} is not a number")
    f = float(v)
    if not math.isfinite(f):
        raise MalformedSegment(f"row {row['_rowid']}: {col}={v!r} is not finite")
    return f


class SqliteSegmentStore(SegmentStore):
    """
    Read-only sqlite dataset. One connection is opened with ``mode=ro`` and shared
    across threads; the lock serialises cursor use on it.
    """

    def __init__(
        self,
        path: str,
        layout: SegmentLayout,
        *,
        on_malformed: OnMalformed = "skip",
    ):
        if not os.path.exists(path):
            raise FileNotFoundError(path)
        self.path, self.layout, self.on_malformed = path, layout, on_malformed
        uri = Path(path).resolve().as_uri() + "?mode=ro"
        self._conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()

        L = layout
        self._select = f"SELECT rowid AS _rowid, {', '.join(L.columns)} FROM {L.table}"
        coords = ((L.start_lat, 90), (L.start_lon, 180), (L.end_lat, 90), (L.end_lon, 180))
        # rows failing this never reach a LIMIT window; with "raise" they surface instead
        if on_malformed == "skip":
            self._usable = " AND ".join(
                f"typeof({c}) IN ('integer', 'real') AND {c} BETWEEN -{lim} AND {lim}"
                for c, lim in coords
            )
        else:
            self._usable = " AND ".join(f"{c} IS NOT NULL" for c, _ in coords)

    # --------------- Helpers -----------------------------

    def _to_segment(self, row: sqlite3.Row) -> Segment:
        L = self.layout
        return Segment(
            start=LatLon(_coord(row, L.start_lat), _coord(row, L.start_lon)),
            end=LatLon(_coord(row, L.end_lat), _coord(row, L.end_lon)),
            scores={name: row[col] for name, col in L.scores.items()},
            segment_id=row["_rowid"],
        )

    def _query(self, sql: str, params: dict | None = None) -> list[Segment]:
        with self._lock:
            rows = self._conn.execute(sql, params or {}).fetchall()
        return list(
            usable_segments(
                rows,
                self._to_segment,
                on_malformed=self.on_malformed,
                logger=log,
                source=self.path,
            )
        )

    # --------------------------------------------------------

    def __len__(self) -> int:
        with self._lock:
            (n,) = self._conn.execute(f"SELECT COUNT(*) FROM {self.layout.table}").fetchone()
        return int(n)

    def iter_segments(self) -> Iterator[Segment]:
        with self._lock:
            rows = self._conn.execute(f"{self._select} ORDER BY rowid").fetchall()
        yield from usable_segments(
            rows,
            self._to_segment,
            on_malformed=self.on_malformed,
            logger=log,
            source=self.path,
        )

    def nearest_candidates(self, lat: float, lon: float, k: int) -> list[Segment]:
        if k <= 0:
            return []
        L = self.layout
        sql = f"""
            {self._select}
            WHERE {self._usable}
            ORDER BY MIN(
                ABS({L.start_lat} - :latitude) + ABS({L.start_lon} - :longitude),
                ABS({L.end_lat} - :latitude) + ABS({L.end_lon} - :longitude)
            ) ASC, rowid ASC LIMIT :k
        """
        return self._query(sql, {"latitude": lat, "longitude": lon, "k": k})

    def endpoints_within(self, bbox: BoundingBox) -> list[Segment]:
        L = self.layout
        sql = f"""
            {self._select}
            WHERE {self._usable} AND ((
                :bottomLat <= {L.start_lat} AND {L.start_lat} <= :topLat AND
                :leftLng <= {L.start_lon} AND {L.start_lon} <= :rightLng
            ) OR (
                :bottomLat <= {L.end_lat} AND {L.end_lat} <= :topLat AND
                :leftLng <= {L.end_lon} AND {L.end_lon} <= :rightLng
            ))
            ORDER BY rowid
        """
        return self._query(sql, self._box_params(bbox))

    def extent_overlaps(self, bbox: BoundingBox) -> list[Segment]:
        L = self.layout
        sql = f"""
            {self._select}
            WHERE {self._usable}
              AND MIN({L.start_lat}, {L.end_lat}) <= :topLat
              AND MAX({L.start_lat}, {L.end_lat}) >= :bottomLat
              AND MIN({L.start_lon}, {L.end_lon}) <= :rightLng
              AND MAX({L.start_lon}, {L.end_lon}) >= :leftLng
            ORDER BY rowid
        """
        return self._query(sql, self._box_params(bbox))

    @staticmethod
    def _box_params(bbox: BoundingBox) -> dict:
        return {
            "topLat": bbox.top_lat,
            "bottomLat": bbox.bottom_lat,
            "leftLng": bbox.left_lng,
            "rightLng": bbox.right_lng,
        }

    def close(self) -> None:
        with self._lock:
            self._conn.close()

# tests/conftest.py
import sqlite3

import pytest

from walkspan.domain.entities.geography import LatLon, Segment
from walkspan.domain.scoring import WALKSPAN, SegmentLayout

NYC = (40.730610, -73.935242)

NYC_SCORES = {
    "natural_beauty": 1,
    "manmade_beauty": 1,
    "comfort": 1,
    "interest": 1,
    "safety": 3,
    "access": 3,
    "amenities": 1,
}


def seg(a, b, scores=None, segment_id=None) -> Segment:
    return Segment(LatLon(*a), LatLon(*b), scores or {}, segment_id)


def nyc_segments() -> list[Segment]:
    """A few Long Island City blocks; the second one runs right past NYC."""
    other = {k: 2 for k in NYC_SCORES}
    return [
        seg((40.7320, -73.9380), (40.7325, -73.9371), other, 1),
        seg((40.7302, -73.9358), (40.7311, -73.9347), NYC_SCORES, 2),
        seg((40.7290, -73.9330), (40.7296, -73.9322), other, 3),
        seg((40.7330, -73.9310), (40.7338, -73.9301), other, 4),
        seg((40.7200, -73.9500), (40.7208, -73.9491), other, 5),
    ]


def write_segments_db(path, segments, layout: SegmentLayout = WALKSPAN, extra_rows=()):
    """Create a sqlite file holding ``segments`` in ``layout``; rowid follows list order."""
    cols = layout.columns
    conn = sqlite3.connect(path)
    try:
        conn.execute(f"CREATE TABLE {layout.table} ({', '.join(cols)})")
        rows = []
        for s in segments:
            row = {col: s.scores.get(name) for name, col in layout.scores.items()}
            row.update(
                {
                    layout.start_lat: s.start.lat,
                    layout.start_lon: s.start.lon,
                    layout.end_lat: s.end.lat,
                    layout.end_lon: s.end.lon,
                }
            )
            rows.append(row)
        rows.extend(extra_rows)
        for row in rows:
            conn.execute(
                f"INSERT INTO {layout.table} ({', '.join(cols)}) "
                f"VALUES ({', '.join('?' for _ in cols)})",
                [row.get(c) for c in cols],
            )
        conn.commit()
    finally:
        conn.close()
    return str(path)


@pytest.fixture
def nyc_db(tmp_path):
    return write_segments_db(tmp_path / "walkspan.sqlite", nyc_segments())

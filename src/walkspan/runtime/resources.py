# walkspan/runtime/resources.py
import os
import pickle
from functools import lru_cache

from walkspan.domain.entities.geography import Segment
from walkspan.domain.scoring import SegmentLayout
from walkspan.stores.sqlite import SqliteSegmentStore


def load_segments_from_path(
    file: str, fmt: str, layout: SegmentLayout, on_malformed: str = "skip"
) -> tuple[Segment, ...]:
    """Read a whole dataset for a resident store. A rewritten file is read again."""
    st = os.stat(file)
    return _load_segments(file, fmt, layout, on_malformed, st.st_mtime_ns, st.st_size)


@lru_cache(maxsize=8)
def _load_segments(
    file: str, fmt: str, layout: SegmentLayout, on_malformed: str, mtime_ns: int, size: int
) -> tuple[Segment, ...]:
    if fmt == "pickle":
        with open(file, "rb") as f:
            return tuple(pickle.load(f))
    if fmt == "sqlite":
        src = SqliteSegmentStore(file, layout, on_malformed=on_malformed)
        try:
            return tuple(src.iter_segments())
        finally:
            src.close()
    raise ValueError(f"Unsupported segment fmt {fmt!r}")

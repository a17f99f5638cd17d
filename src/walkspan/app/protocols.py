from typing import Protocol, runtime_checkable

from walkspan.domain.entities.geography import BoundingBox, Segment


# ------------- Storage --------------------
@runtime_checkable
class SegmentStore(Protocol):
    """
    Read-only view over one static segment dataset.
    Responsibilities:
    • Rank segments by endpoint-Manhattan distance and return the first k.
    • Return every segment with an endpoint inside a box (inclusive bounds).
    • Return every segment whose own lat/lon extent overlaps a box.
    Units: decimal degrees. Result order follows the store's load/rowid order
    wherever the ranking key ties.
    """

    def nearest_candidates(self, lat: float, lon: float, k: int) -> list[Segment]: ...
    def endpoints_within(self, bbox: BoundingBox) -> list[Segment]: ...
    def extent_overlaps(self, bbox: BoundingBox) -> list[Segment]:
        """Superset pre-filter for segments that may cross the box."""

    def __len__(self) -> int: ...
    def close(self) -> None: ...


# ------------- Instrumentation --------------------
@runtime_checkable
class QueryHooks(Protocol):
    def query_start(self, op: str, **kw): ...
    def query_end(self, op: str, *, results: int, ms: float, **kw): ...
    def candidate_skipped(self, op: str, *, segment_id, reason: str, **kw): ...
    def error(self, op: str, *, exc: BaseException, **kw): ...

# walkspan/stores/common.py
import logging
from collections.abc import Callable, Iterable, Iterator
from typing import Literal, TypeVar

from walkspan.domain.entities.geography import Segment
from walkspan.domain.errors import MalformedSegment

OnMalformed = Literal["skip", "raise"]

T = TypeVar("T")


def usable_segments(
    items: Iterable[T],
    to_segment: Callable[[T], Segment],
    *,
    on_malformed: OnMalformed,
    logger: logging.Logger,
    source: str = "",
) -> Iterator[Segment]:
    """Convert and check each item, skipping (and logging) or raising on malformed ones."""
    for item in items:
        try:
            yield to_segment(item).check()
        except MalformedSegment as exc:
            if on_malformed == "raise":
                raise
            logger.warning(
                "malformed_segment_skipped",
                extra={"extra": {"source": source, "reason": str(exc)}},
            )

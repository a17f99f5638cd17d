# walkspan/domain/errors.py


class WalkspanError(Exception):
    """Base class for every failure raised by the query core."""


class NotFound(WalkspanError, LookupError):
    """The store produced no usable candidate for a nearest query."""


class InvalidGeometry(WalkspanError, ValueError):
    """Query coordinates or range cannot produce a meaningful bounding box."""


class MalformedSegment(WalkspanError, ValueError):
    """A stored segment has non-finite or out-of-range coordinates."""


class UnknownSource(WalkspanError, LookupError):
    """A query or config names a source that is not configured."""


class AmbiguousSource(WalkspanError, ValueError):
    """Several sources are configured and the caller did not pick one."""

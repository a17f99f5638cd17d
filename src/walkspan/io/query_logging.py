# io/query_logging.py
import json
import logging
import sys

from walkspan.query.hooks import NoopHooks


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        return json.dumps(payload, default=str)


def _default_json_logger(name="walkspan", level="INFO", stream=None):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(stream or sys.stdout)
        h.setFormatter(_JsonFormatter())
        logger.addHandler(h)
    logger.setLevel(level)
    return logger


class QueryLogging(NoopHooks):
    """
    Structured JSON logs for every engine call.
    query_end is INFO; query_start and per-candidate detail only with debug.
    """

    def __init__(
        self,
        service: str = "local",
        level: str = "INFO",
        debug: bool = False,
        logger: logging.Logger | None = None,
    ):
        self.service, self.debug = service, debug
        self.log = logger or _default_json_logger(level=level)

    def _emit(self, level: str, msg: str, **extra):
        payload = {"service": self.service}
        self.log.log(getattr(logging, level), msg, extra={"extra": {**payload, **extra}})

    def query_start(self, op: str, **kw):
        if self.debug:
            self._emit("DEBUG", "query_start", op=op, **kw)

    def query_end(self, op: str, *, results: int, ms: float, **kw):
        self._emit("INFO", "query_end", op=op, results=results, ms=round(ms, 3), **kw)

    def candidate_skipped(self, op: str, *, segment_id, reason: str, **kw):
        self._emit("WARNING", "candidate_skipped", op=op, segment_id=segment_id, reason=reason, **kw)

    def error(self, op: str, *, exc: BaseException, **kw):
        self._emit("ERROR", "query_error", op=op, error=type(exc).__name__, detail=str(exc), **kw)

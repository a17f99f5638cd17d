# tests/query/test_query_logging.py
import io
import json
import logging

import pytest
from conftest import NYC, nyc_segments

from walkspan.domain.errors import NotFound
from walkspan.io.query_logging import QueryLogging, _default_json_logger, _JsonFormatter
from walkspan.query.engine import QueryEngine
from walkspan.stores.memory import MemorySegmentStore


@pytest.fixture
def log_stream():
    buf = io.StringIO()
    logger = logging.getLogger("walkspan.test_query_logging")
    for h in list(logger.handlers):
        logger.removeHandler(h)
    handler = logging.StreamHandler(buf)
    handler.setFormatter(_JsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    yield logger, buf
    for h in list(logger.handlers):
        logger.removeHandler(h)


def _lines(buf):
    return [json.loads(line) for line in buf.getvalue().splitlines()]


def test_query_end_is_logged_as_json(log_stream):
    logger, buf = log_stream
    hooks = QueryLogging(service="nyc", logger=logger)
    engine = QueryEngine({"walkspan": MemorySegmentStore(nyc_segments())}, hooks=hooks)
    engine.find_nearest_segment(*NYC)

    (line,) = _lines(buf)
    assert line["msg"] == "query_end"
    assert line["level"] == "INFO"
    assert line["service"] == "nyc"
    assert line["op"] == "nearest"
    assert line["results"] == 1
    assert line["candidates"] == 5


def test_debug_adds_query_start(log_stream):
    logger, buf = log_stream
    hooks = QueryLogging(service="nyc", debug=True, logger=logger)
    engine = QueryEngine({"walkspan": MemorySegmentStore(nyc_segments())}, hooks=hooks)
    engine.find_segments_in_range(*NYC, 0.25)
    assert [line["msg"] for line in _lines(buf)] == ["query_start", "query_end"]


def test_errors_are_logged_then_raised(log_stream):
    logger, buf = log_stream
    engine = QueryEngine(
        {"empty": MemorySegmentStore([])}, hooks=QueryLogging(service="nyc", logger=logger)
    )
    with pytest.raises(NotFound):
        engine.find_nearest_segment(*NYC)
    (line,) = _lines(buf)
    assert line["level"] == "ERROR"
    assert line["msg"] == "query_error"
    assert line["error"] == "NotFound"


def test_default_logger_is_configured_once():
    fresh = logging.getLogger("walkspan.test_once")
    for h in list(fresh.handlers):
        fresh.removeHandler(h)
    logger = _default_json_logger(name="walkspan.test_once")
    again = _default_json_logger(name="walkspan.test_once", level="WARNING")
    assert logger is again
    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING

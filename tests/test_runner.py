"""
Background runner: busy state, error delivery and discarding superseded queries.
"""
import threading

import pytest

from incident_explorer.errors import DataAccessError
from incident_explorer.gateway import QueryResult
from incident_explorer.runner import READY, SEARCHING, QueryRunner


@pytest.fixture
def runner():
    runner = QueryRunner(max_workers=2)
    yield runner
    runner.shutdown()


def result_of(*values):
    return QueryResult(["value"], [(v,) for v in values])


def test_publishes_result_and_status(runner):
    future = runner.submit("Top N Blocks", lambda: result_of(1, 2, 3))
    runner.wait(timeout=5)

    assert future.result().rows == [(1,), (2,), (3,)]
    assert runner.sink.title == "Top N Blocks"
    assert runner.sink.status == "3 records found."
    assert not runner.sink.busy


def test_busy_while_running(runner):
    release = threading.Event()

    def slow():
        release.wait(5)
        return result_of(1)

    runner.submit("Search", slow)
    assert runner.sink.busy
    assert runner.sink.status == SEARCHING
    release.set()
    runner.wait(timeout=5)
    assert not runner.sink.busy


def test_error_keeps_previous_result(runner):
    runner.submit("Search", lambda: result_of(1))
    runner.wait(timeout=5)

    def broken():
        raise DataAccessError("no such table: fact_incident")

    future = runner.submit("Avg Duration by Offense", broken)
    runner.wait(timeout=5)

    with pytest.raises(DataAccessError):
        future.result()
    assert runner.sink.title == "Search"
    assert runner.sink.result.rows == [(1,)]
    assert runner.sink.status == READY
    assert runner.sink.pop_errors() == ["Error: no such table: fact_incident"]
    assert runner.sink.pop_errors() == []


def test_skipped_query_leaves_grid_alone(runner):
    runner.submit("Search", lambda: result_of(1))
    runner.wait(timeout=5)
    runner.submit("Top N Blocks", lambda: None)
    runner.wait(timeout=5)

    assert runner.sink.title == "Search"
    assert runner.sink.status == READY
    assert not runner.sink.busy


def test_superseded_result_is_discarded(runner):
    release = threading.Event()

    def slow():
        release.wait(5)
        return result_of("old")

    stale = runner.submit("Search", slow)
    fresh = runner.submit("Top N Offenses", lambda: result_of("new"))
    fresh.result(timeout=5)
    assert runner.sink.result.rows == [("new",)]

    release.set()
    stale.result(timeout=5)

    assert runner.sink.title == "Top N Offenses"
    assert runner.sink.result.rows == [("new",)]
    assert runner.generation == 2


def test_present_derives_extra_data(runner):
    runner.submit("Incidents per Month", lambda: result_of(1, 2), present=len)
    runner.wait(timeout=5)
    assert runner.sink.extra == 2


def test_cancel_pending_query():
    runner = QueryRunner(max_workers=1)
    release = threading.Event()
    try:
        runner.submit("Search", lambda: release.wait(5) and result_of(1))
        pending = runner.submit("Top N Blocks", lambda: result_of(2))

        assert runner.cancel() is True
        assert pending.cancelled()
        assert not runner.sink.busy
    finally:
        release.set()
        runner.shutdown()

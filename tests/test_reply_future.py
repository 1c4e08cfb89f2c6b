import threading

import pytest

from rmqkit.future import RequestTimeoutError
from rmqkit.reply_future import RequestResponseFuture, RequestResponseFutureTable


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_wait_returns_reply_put_from_another_thread():
    future = RequestResponseFuture("cid-1", 5.0)
    reply = object()
    threading.Timer(0.05, future.put_response_message, args=(reply,)).start()
    assert future.wait_response_message("topic-a") is reply


def test_wait_times_out_naming_topic():
    future = RequestResponseFuture("cid-1", 0.05)
    with pytest.raises(RequestTimeoutError) as info:
        future.wait_response_message("topic-a")
    assert "topic-a" in str(info.value)
    assert "wait reply message timeout" in str(info.value)


def test_second_reply_is_rejected():
    future = RequestResponseFuture("cid-1", 1.0)
    future.put_response_message("first")
    with pytest.raises(RuntimeError):
        future.put_response_message("second")
    assert future.response_msg == "first"


def test_is_timeout_follows_clock():
    clock = FakeClock()
    future = RequestResponseFuture("cid-1", 2.0, clock=clock)
    assert not future.is_timeout()
    clock.now += 2.5
    assert future.is_timeout()


def test_execute_request_callback_passes_reply_and_error():
    calls = []
    future = RequestResponseFuture("cid-1", 1.0, callback=lambda m, e: calls.append((m, e)))
    future.put_response_message("reply")
    future.execute_request_callback()
    assert calls == [("reply", None)]


def test_table_get_hides_expired_entries():
    clock = FakeClock()
    table = RequestResponseFutureTable(clock=clock)
    future = RequestResponseFuture("cid-1", 2.0, clock=clock)
    table.add(future)
    assert table.get("cid-1") is future
    clock.now += 3.0
    assert table.get("cid-1") is None
    assert len(table) == 1


def test_set_response_delivers_and_runs_callback():
    calls = []
    table = RequestResponseFutureTable()
    future = RequestResponseFuture("cid-1", 5.0, callback=lambda m, e: calls.append((m, e)))
    table.add(future)
    assert table.set_response("cid-1", "reply") is True
    assert future.done.is_set()
    assert calls == [("reply", None)]


def test_set_response_for_unknown_id_returns_false():
    table = RequestResponseFutureTable()
    assert table.set_response("missing", "reply") is False


def test_remove_runs_callback_without_error_when_not_timed_out():
    calls = []
    clock = FakeClock()
    table = RequestResponseFutureTable(clock=clock)
    table.add(RequestResponseFuture("cid-1", 5.0, callback=lambda m, e: calls.append(e), clock=clock))
    table.remove("cid-1")
    assert calls == [None]
    assert table.get("cid-1") is None


def test_evict_expired_marks_timeout_and_keeps_live_entries():
    errors = []
    clock = FakeClock()
    table = RequestResponseFutureTable(clock=clock)
    stale = RequestResponseFuture("cid-old", 1.0, callback=lambda m, e: errors.append(e), clock=clock)
    fresh = RequestResponseFuture("cid-new", 60.0, clock=clock)
    table.add(stale)
    table.add(fresh)
    clock.now += 2.0

    evicted = table.evict_expired()

    assert evicted == [stale]
    assert table.get("cid-new") is fresh
    assert len(table) == 1
    assert isinstance(errors[0], RequestTimeoutError)
    assert "cid-old" in str(errors[0])
    assert "request timeout, no reply message" in str(errors[0])


def test_negative_timeout_never_expires():
    clock = FakeClock()
    table = RequestResponseFutureTable(clock=clock)
    future = RequestResponseFuture("cid-1", -1.0, clock=clock)
    table.add(future)
    clock.now += 1_000_000.0
    assert table.evict_expired() == []
    assert table.get("cid-1") is future
import threading
import time

import pytest

from rmqkit.codec import RemotingCommand
from rmqkit.future import RequestTimeoutError, ResponseFuture


def test_new_response_future():
    future = ResponseFuture(10)
    assert future.opaque == 10
    assert future.error is None
    assert future.callback is None
    assert not future.done.is_set()


def test_callback_runs_once():
    def callback(r):
        if r.response_command.remark == "":
            r.response_command.remark = "Hello RocketMQ."
        else:
            r.response_command.remark = r.response_command.remark + "Go Client"

    future = ResponseFuture(10, callback)
    future.response_command = RemotingCommand.create(200, None, None)

    threads = [threading.Thread(target=future.execute_invoke_callback) for _ in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert future.response_command.remark == "Hello RocketMQ."


def test_wait_response_times_out():
    future = ResponseFuture(10, timeout=0.000001)
    with pytest.raises(RequestTimeoutError):
        future.wait_response()
    assert isinstance(future.error, RequestTimeoutError)


def test_wait_response_raises_stored_error():
    future = ResponseFuture(10)
    response_error = RuntimeError("response error")

    def finish():
        time.sleep(0.1)
        future.complete(None, response_error)

    threading.Thread(target=finish).start()
    with pytest.raises(RuntimeError) as info:
        future.wait_response()
    assert info.value is response_error


def test_wait_response_returns_command():
    future = ResponseFuture(10)
    response = RemotingCommand.create(202, None, None)

    def finish():
        time.sleep(0.1)
        future.complete(response)

    threading.Thread(target=finish).start()
    assert future.wait_response() is response


def test_complete_before_wait_with_deadline():
    future = ResponseFuture(3, timeout=5.0)
    response = RemotingCommand.create(1)
    future.complete(response)
    assert future.done.is_set()
    assert future.wait_response() is response
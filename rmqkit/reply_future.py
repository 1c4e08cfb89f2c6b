"""Pending request-reply exchanges keyed by correlation id."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from .future import RequestTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_EXPIRATION = 300.0

RequestCallback = Callable[[Any, "BaseException | None"], None]
Clock = Callable[[], float]


class RequestResponseFuture:
    """Waits for the reply to one request message; ``timeout`` is in seconds."""

    def __init__(
        self,
        correlation_id: str,
        timeout: float,
        callback: RequestCallback | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self.correlation_id = correlation_id
        self.timeout = timeout
        self.request_callback = callback
        self.response_msg: Any = None
        self.cause_err: BaseException | None = None
        self.send_request_ok = False
        self.done = threading.Event()
        self._clock = clock
        self.begin_time = clock()
        self._lock = threading.Lock()

    def execute_request_callback(self) -> None:
        """Pass the reply (or None) and the failure cause to the callback, if any."""
        if self.request_callback is None:
            return
        self.request_callback(self.response_msg, self.cause_err)

    def wait_response_message(self, request_topic: str) -> Any:
        """Block until the reply arrives; raise :class:`RequestTimeoutError` after the timeout."""
        if not self.done.wait(self.timeout):
            message = (
                f"send request message to {request_topic} OK, "
                f"but wait reply message timeout {int(self.timeout * 1000)} ms"
            )
            logger.error(message)
            raise RequestTimeoutError(message)
        with self._lock:
            return self.response_msg

    def put_response_message(self, message: Any) -> None:
        """Store the reply and wake the waiter; a second reply is an error."""
        with self._lock:
            if self.done.is_set():
                raise RuntimeError(
                    f"correlationId:{self.correlation_id} already has a reply"
                )
            self.response_msg = message
            self.done.set()

    def is_timeout(self) -> bool:
        return self._clock() - self.begin_time > self.timeout


class RequestResponseFutureTable:
    """Futures stored until they expire or are removed.

    Each entry lives for its future's timeout; a zero timeout uses the
    table's default and a negative one never expires. Removing or evicting
    an entry runs its callback, first marking it timed out if it is.
    """

    def __init__(
        self, default_expiration: float = DEFAULT_EXPIRATION, clock: Clock = time.monotonic
    ) -> None:
        self.default_expiration = default_expiration
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[RequestResponseFuture, float | None]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _expiry(self, timeout: float) -> float | None:
        if timeout > 0:
            return self._clock() + timeout
        if timeout == 0:
            return self._clock() + self.default_expiration
        return None

    def _expired(self, expires_at: float | None) -> bool:
        return expires_at is not None and self._clock() > expires_at

    def add(self, future: RequestResponseFuture) -> None:
        with self._lock:
            self._entries[future.correlation_id] = (future, self._expiry(future.timeout))

    def get(self, correlation_id: str) -> RequestResponseFuture | None:
        """The live future for ``correlation_id``, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(correlation_id)
        if entry is None or self._expired(entry[1]):
            return None
        return entry[0]

    def set_response(self, correlation_id: str, reply: Any) -> bool:
        """Deliver ``reply``; False when no live future has that id."""
        future = self.get(correlation_id)
        if future is None:
            return False
        future.put_response_message(reply)
        if future.request_callback is not None:
            future.execute_request_callback()
        return True

    def remove(self, correlation_id: str) -> None:
        with self._lock:
            entry = self._entries.pop(correlation_id, None)
        if entry is not None:
            self._on_evicted(correlation_id, entry[0])

    def evict_expired(self) -> list[RequestResponseFuture]:
        """Drop every expired entry and return the futures dropped."""
        with self._lock:
            expired = [
                (cid, future)
                for cid, (future, expires_at) in self._entries.items()
                if self._expired(expires_at)
            ]
            for cid, _ in expired:
                del self._entries[cid]
        for cid, future in expired:
            self._on_evicted(cid, future)
        return [future for _, future in expired]

    @staticmethod
    def _on_evicted(correlation_id: str, future: RequestResponseFuture) -> None:
        if future.is_timeout():
            future.cause_err = RequestTimeoutError(
                f"correlationId:{correlation_id} request timeout, no reply message"
            )
        try:
            future.execute_request_callback()
        except Exception:
            logger.exception("request callback for %s failed", correlation_id)


REQUEST_RESPONSE_FUTURES = RequestResponseFutureTable()
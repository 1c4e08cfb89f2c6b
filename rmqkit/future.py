"""A pending response to a request sent over a remoting connection."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from .codec import RemotingCommand


class RequestTimeoutError(TimeoutError):
    """Raised when no response arrives before the request's deadline."""

    def __init__(self, message: str = "request timeout") -> None:
        super().__init__(message)


class ResponseFuture:
    """Holds the response or error for one request, identified by its opaque id.

    ``timeout`` is in seconds, counted from creation; ``None`` waits forever.
    """

    def __init__(
        self,
        opaque: int,
        callback: Callable[[ResponseFuture], None] | None = None,
        timeout: float | None = None,
    ) -> None:
        self.opaque = opaque
        self.callback = callback
        self.response_command: RemotingCommand | None = None
        self.error: BaseException | None = None
        self.done = threading.Event()
        self._deadline = None if timeout is None else time.monotonic() + timeout
        self._callback_lock = threading.Lock()
        self._callback_run = False

    def execute_invoke_callback(self) -> None:
        """Run the callback once, however many times this is called."""
        with self._callback_lock:
            if self._callback_run:
                return
            self._callback_run = True
            if self.callback is not None:
                self.callback(self)

    def wait_response(self) -> RemotingCommand | None:
        """Block until completed; return the response or raise the stored error."""
        remaining = None
        if self._deadline is not None:
            remaining = max(0.0, self._deadline - time.monotonic())
        if not self.done.wait(remaining):
            self.error = RequestTimeoutError()
            raise self.error
        if self.error is not None:
            raise self.error
        return self.response_command

    def complete(
        self,
        command: RemotingCommand | None = None,
        error: BaseException | None = None,
    ) -> None:
        """Store the outcome and wake any waiter."""
        self.response_command = command
        self.error = error
        self.done.set()
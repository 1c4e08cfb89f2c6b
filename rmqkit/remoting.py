"""A TCP client that exchanges remoting command frames with servers."""

from __future__ import annotations

import abc
import logging
import select
import socket
import struct
import threading
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Protocol

from .codec import RESPONSE_TYPE, CodecType, RemotingCommand, decode, encode
from .future import ResponseFuture

logger = logging.getLogger(__name__)

RequestFunc = Callable[[RemotingCommand, Any], "RemotingCommand | None"]
AsyncCallback = Callable[[ResponseFuture], None]


class _Readable(Protocol):
    def read(self, size: int) -> bytes: ...


@dataclass
class TcpOption:
    """Socket settings; durations are in seconds.

    A negative ``keep_alive_duration`` disables TCP keep-alive, zero keeps
    the system's default interval.
    """

    keep_alive_duration: float = 0.0
    connection_timeout: float = 15.0
    read_timeout: float = 120.0
    write_timeout: float = 120.0


class RPCHook(abc.ABC):
    """Observes every request sent and every synchronous response received."""

    @abc.abstractmethod
    def do_before_request(self, addr: str, command: RemotingCommand) -> None:
        """Called just before ``command`` is written to ``addr``."""

    @abc.abstractmethod
    def do_after_response(self, addr: str, command: RemotingCommand) -> None:
        """Called with the response that ``addr`` sent back."""


def _read_exact(stream: _Readable, size: int) -> bytes | None:
    chunks = []
    remaining = size
    while remaining:
        chunk = stream.read(remaining)
        if not chunk:
            return None
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def iter_frames(stream: _Readable) -> Iterator[bytes]:
    """Yield each frame of ``stream`` without its 4-byte length prefix.

    Iteration ends at end of stream; a frame cut short by the end is dropped.
    """
    while True:
        prefix = _read_exact(stream, 4)
        if prefix is None:
            return
        (length,) = struct.unpack(">i", prefix)
        if length < 0:
            raise ValueError(f"negative frame length {length}")
        frame = _read_exact(stream, length)
        if frame is None:
            return
        yield frame


def _split_addr(addr: str) -> tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"address {addr!r} has no port")
    host = host.strip("[]") or "127.0.0.1"
    try:
        return host, int(port)
    except ValueError as exc:
        raise ValueError(f"address {addr!r} has an invalid port") from exc


class _Connection:
    """One TCP connection: serialised writes and reads bounded by the read timeout."""

    def __init__(self, sock: socket.socket, addr: str, option: TcpOption) -> None:
        self.sock = sock
        self.addr = addr
        self.remote_address = sock.getpeername()
        self.closed = threading.Event()
        self._read_timeout = option.read_timeout
        self._write_lock = threading.Lock()
        self._close_lock = threading.Lock()

    def read(self, size: int) -> bytes:
        if self._read_timeout and self._read_timeout > 0:
            ready, _, _ = select.select([self.sock], [], [], self._read_timeout)
            if not ready:
                raise TimeoutError("read timeout")
        return self.sock.recv(size)

    def send(self, data: bytes) -> None:
        with self._write_lock:
            self.sock.sendall(data)

    def destroy(self) -> None:
        with self._close_lock:
            if self.closed.is_set():
                return
            self.closed.set()
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.sock.close()


class RemotingClient:
    """Sends commands to servers over shared connections and matches their responses."""

    def __init__(
        self,
        option: TcpOption | None = None,
        codec: CodecType = CodecType.JSON,
        hooks: Iterable[RPCHook] = (),
    ) -> None:
        self.option = option or TcpOption()
        self.codec = codec
        self.hooks = list(hooks)
        self._processors: dict[int, RequestFunc] = {}
        self._responses: dict[int, tuple[ResponseFuture, _Connection]] = {}
        self._responses_lock = threading.Lock()
        self._connections: dict[str, _Connection] = {}
        self._connect_lock = threading.Lock()

    def __enter__(self) -> RemotingClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def register_request_func(self, code: int, func: RequestFunc) -> None:
        """Handle requests with ``code`` sent by a server; a returned command is the reply."""
        self._processors[int(code)] = func

    def invoke_sync(
        self, addr: str, request: RemotingCommand, timeout: float | None = None
    ) -> RemotingCommand:
        """Send ``request`` and block for its response, at most ``timeout`` seconds."""
        conn = self._connect(addr)
        future = ResponseFuture(request.opaque, timeout=timeout)
        self._put_future(future, conn)
        try:
            self._send(conn, addr, request)
            response = future.wait_response()
        finally:
            self._pop_future(request.opaque)
        for hook in self.hooks:
            hook.do_after_response(addr, response)
        return response

    def invoke_async(
        self,
        addr: str,
        request: RemotingCommand,
        callback: AsyncCallback,
        timeout: float | None = None,
    ) -> None:
        """Send ``request`` and return at once; ``callback`` gets the completed future."""
        conn = self._connect(addr)
        future = ResponseFuture(request.opaque, callback=callback, timeout=timeout)
        self._put_future(future, conn)
        try:
            self._send(conn, addr, request)
        except BaseException:
            self._pop_future(request.opaque)
            raise
        threading.Thread(
            target=self._await_async, args=(addr, future), daemon=True
        ).start()

    def invoke_oneway(self, addr: str, request: RemotingCommand) -> None:
        """Send ``request`` without expecting a response."""
        self._send(self._connect(addr), addr, request)

    def shutdown(self) -> None:
        """Fail every pending request and close every connection."""
        with self._responses_lock:
            pending = [future for future, _ in self._responses.values()]
            self._responses.clear()
        for future in pending:
            if not future.done.is_set():
                future.complete(error=ConnectionError("remoting client shut down"))
        with self._connect_lock:
            connections = list(self._connections.values())
            self._connections.clear()
        for conn in connections:
            try:
                conn.destroy()
            except OSError as exc:
                logger.warning("close connection to %s failed: %s", conn.addr, exc)

    def _await_async(self, addr: str, future: ResponseFuture) -> None:
        try:
            response = future.wait_response()
        except Exception as exc:
            logger.debug("async request %d failed: %s", future.opaque, exc)
        else:
            for hook in self.hooks:
                hook.do_after_response(addr, response)
        finally:
            self._pop_future(future.opaque)
        try:
            future.execute_invoke_callback()
        except Exception:
            logger.exception("async callback for request %d failed", future.opaque)

    def _put_future(self, future: ResponseFuture, conn: _Connection) -> None:
        with self._responses_lock:
            self._responses[future.opaque] = (future, conn)

    def _pop_future(self, opaque: int) -> ResponseFuture | None:
        with self._responses_lock:
            entry = self._responses.pop(opaque, None)
        return entry[0] if entry else None

    def _send(self, conn: _Connection, addr: str, request: RemotingCommand) -> None:
        for hook in self.hooks:
            hook.do_before_request(addr, request)
        data = encode(request, self.codec)
        try:
            conn.send(data)
        except OSError as exc:
            logger.error("write to %s failed, closing connection: %s", addr, exc)
            self._close_connection(conn)
            raise

    def _dial(self, addr: str) -> socket.socket:
        host, port = _split_addr(addr)
        sock = socket.create_connection((host, port), timeout=self.option.connection_timeout)
        keep_alive = self.option.keep_alive_duration
        if keep_alive >= 0:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
            if keep_alive > 0 and hasattr(socket, "TCP_KEEPIDLE"):
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, max(1, int(keep_alive)))
        sock.settimeout(self.option.write_timeout)
        return sock

    def _connect(self, addr: str) -> _Connection:
        with self._connect_lock:
            conn = self._connections.get(addr)
            if conn is not None:
                return conn
            conn = _Connection(self._dial(addr), addr, self.option)
            self._connections[addr] = conn
        threading.Thread(
            target=self._receive_loop, args=(conn,), daemon=True, name=f"remoting-{addr}"
        ).start()
        return conn

    def _receive_loop(self, conn: _Connection) -> None:
        try:
            for frame in iter_frames(conn):
                try:
                    command = decode(frame)
                except ValueError as exc:
                    logger.error("decode remoting command failed: %s", exc)
                    continue
                self._process(command, conn)
        except (OSError, ValueError) as exc:
            if not conn.closed.is_set():
                logger.error("connection to %s failed, closing: %s", conn.addr, exc)
        finally:
            self._close_connection(conn)

    def _process(self, command: RemotingCommand, conn: _Connection) -> None:
        if command.is_response_type():
            future = self._pop_future(command.opaque)
            if future is not None:
                future.complete(command)
            return
        func = self._processors.get(command.code)
        if func is None:
            logger.warning("no handler for server request code %d", command.code)
            return
        threading.Thread(
            target=self._handle_request, args=(func, command, conn), daemon=True
        ).start()

    def _handle_request(
        self, func: RequestFunc, command: RemotingCommand, conn: _Connection
    ) -> None:
        try:
            reply = func(command, conn.remote_address)
        except Exception:
            logger.exception("handler for request code %d failed", command.code)
            return
        if reply is None:
            return
        reply.opaque = command.opaque
        reply.flag |= RESPONSE_TYPE
        try:
            conn.send(encode(reply, self.codec))
        except OSError as exc:
            logger.warning("send response code %d failed: %s", reply.code, exc)

    def _close_connection(self, conn: _Connection) -> None:
        with self._connect_lock:
            if self._connections.get(conn.addr) is conn:
                del self._connections[conn.addr]
        conn.destroy()
        with self._responses_lock:
            pending = [f for f, c in self._responses.values() if c is conn]
        for future in pending:
            if not future.done.is_set():
                future.complete(error=ConnectionError(f"connection to {conn.addr} closed"))
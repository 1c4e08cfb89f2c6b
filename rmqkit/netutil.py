"""Local address discovery and address formatting."""

import functools
import ipaddress
import socket
import time
from collections.abc import Iterator

_PROBE_ADDRESS = ("10.254.254.254", 1)


class UnknownIPError(OSError):
    """Raised when no usable non-loopback IPv4 address can be found."""

    def __init__(self) -> None:
        super().__init__("unknown IP address")


def _routed_address() -> str:
    # Connecting a UDP socket sends nothing; it only selects the outgoing interface.
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.connect(_PROBE_ADDRESS)
        return sock.getsockname()[0]


def _candidate_addresses() -> Iterator[str]:
    try:
        yield _routed_address()
    except OSError:
        pass
    try:
        infos = socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET)
    except OSError:
        return
    for info in infos:
        yield info[4][0]


def client_ip4() -> bytes:
    """The first non-loopback IPv4 address of this host, as four bytes."""
    for text in _candidate_addresses():
        try:
            ip = ipaddress.IPv4Address(text)
        except ValueError:
            continue
        if not ip.is_loopback and not ip.is_unspecified:
            return ip.packed
    raise UnknownIPError()


@functools.lru_cache(maxsize=1)
def local_ip() -> str:
    """Dotted form of :func:`client_ip4`, or an empty string when unknown."""
    try:
        return get_address_by_bytes(client_ip4())
    except UnknownIPError:
        return ""


def fake_ip() -> bytes:
    """Four bytes taken from the current millisecond timestamp's decimal digits."""
    return str(time.time_ns() // 1_000_000).encode()[4:8]


def get_address_by_bytes(data: bytes) -> str:
    """Dotted IPv4 form of the first four bytes of ``data``."""
    return str(ipaddress.IPv4Address(bytes(data[:4])))
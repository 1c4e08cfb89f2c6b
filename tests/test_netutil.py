import ipaddress
import socket
from unittest import mock

import pytest

from rmqkit.netutil import UnknownIPError, client_ip4, fake_ip, get_address_by_bytes, local_ip


def _addrinfo(*addresses):
    return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", (a, 0)) for a in addresses]


def test_local_ip_is_empty_or_non_loopback():
    result = local_ip()
    assert result == "" or not ipaddress.IPv4Address(result).is_loopback


def test_client_ip4_falls_back_to_host_addresses():
    with mock.patch("socket.socket", side_effect=OSError("no route")), \
            mock.patch("socket.getaddrinfo", return_value=_addrinfo("127.0.0.1", "192.0.2.10")):
        assert client_ip4() == bytes([192, 0, 2, 10])


def test_client_ip4_only_loopback_raises():
    with mock.patch("socket.socket", side_effect=OSError("no route")), \
            mock.patch("socket.getaddrinfo", return_value=_addrinfo("127.0.0.1")):
        with pytest.raises(UnknownIPError):
            client_ip4()


def test_fake_ip_is_four_digit_bytes():
    data = fake_ip()
    assert len(data) == 4
    assert data.isdigit()


def test_get_address_by_bytes():
    assert get_address_by_bytes(bytes([192, 168, 0, 1])) == "192.168.0.1"


def test_get_address_by_bytes_round_trip():
    packed = ipaddress.IPv4Address("198.51.100.7").packed
    assert get_address_by_bytes(packed) == "198.51.100.7"
import socket
from unittest import mock

import pytest

from hprobe.netutil import ResolveError, open_raw_socket, resolve_addr


def test_dotted_address():
    assert resolve_addr("127.0.0.1") == "127.0.0.1"


def test_short_numeric_form():
    assert resolve_addr("127.1") == "127.0.0.1"


def test_host_name_falls_back_to_lookup():
    with mock.patch("socket.gethostbyname", return_value="10.0.0.5") as lookup:
        assert resolve_addr("host.example.com") == "10.0.0.5"
    lookup.assert_called_once_with("host.example.com")


def test_broadcast_goes_through_lookup():
    with mock.patch("socket.gethostbyname", return_value="255.255.255.255") as lookup:
        assert resolve_addr("255.255.255.255") == "255.255.255.255"
    lookup.assert_called_once()


def test_unresolvable_name():
    with mock.patch("socket.gethostbyname", side_effect=socket.gaierror("no such host")):
        with pytest.raises(ResolveError, match="Unable to resolve 'nowhere.example.com'"):
            resolve_addr("nowhere.example.com")


def test_open_raw_socket_arguments():
    sentinel = object()
    with mock.patch("socket.socket", return_value=sentinel) as factory:
        assert open_raw_socket() is sentinel
    factory.assert_called_once_with(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_RAW)


def test_open_raw_socket_failure_propagates():
    with mock.patch("socket.socket", side_effect=PermissionError("denied")):
        with pytest.raises(PermissionError):
            open_raw_socket()
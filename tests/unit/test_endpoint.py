"""
Unit tests for the IPv4 endpoint value type.
"""

import socket

import pytest

from minihttpd.core.exceptions import InvalidAddress
from minihttpd.core.lib.endpoint import LOCALHOST, Endpoint


class TestEndpoint:
    """Tests for Endpoint construction and accessors."""

    def test_round_trip(self):
        endpoint = Endpoint("127.0.0.1", 8080)

        assert endpoint.ip == "127.0.0.1"
        assert endpoint.port == 8080

    def test_default_is_any_address(self):
        endpoint = Endpoint()

        assert endpoint.ip == "0.0.0.0"
        assert endpoint.port == 0
        assert endpoint.ip_value == 0
        assert endpoint.family == socket.AF_INET

    def test_numeric_value_is_host_order(self):
        assert Endpoint("127.0.0.1", 80).ip_value == 0x7F000001
        assert Endpoint("10.0.0.255", 80).ip_value == 0x0A0000FF

    def test_string_form(self):
        assert str(Endpoint("192.168.1.10", 1701)) == "192.168.1.10:1701"

    def test_sockaddr(self):
        assert Endpoint("127.0.0.1", 9000).sockaddr == ("127.0.0.1", 9000)

    def test_localhost(self):
        endpoint = Endpoint.localhost(1701)

        assert endpoint.ip == LOCALHOST
        assert endpoint.port == 1701

    def test_from_sockaddr(self):
        assert Endpoint.from_sockaddr(("10.1.2.3", 5555)) == Endpoint("10.1.2.3", 5555)

    @pytest.mark.parametrize("address", ["999.1.1.1", "abc", "", "1.2.3", "1.2.3.4.5", "::1"])
    def test_malformed_address_rejected(self, address):
        with pytest.raises(InvalidAddress):
            Endpoint(address, 80)

    def test_non_string_address_rejected(self):
        with pytest.raises(InvalidAddress):
            Endpoint(None, 80)

    @pytest.mark.parametrize("port", [-1, 65536, 1.5])
    def test_invalid_port_rejected(self, port):
        with pytest.raises(InvalidAddress):
            Endpoint("127.0.0.1", port)


class TestEndpointEquality:
    """Tests for equality, hashing and ordering."""

    def test_equal_when_address_and_port_match(self):
        assert Endpoint("127.0.0.1", 80) == Endpoint("127.0.0.1", 80)

    def test_port_participates_in_equality(self):
        assert Endpoint("127.0.0.1", 80) != Endpoint("127.0.0.1", 81)

    def test_address_participates_in_equality(self):
        assert Endpoint("127.0.0.1", 80) != Endpoint("127.0.0.2", 80)

    def test_not_equal_to_other_types(self):
        assert Endpoint("127.0.0.1", 80) != ("127.0.0.1", 80)

    def test_hashable(self):
        endpoints = {Endpoint("127.0.0.1", 80), Endpoint("127.0.0.1", 80)}

        assert len(endpoints) == 1

    def test_ordering(self):
        assert Endpoint("10.0.0.1", 90) < Endpoint("10.0.0.2", 80)
        assert Endpoint("10.0.0.1", 80) < Endpoint("10.0.0.1", 81)

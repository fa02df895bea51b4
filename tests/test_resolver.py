"""Tests for nbc.resolver — candidate endpoint expansion."""

import pytest

from nbc.resolver import candidate_endpoints, neighbor_url


class TestCandidateEndpoints:
    """Bare and default-port forms, deduplicated."""

    def test_bare_host_gets_default_port_form(self) -> None:
        assert candidate_endpoints("1.2.3.4") == ["1.2.3.4", "1.2.3.4:20443"]

    def test_hostname(self) -> None:
        assert candidate_endpoints("xenon.blockstack.org", 20443) == [
            "xenon.blockstack.org",
            "xenon.blockstack.org:20443",
        ]

    @pytest.mark.parametrize("address", ["1.2.3.4:20443", "1.2.3.4:8080"])
    def test_address_with_port_collapses(self, address: str) -> None:
        assert candidate_endpoints(address) == [address]

    def test_custom_port(self) -> None:
        assert candidate_endpoints("1.2.3.4", 9000)[1] == "1.2.3.4:9000"

    def test_ipv6_literal_is_bracketed(self) -> None:
        assert candidate_endpoints("2001:db8::1") == [
            "[2001:db8::1]",
            "[2001:db8::1]:20443",
        ]

    def test_bracketed_ipv6_with_port(self) -> None:
        assert candidate_endpoints("[2001:db8::1]:20443") == ["[2001:db8::1]:20443"]


class TestNeighborUrl:
    def test_builds_neighbors_path(self) -> None:
        assert neighbor_url("1.2.3.4:20443") == "http://1.2.3.4:20443/v2/neighbors"

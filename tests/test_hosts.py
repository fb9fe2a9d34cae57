"""Tests for host normalization."""

import pytest

from runfile.hosts import normalize_host, normalize_hosts, split_address


class TestNormalizeHost:
    """Port suffix handling."""

    def test_appends_configured_port(self) -> None:
        assert normalize_host("example.com", "2222") == "example.com:2222"

    def test_keeps_existing_port(self) -> None:
        assert normalize_host("example.com:2022", "2222") == "example.com:2022"

    def test_default_port(self) -> None:
        assert normalize_host("example.com") == "example.com:22"

    @pytest.mark.parametrize("port", ["", None])
    def test_empty_port_means_22(self, port) -> None:
        assert normalize_host("10.0.0.1", port) == "10.0.0.1:22"

    def test_integer_port(self) -> None:
        assert normalize_host("db1", 2200) == "db1:2200"

    def test_normalize_hosts_keeps_order(self) -> None:
        assert normalize_hosts(["b", "a:23", "c"], "22") == ["b:22", "a:23", "c:22"]


class TestSplitAddress:
    """Splitting host:port for the transport."""

    def test_split(self) -> None:
        assert split_address("example.com:2222") == ("example.com", 2222)

    def test_no_port(self) -> None:
        assert split_address("example.com") == ("example.com", 22)

    def test_empty_port(self) -> None:
        assert split_address("example.com:") == ("example.com", 22)

    @pytest.mark.parametrize("address", ["web1:99999", "web1:0"])
    def test_port_out_of_range(self, address) -> None:
        with pytest.raises(ValueError, match="out of range"):
            split_address(address)

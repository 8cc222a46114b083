"""Tests for recordgate.core.cidr: IPv4 / CIDR arithmetic."""
import pytest

from recordgate.core.cidr import cidr_to_range, int_to_ip, ip_in_cidr, ip_to_int, is_ipv4


class TestIpToInt:
    """Dotted-quad to integer conversion."""

    def test_zero(self):
        assert ip_to_int("0.0.0.0") == 0

    def test_max(self):
        assert ip_to_int("255.255.255.255") == 0xFFFFFFFF

    def test_big_endian(self):
        assert ip_to_int("192.168.1.1") == 3232235777
        assert ip_to_int("10.0.0.1") == 167772161

    @pytest.mark.parametrize("bad", [
        "256.0.0.1",
        "1.2.3",
        "1.2.3.4.5",
        "a.b.c.d",
        "1.2.3.-4",
        "",
        "1..2.3",
        " 1.2.3.4",
    ])
    def test_malformed(self, bad):
        with pytest.raises(ValueError):
            ip_to_int(bad)

    def test_not_a_string(self):
        with pytest.raises(ValueError):
            ip_to_int(12345)


class TestIntToIp:
    """Integer to dotted-quad conversion."""

    def test_known_values(self):
        assert int_to_ip(0) == "0.0.0.0"
        assert int_to_ip(3232235777) == "192.168.1.1"
        assert int_to_ip(0xFFFFFFFF) == "255.255.255.255"

    @pytest.mark.parametrize("ip", ["0.0.0.0", "8.8.4.4", "172.16.254.3", "255.255.255.255"])
    def test_inverse_of_ip_to_int(self, ip):
        assert int_to_ip(ip_to_int(ip)) == ip

    @pytest.mark.parametrize("bad", [-1, 0x100000000, True, "1"])
    def test_out_of_range(self, bad):
        with pytest.raises(ValueError):
            int_to_ip(bad)


class TestCidrToRange:
    """CIDR block bounds."""

    def test_slash_24(self):
        assert cidr_to_range("192.168.1.0/24") == ("192.168.1.0", "192.168.1.255")

    def test_base_not_aligned(self):
        assert cidr_to_range("192.168.1.77/24") == ("192.168.1.0", "192.168.1.255")

    def test_slash_32(self):
        assert cidr_to_range("10.0.0.5/32") == ("10.0.0.5", "10.0.0.5")

    def test_slash_0(self):
        assert cidr_to_range("1.2.3.4/0") == ("0.0.0.0", "255.255.255.255")

    def test_slash_31(self):
        assert cidr_to_range("10.0.0.7/31") == ("10.0.0.6", "10.0.0.7")

    @pytest.mark.parametrize("bad", [
        "192.168.1.0",
        "192.168.1.0/33",
        "192.168.1.0/-1",
        "192.168.1.0/abc",
        "192.168.1.0/",
        "300.1.1.1/24",
        "10.0.0.0/8/8",
    ])
    def test_malformed(self, bad):
        with pytest.raises(ValueError):
            cidr_to_range(bad)


class TestIpInCidr:
    """CIDR membership."""

    def test_inside(self):
        assert ip_in_cidr("192.168.1.42", "192.168.1.0/24")

    def test_bounds_inclusive(self):
        assert ip_in_cidr("192.168.1.0", "192.168.1.0/24")
        assert ip_in_cidr("192.168.1.255", "192.168.1.0/24")

    def test_outside(self):
        assert not ip_in_cidr("192.168.2.1", "192.168.1.0/24")

    def test_single_host(self):
        assert ip_in_cidr("10.0.0.5", "10.0.0.5/32")
        assert not ip_in_cidr("10.0.0.6", "10.0.0.5/32")

    def test_everything_in_slash_0(self):
        assert ip_in_cidr("203.0.113.9", "0.0.0.0/0")

    def test_malformed_ip(self):
        with pytest.raises(ValueError):
            ip_in_cidr("not-an-ip", "10.0.0.0/8")


class TestIsIpv4:

    def test_values(self):
        assert is_ipv4("127.0.0.1")
        assert not is_ipv4("::1")
        assert not is_ipv4("")
        assert not is_ipv4(None)

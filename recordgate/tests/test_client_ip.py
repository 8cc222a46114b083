"""Tests for recordgate.core.client_ip: trusted proxy resolution."""
from starlette.requests import Request

from recordgate.core.client_ip import ClientIPResolver


def make_request(headers=None, client=("9.9.9.9", 4321)):
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    scope = {"type": "http", "method": "POST", "path": "/", "headers": raw_headers}
    if client is not None:
        scope["client"] = client
    return Request(scope)


class TestClientIPResolver:

    def test_peer_address_without_trusted_headers(self):
        request = make_request({"X-Forwarded-For": "1.1.1.1"})
        assert ClientIPResolver().resolve(request) == "9.9.9.9"

    def test_rightmost_by_default(self):
        resolver = ClientIPResolver(["X-Forwarded-For"])
        request = make_request({"X-Forwarded-For": "1.1.1.1, 2.2.2.2, 3.3.3.3"})
        assert resolver.resolve(request) == "3.3.3.3"

    def test_leftmost_when_configured(self):
        resolver = ClientIPResolver(["X-Forwarded-For"], use_leftmost_ip=True)
        request = make_request({"X-Forwarded-For": "1.1.1.1, 2.2.2.2, 3.3.3.3"})
        assert resolver.resolve(request) == "1.1.1.1"

    def test_header_order(self):
        resolver = ClientIPResolver(["CF-Connecting-IP", "X-Real-IP"])
        request = make_request({"X-Real-IP": "4.4.4.4", "CF-Connecting-IP": "5.5.5.5"})
        assert resolver.resolve(request) == "5.5.5.5"

    def test_invalid_header_value_is_skipped(self):
        resolver = ClientIPResolver(["X-Forwarded-For", "X-Real-IP"])
        request = make_request({"X-Forwarded-For": "not-an-ip", "X-Real-IP": "4.4.4.4"})
        assert resolver.resolve(request) == "4.4.4.4"

    def test_falls_back_to_peer(self):
        resolver = ClientIPResolver(["X-Real-IP"])
        request = make_request({"X-Real-IP": "garbage"})
        assert resolver.resolve(request) == "9.9.9.9"

    def test_ipv6_header_value(self):
        resolver = ClientIPResolver(["X-Real-IP"])
        assert resolver.resolve(make_request({"X-Real-IP": "2001:db8::1"})) == "2001:db8::1"

    def test_no_peer(self):
        assert ClientIPResolver().resolve(make_request(client=None)) == ""

    def test_blank_header_names_ignored(self):
        resolver = ClientIPResolver([" X-Real-IP ", "", "  "])
        assert resolver.trusted_headers == ["x-real-ip"]

"""Trusted-proxy aware client address resolution.

Without trusted headers the transport peer address is the client. With
trusted headers configured (e.g. ``X-Forwarded-For``, ``X-Real-IP``),
each header is checked in order and the first value that parses as an
IP address wins. Only configure headers your reverse proxy overwrites,
otherwise callers can choose their own address.
"""
import ipaddress
import logging
from typing import List, Optional

from starlette.requests import Request

from recordgate.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class ClientIPResolver:
    """Resolve the originating client IP of a request."""

    def __init__(self, trusted_headers: Optional[List[str]] = None, use_leftmost_ip: bool = False):
        self.trusted_headers = [h.strip().lower() for h in (trusted_headers or []) if h.strip()]
        self.use_leftmost_ip = use_leftmost_ip

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ClientIPResolver":
        settings = settings or get_settings()
        return cls(
            trusted_headers=settings.trusted_proxy_headers,
            use_leftmost_ip=settings.trusted_proxy_use_leftmost,
        )

    def _pick(self, header_value: str) -> str:
        # X-Forwarded-For: client, proxy1, proxy2
        parts = [p.strip() for p in header_value.split(",") if p.strip()]
        if not parts:
            return ""
        return parts[0] if self.use_leftmost_ip else parts[-1]

    def resolve(self, request: Request) -> str:
        """Return the caller's address, or an empty string if unknown."""
        for header in self.trusted_headers:
            raw = request.headers.get(header)
            if not raw:
                continue
            candidate = self._pick(raw)
            try:
                ipaddress.ip_address(candidate)
            except ValueError:
                logger.warning("Invalid IP in trusted header %s: %s", header, candidate)
                continue
            return candidate

        return request.client.host if request.client else ""

"""Core module for recordgate."""
from recordgate.core.config import get_settings, Settings
from recordgate.core.cidr import ip_to_int, int_to_ip, cidr_to_range, ip_in_cidr
from recordgate.core.safe_call import Outcome, safe_call, safe_await
from recordgate.core.security import TokenIssuer, create_superuser_token, decode_token

__all__ = [
    "get_settings",
    "Settings",
    "ip_to_int",
    "int_to_ip",
    "cidr_to_range",
    "ip_in_cidr",
    "Outcome",
    "safe_call",
    "safe_await",
    "TokenIssuer",
    "create_superuser_token",
    "decode_token",
]

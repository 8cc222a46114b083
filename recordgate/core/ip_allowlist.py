"""Per-record IP allow-list evaluation.

An allow-list is a JSON array of strings stored on the record. Each
entry is either a bare address (compared as an exact string) or an
IPv4 CIDR block (contains "/"). A malformed entry fails the whole
check instead of being skipped.
"""
import json
from typing import Any, List

from recordgate.core.cidr import cidr_to_range, ip_in_cidr, is_ipv4


class InvalidAllowListError(ValueError):
    """Raised when an allow-list value or one of its entries is malformed."""


def decode_allow_list(raw: Any) -> List[Any]:
    """Decode the stored allow-list value into a list.

    A native list is returned as-is; a string is parsed as JSON and must
    hold an array. Entries are not type-checked here.
    """
    value = raw
    if isinstance(raw, (str, bytes)):
        try:
            value = json.loads(raw)
        except ValueError as e:
            raise InvalidAllowListError(f"IP list is not valid JSON: {e}") from e

    if not isinstance(value, list):
        raise InvalidAllowListError(f"IP list must be an array, got {type(value).__name__}")
    return value


def is_ip_allowed(client_ip: str, entries: List[Any]) -> bool:
    """Check if client_ip matches an entry of the allow-list.

    Entries are evaluated in order and the first match wins. An IPv6
    client never matches a CIDR entry, only an exact one.

    Raises:
        InvalidAllowListError: on a non-string entry or a malformed CIDR
            block reached before any match.
    """
    client_is_v4 = is_ipv4(client_ip)

    for entry in entries:
        if not isinstance(entry, str):
            raise InvalidAllowListError(f"Invalid IP address on the record: {entry!r}")

        if "/" in entry:
            try:
                cidr_to_range(entry)
            except ValueError as e:
                raise InvalidAllowListError(f"Invalid CIDR block on the record: {entry!r}") from e
            if client_is_v4 and ip_in_cidr(client_ip, entry):
                return True
        elif entry == client_ip:
            return True

    return False

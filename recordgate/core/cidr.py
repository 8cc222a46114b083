"""IPv4 / CIDR arithmetic.

Addresses are handled as big-endian 32-bit unsigned integers so that a
CIDR block reduces to an inclusive integer range.
"""
from typing import Tuple

_MAX_U32 = 0xFFFFFFFF


def ip_to_int(ip: str) -> int:
    """Convert a dotted-quad IPv4 address ("x.x.x.x") to an integer.

    Raises:
        ValueError: if ``ip`` is not four decimal octets in 0-255.
    """
    if not isinstance(ip, str):
        raise ValueError(f"IPv4 address must be a string, got {type(ip).__name__}")

    octets = ip.split(".")
    if len(octets) != 4:
        raise ValueError(f"Invalid IPv4 address: {ip!r}")

    value = 0
    for octet in octets:
        if not octet.isdigit() or not octet.isascii():
            raise ValueError(f"Invalid IPv4 address: {ip!r}")
        number = int(octet, 10)
        if number > 255:
            raise ValueError(f"Invalid IPv4 address: {ip!r}")
        value = (value << 8) | number
    return value


def int_to_ip(value: int) -> str:
    """Convert an integer to a dotted-quad IPv4 address."""
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= _MAX_U32:
        raise ValueError(f"IPv4 integer out of range: {value!r}")
    return ".".join(str((value >> shift) & 0xFF) for shift in (24, 16, 8, 0))


def _parse_cidr(cidr: str) -> Tuple[int, int]:
    if not isinstance(cidr, str) or cidr.count("/") != 1:
        raise ValueError(f"Invalid CIDR block: {cidr!r}")
    ip, bits = cidr.split("/")
    if not bits.isdigit() or not bits.isascii():
        raise ValueError(f"Invalid CIDR prefix: {cidr!r}")
    prefix = int(bits, 10)
    if prefix > 32:
        raise ValueError(f"Invalid CIDR prefix: {cidr!r}")
    return ip_to_int(ip), prefix


def _network_bounds(cidr: str) -> Tuple[int, int]:
    ip_int, prefix = _parse_cidr(cidr)
    mask = ~(2 ** (32 - prefix) - 1) & _MAX_U32
    network = ip_int & mask
    broadcast = network | (~mask & _MAX_U32)
    return network, broadcast


def cidr_to_range(cidr: str) -> Tuple[str, str]:
    """Get the first and last address of a CIDR block.

    >>> cidr_to_range("192.168.1.0/24")
    ('192.168.1.0', '192.168.1.255')
    """
    network, broadcast = _network_bounds(cidr)
    return int_to_ip(network), int_to_ip(broadcast)


def ip_in_cidr(ip: str, cidr: str) -> bool:
    """Check if an IPv4 address lies inside a CIDR block (inclusive)."""
    ip_int = ip_to_int(ip)
    network, broadcast = _network_bounds(cidr)
    return network <= ip_int <= broadcast


def is_ipv4(value) -> bool:
    """True if ``value`` is a well-formed dotted-quad address."""
    try:
        ip_to_int(value)
    except ValueError:
        return False
    return True

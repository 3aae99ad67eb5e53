import string
from typing import Union

HEX_PREFIX = "0x"
_HEX_DIGITS = frozenset(string.hexdigits)


def strip_hex_prefix(value: str) -> str:
    """Remove a leading 0x if present"""
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def add_hex_prefix(value: str) -> str:
    """Ensure exactly one leading 0x"""
    return HEX_PREFIX + strip_hex_prefix(value)


def is_hex_string(value: str) -> bool:
    """True for prefix-optional, even-length strings of hex digits"""
    if not isinstance(value, str):
        return False
    digits = strip_hex_prefix(value)
    return len(digits) % 2 == 0 and all(c in _HEX_DIGITS for c in digits)


def hex_to_int(value: Union[str, int]) -> int:
    """Convert hexadecimal or decimal string to integer"""
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value[:2] in ("0x", "0X"):
        return int(value, 16)
    return int(value)


def to_hex(value: Union[bytes, str]) -> str:
    """Render bytes (or HexBytes) as a 0x-prefixed hex string"""
    if isinstance(value, (bytes, bytearray)):
        return HEX_PREFIX + bytes(value).hex()
    return add_hex_prefix(value)


def format_wei(value: int, unit: str = "gwei") -> str:
    """Format a wei amount in gwei or ether for display"""
    if value is None:
        return "n/a"
    divisor = 10**9 if unit == "gwei" else 10**18
    return f"{value / divisor:.9g} {unit}"

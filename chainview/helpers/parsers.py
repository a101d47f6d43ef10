"""Parsing utilities for the numeric encodings returned by provider APIs."""

from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
import math
import time

from typing import Any

from chainview.helpers.constants import WEI_PER_ETH
from chainview.helpers.logging import get_logger


logger = get_logger(__name__)

_FORMATTING_CHARACTERS = ("$", ",", " ")


def normalize_decimal(value: Any) -> Decimal | None:
    """Parse a JSON scalar that may be a number or a formatted string.

    Market APIs return prices as numbers, scientific notation or strings such
    as ``"$39,362,461"``. Missing values stay ``None`` so callers can tell
    "unknown" from zero.

    Args:
        value: Decoded JSON value (number, string or None)

    Returns:
        Decimal | None: Parsed value, or None when absent or unparseable

    Example:
        >>> normalize_decimal("$1,234.50")
        Decimal('1234.50')
        >>> normalize_decimal(39362461.0)
        Decimal('39362461.0')
        >>> normalize_decimal("null") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int | float):
        if isinstance(value, float) and not math.isfinite(value):
            logger.warning("Ignoring non-finite number: %r", value)
            return None
        # Built from the double, matching what the upstream API displays
        return Decimal(str(float(value)))

    if not isinstance(value, str):
        return None

    cleaned = value
    for char in _FORMATTING_CHARACTERS:
        cleaned = cleaned.replace(char, "")
    cleaned = cleaned.strip()

    if not cleaned or cleaned == "null":
        return None

    try:
        parsed = Decimal(cleaned)
    except InvalidOperation:
        logger.warning("Error parsing number: %r", value)
        return None

    if not parsed.is_finite():
        logger.warning("Ignoring non-finite number: %r", value)
        return None

    return parsed


def parse_hex_int(hex_value: Any) -> int | None:
    """Parse a ``0x``-prefixed hex string to an unsigned integer.

    Args:
        hex_value: Hex-encoded string or None

    Returns:
        int | None: Parsed integer, or None if absent or malformed

    Example:
        >>> parse_hex_int("0x3039")
        12345
        >>> parse_hex_int("0xzz") is None
        True
    """
    if not isinstance(hex_value, str):
        return None

    text = hex_value.strip()
    if not text.lower().startswith("0x") or len(text) <= 2:
        return None

    digits = text[2:]
    # int() would also accept a sign or underscores
    if not all(c in "0123456789abcdefABCDEF" for c in digits):
        return None

    return int(digits, 16)


def parse_hex_decimal(hex_value: Any) -> Decimal | None:
    """Parse a hex quantity (gas, wei value) to an exact Decimal.

    Args:
        hex_value: Hex-encoded string or None

    Returns:
        Decimal | None: Exact decimal value, or None if absent or malformed
    """
    parsed = parse_hex_int(hex_value)
    return Decimal(parsed) if parsed is not None else None


def parse_decimal_str(value: Any) -> Decimal | None:
    """Parse a provider-native base-10 string such as ``"1000000000000000000"``.

    Args:
        value: Decimal string or None

    Returns:
        Decimal | None: Parsed value, or None if absent or malformed
    """
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = Decimal(value.strip())
    except InvalidOperation:
        logger.debug("Invalid decimal string: %r", value)
        return None
    return parsed if parsed.is_finite() else None


def parse_int_str(value: Any) -> int | None:
    """Parse a provider-native base-10 integer string such as ``"18500000"``.

    Args:
        value: Integer string or None

    Returns:
        int | None: Parsed integer, or None if absent or malformed
    """
    if not isinstance(value, str) or not value.strip().isdigit():
        return None
    return int(value.strip())


def parse_optional_int(value: Any) -> int | None:
    """Parse a JSON integer that may arrive as a float or a string.

    Args:
        value: JSON number, numeric string or None

    Returns:
        int | None: Parsed integer, or None if absent or not integral
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        return parse_int_str(value)
    return None


def wei_to_eth(wei: Decimal | None) -> Decimal | None:
    """Convert Wei to ETH (divide by 1e18) without losing precision.

    Args:
        wei: Amount in Wei, or None

    Returns:
        Decimal | None: Amount in ETH, or None if input was None

    Example:
        >>> wei_to_eth(Decimal("1000000000000000000"))
        Decimal('1')
    """
    return wei / WEI_PER_ETH if wei is not None else None


def timestamp_to_datetime(timestamp: int | None) -> datetime | None:
    """Convert a unix timestamp in seconds to an aware UTC datetime."""
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=UTC)


def format_relative_time(timestamp: int | None, now: float | None = None) -> str:
    """Format a unix timestamp as a relative label such as ``"5 minutes ago"``.

    Args:
        timestamp: Unix timestamp in seconds, or None
        now: Reference time in seconds (defaults to the current time)

    Returns:
        str: Relative label, or "N/A" without a timestamp
    """
    if timestamp is None:
        return "N/A"

    diff = int((time.time() if now is None else now) - timestamp)

    if diff < 60:
        return "Just now"
    if diff < 3600:
        minutes = diff // 60
        return f"{minutes} minute ago" if minutes == 1 else f"{minutes} minutes ago"
    if diff < 86400:
        hours = diff // 3600
        return f"{hours} hour ago" if hours == 1 else f"{hours} hours ago"
    days = diff // 86400
    return f"{days} day ago" if days == 1 else f"{days} days ago"


__all__ = [
    "format_relative_time",
    "normalize_decimal",
    "parse_decimal_str",
    "parse_hex_decimal",
    "parse_hex_int",
    "parse_int_str",
    "parse_optional_int",
    "timestamp_to_datetime",
    "wei_to_eth",
]

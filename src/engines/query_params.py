"""Parsing of client-supplied query parameters."""

import re


_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_leading_int(value: str | None) -> int | None:
    """Read the integer at the start of a string.

    Trailing garbage is ignored, so "12abc" gives 12 and "3.9" gives 3.
    Returns None when the string does not start with a number.
    """
    if value is None:
        return None
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def clamp_int(value: str | None, default: int, minimum: int, maximum: int) -> int:
    """Parse an integer parameter, falling back to default, clamped to a range.

    Example:
        >>> clamp_int("0", 21, 1, 60)
        1
        >>> clamp_int("9999", 21, 1, 60)
        60
        >>> clamp_int("soon", 21, 1, 60)
        21
    """
    parsed = parse_leading_int(value)
    if parsed is None:
        parsed = default
    return max(minimum, min(maximum, parsed))

"""Value formatting helpers shared by every report.

Functions
---------
format_bytes
    Render a byte count with binary (1024-based) magnitude suffixes.
format_sample_value
    Render a sample value according to its unit (durations, counts, other).
format_percent
    Share of ``value`` in ``total`` as a percentage (0.0 for a zero total).
"""

from __future__ import annotations

_BYTE_UNIT = 1024
_BYTE_SUFFIXES = "KMGTPE"

_NS_PER_US = 1_000
_NS_PER_MS = 1_000_000
_NS_PER_S = 1_000_000_000


def format_bytes(num_bytes: int) -> str:
    """Return a human readable byte size.

    Examples
    --------
    >>> format_bytes(512)
    '512 B'
    >>> format_bytes(1536)
    '1.50 KB'
    >>> format_bytes(1024 ** 2)
    '1.00 MB'
    """

    b = int(num_bytes)
    if b < _BYTE_UNIT:
        return f"{b} B"
    div, exp = _BYTE_UNIT, 0
    n = b // _BYTE_UNIT
    while n >= _BYTE_UNIT:
        div *= _BYTE_UNIT
        exp += 1
        n //= _BYTE_UNIT
    return f"{b / div:.2f} {_BYTE_SUFFIXES[exp]}B"


def format_sample_value(value: int, unit: str) -> str:
    """Return a human readable sample value for ``unit``.

    Nanosecond values pick the largest unit that keeps the number at or above
    one. Milliseconds and microseconds are whole units rendered with two
    decimals; seconds keep their fraction.

    Examples
    --------
    >>> format_sample_value(999, "nanoseconds")
    '999ns'
    >>> format_sample_value(1_500, "nanoseconds")
    '1.00us'
    >>> format_sample_value(2_500_000_000, "nanoseconds")
    '2.50s'
    >>> format_sample_value(42, "count")
    '42'
    """

    v = int(value)
    if unit == "nanoseconds":
        if v >= _NS_PER_S:
            return f"{v / _NS_PER_S:.2f}s"
        if v >= _NS_PER_MS:
            return f"{float(v // _NS_PER_MS):.2f}ms"
        if v >= _NS_PER_US:
            return f"{float(v // _NS_PER_US):.2f}us"
        return f"{v}ns"
    if unit == "count":
        return f"{v}"
    return f"{v} {unit}"


def format_value(value: int, unit: str) -> str:
    """Format ``value`` as bytes when ``unit`` is ``bytes``, else by unit."""

    if unit == "bytes":
        return format_bytes(value)
    return format_sample_value(value, unit)


def format_percent(value: int, total: int) -> float:
    """Return ``value`` as a percentage of ``total`` (0.0 when total is 0)."""

    if total == 0:
        return 0.0
    return (float(value) / float(total)) * 100.0

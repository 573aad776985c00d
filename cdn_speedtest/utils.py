"""Utility functions for speedtest calculations"""

import re
from typing import Iterable, Optional, Union

BITS_PER_MEGABIT = 1_000_000
BYTES_PER_MEGABYTE = 1_048_576

_SIZE_RE = re.compile(r'^\s*(\d+)\s*(?:mb)?\s*$', re.IGNORECASE)


def mean(values: Iterable[float]) -> Optional[float]:
    """
    Arithmetic mean of the values.

    Returns:
        The mean, or None for an empty input (never divides by zero)
    """
    values = list(values)
    if not values:
        return None
    return sum(values) / len(values)


def to_mbps(total_bytes: int, seconds: float) -> float:
    """Throughput in megabits per second (decimal)."""
    return total_bytes * 8 / seconds / BITS_PER_MEGABIT


def to_MBps(total_bytes: int, seconds: float) -> float:
    """Throughput in megabytes per second (binary, 1 MB = 1,048,576 bytes)."""
    return total_bytes / seconds / BYTES_PER_MEGABYTE


def parse_size(value: Union[int, str]) -> int:
    """
    Parse a nominal file size given as ``100``, ``"100"`` or ``"100MB"``.

    Raises:
        ValueError: if the value is not a whole number of megabytes
    """
    if isinstance(value, int):
        return value
    match = _SIZE_RE.match(value)
    if not match:
        raise ValueError(f"Invalid size {value!r} (expected e.g. 10 or 10MB)")
    return int(match.group(1))

"""Helper utilities for Redis Inspect."""

import math
import re
from datetime import timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Union

from ..models import DurationError

# Unit sizes in nanoseconds, following the Go duration grammar
_DURATION_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

# Largest span an int64 nanosecond count holds, about 292 years
_MAX_DURATION_NS = (1 << 63) - 1

_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)([^\d.]*)")


def to_text(value: Union[bytes, str, None]) -> str:
    """Decode a reply from Redis without losing undecodable bytes.

    Bytes that are not valid UTF-8 are kept as lone surrogates, which
    :func:`to_bytes` turns back into the same bytes.
    """
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="surrogateescape")
    return str(value)


def to_bytes(value: Union[bytes, str]) -> bytes:
    """Encode text produced by :func:`to_text` back into the original bytes."""
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8", errors="surrogateescape")


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"300ms"``, ``"1.5h"`` or ``"2h45m"``.

    Args:
        text: Signed sequence of decimal numbers, each with a unit suffix
              (ns, us, ms, s, m, h). A bare ``"0"`` is accepted.

    Returns:
        The parsed duration

    Raises:
        DurationError: If the text does not follow the grammar
    """
    original = text
    negative = False
    if text[:1] in ("-", "+"):
        negative = text[0] == "-"
        text = text[1:]

    if text == "0":
        return timedelta(0)
    if not text:
        raise DurationError(f'time: invalid duration "{original}"')

    total_ns = Decimal(0)
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise DurationError(f'time: invalid duration "{original}"')
        number, unit = match.groups()
        if not unit:
            raise DurationError(f'time: missing unit in duration "{original}"')
        if unit not in _DURATION_UNITS:
            raise DurationError(f'time: unknown unit "{unit}" in duration "{original}"')
        total_ns += Decimal(number) * _DURATION_UNITS[unit]
        pos = match.end()

    if total_ns > _MAX_DURATION_NS + (1 if negative else 0):
        raise DurationError(f'time: invalid duration "{original}"')

    duration = timedelta(microseconds=int(total_ns) / 1000)
    return -duration if negative else duration


def format_ttl(seconds: int) -> str:
    """Format a TTL reply in seconds as a duration string.

    ``-1`` (no expiry) becomes ``"-1s"`` and ``-2`` (missing key) ``"-2s"``;
    positive values read like ``"1h0m0s"`` or ``"1m30s"``.
    """
    if seconds == 0:
        return "0s"

    sign = "-" if seconds < 0 else ""
    hours, remainder = divmod(abs(int(seconds)), 3600)
    minutes, secs = divmod(remainder, 60)

    if hours:
        return f"{sign}{hours}h{minutes}m{secs}s"
    elif minutes:
        return f"{sign}{minutes}m{secs}s"
    return f"{sign}{secs}s"


def format_score(score: float) -> str:
    """Format a sorted-set score with the fewest digits that round-trip.

    Never uses exponent notation: ``1.0`` is ``"1"`` and ``1e16`` is
    ``"10000000000000000"``.
    """
    if math.isnan(score):
        return "NaN"
    if math.isinf(score):
        return "+Inf" if score > 0 else "-Inf"

    text = format(Decimal(repr(float(score))), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_bytes(bytes_size: int) -> str:
    """Format bytes into human readable format.

    Args:
        bytes_size: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB")
    """
    if bytes_size == 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB", "PB"]
    size = float(bytes_size)
    i = 0

    while size >= 1024.0 and i < len(size_names) - 1:
        size /= 1024.0
        i += 1

    return f"{size:.1f} {size_names[i]}"


def safe_json_serialize(obj: Any) -> Any:
    """Safely serialize objects to JSON-compatible format.

    Args:
        obj: Object to serialize

    Returns:
        JSON-compatible object
    """
    if obj is None:
        return None
    elif isinstance(obj, Enum):
        return obj.value
    elif isinstance(obj, (bool, int, float, str)):
        return obj
    elif isinstance(obj, bytes):
        return to_text(obj)
    elif isinstance(obj, (list, tuple)):
        return [safe_json_serialize(item) for item in obj]
    elif isinstance(obj, dict):
        return {to_text(k) if isinstance(k, bytes) else str(k): safe_json_serialize(v)
                for k, v in obj.items()}
    elif isinstance(obj, (set, frozenset)):
        return [safe_json_serialize(item) for item in obj]
    elif hasattr(obj, '__dict__'):
        return safe_json_serialize(obj.__dict__)
    else:
        return str(obj)

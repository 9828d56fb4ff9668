"""Utility functions for Redis Inspect."""

from .helpers import (
    format_bytes,
    format_score,
    format_ttl,
    parse_duration,
    safe_json_serialize,
    to_bytes,
    to_text,
)

__all__ = [
    "format_bytes",
    "format_score",
    "format_ttl",
    "parse_duration",
    "safe_json_serialize",
    "to_bytes",
    "to_text",
]

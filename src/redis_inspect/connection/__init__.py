"""Redis connection management."""

from .manager import RedisConnectionManager

__all__ = ["RedisConnectionManager"]

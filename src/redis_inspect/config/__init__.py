"""Configuration for Redis Inspect."""

from .settings import RedisSettings, RedisMode

__all__ = ["RedisSettings", "RedisMode"]

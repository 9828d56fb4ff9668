"""Redis Inspect: browse, export and import Redis keys of every value type."""

__version__ = "0.1.0"

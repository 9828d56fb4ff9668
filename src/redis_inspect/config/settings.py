"""Settings and configuration management for Redis Inspect."""

from enum import Enum
from typing import Optional, List, Union, Dict
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class RedisMode(str, Enum):
    """Redis connection mode."""
    SINGLE = "single"
    SENTINEL = "sentinel"


class RedisSettings(BaseSettings):
    """Redis Inspect configuration settings."""

    # Redis connection settings
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL (e.g., redis://localhost:6379/0)"
    )
    redis_host: str = Field(default="localhost", description="Redis host")
    redis_port: int = Field(default=6379, description="Redis port")
    redis_db: int = Field(default=0, description="Redis database number")
    redis_password: Optional[str] = Field(default=None, description="Redis password")

    # Sentinel settings
    redis_mode: RedisMode = Field(
        default=RedisMode.SINGLE,
        description="Redis connection mode: single or sentinel"
    )
    redis_sentinel_hosts: Optional[Union[str, List[Dict[str, Union[str, int]]]]] = Field(
        default=None,
        description="Comma-separated list of sentinel hosts (host:port)"
    )
    redis_sentinel_service: str = Field(
        default="mymaster",
        description="Sentinel service name"
    )

    # Per-call connection settings
    redis_retry_on_timeout: bool = Field(
        default=True,
        description="Retry on connection timeout"
    )
    redis_health_check_interval: int = Field(
        default=30,
        description="Health check interval in seconds"
    )
    redis_socket_connect_timeout: float = Field(
        default=5.0,
        description="Socket connection timeout in seconds"
    )
    redis_socket_keepalive: bool = Field(
        default=True,
        description="Enable socket keepalive"
    )

    # Content display settings
    max_content_size: int = Field(
        default=1048576,  # 1MB
        description="Largest string value (in bytes) displayed when the size guard is on"
    )

    # Key listing settings
    scan_count: int = Field(
        default=10,
        description="COUNT hint passed to each SCAN page"
    )
    max_scan_keys: int = Field(
        default=0,
        description="Default cap on keys returned by one listing (0 = until the cursor wraps)"
    )

    log_level: str = Field(default="INFO", description="Root logging level")

    @field_validator("redis_sentinel_hosts", mode="before")
    @classmethod
    def parse_sentinel_hosts(cls, v):
        """Parse sentinel hosts from comma-separated string."""
        if isinstance(v, str) and v:
            return [
                {"host": host.split(":")[0].strip(), "port": int(host.split(":")[1])}
                for host in v.split(",")
                if ":" in host
            ]
        return v

    model_config = {
        "env_prefix": "",
        "case_sensitive": False
    }

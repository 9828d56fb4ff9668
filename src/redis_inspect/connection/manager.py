"""Redis connection manager for single instance and sentinel modes."""

import logging
from contextlib import contextmanager
from typing import Optional, Dict, Any, Iterator, List, Tuple
from urllib.parse import urlparse

import redis
from redis.sentinel import Sentinel
from redis.exceptions import ConnectionError, RedisError

from ..config.settings import RedisSettings, RedisMode

logger = logging.getLogger(__name__)


class RedisConnectionManager:
    """Hands out one fresh Redis client per operation.

    Nothing is pooled across calls: every :meth:`session` builds a client,
    yields it and tears its connection pool down again, whether the block
    exits normally or with an exception.
    """

    def __init__(self, settings: RedisSettings):
        """Initialize the connection manager.

        Args:
            settings: Redis configuration settings
        """
        self.settings = settings

    def open_client(self) -> redis.Redis:
        """Create a new Redis client based on configuration.

        Returns:
            Redis client instance

        Raises:
            ConnectionError: If the client cannot be created
        """
        try:
            if self.settings.redis_mode == RedisMode.SINGLE:
                return self._create_single_connection()
            elif self.settings.redis_mode == RedisMode.SENTINEL:
                return self._create_sentinel_connection()
            else:
                raise ValueError(f"Unsupported Redis mode: {self.settings.redis_mode}")
        except (ValueError, RedisError) as e:
            logger.error(f"Failed to create Redis client: {e}")
            raise ConnectionError(f"Redis connection failed: {e}")

    @contextmanager
    def session(self) -> Iterator[redis.Redis]:
        """Yield a fresh client and release it on every exit path."""
        client = self.open_client()
        try:
            yield client
        finally:
            self.close_client(client)

    @staticmethod
    def close_client(client: redis.Redis) -> None:
        """Disconnect a client's pool."""
        try:
            if hasattr(client, "connection_pool"):
                client.connection_pool.disconnect()
        except Exception as e:
            logger.warning(f"Error during disconnect: {e}")

    def _create_single_connection(self) -> redis.Redis:
        """Create single Redis instance connection."""
        connection_params = self._get_base_connection_params()

        if self.settings.redis_url:
            parsed_url = urlparse(self.settings.redis_url)
            connection_params.update({
                "host": parsed_url.hostname or self.settings.redis_host,
                "port": parsed_url.port or self.settings.redis_port,
                "db": int(parsed_url.path.lstrip("/") or self.settings.redis_db),
                "password": parsed_url.password or self.settings.redis_password,
            })
        else:
            connection_params.update({
                "host": self.settings.redis_host,
                "port": self.settings.redis_port,
                "db": self.settings.redis_db,
                "password": self.settings.redis_password,
            })

        return redis.Redis(**connection_params)

    def _create_sentinel_connection(self) -> redis.Redis:
        """Create Redis sentinel connection."""
        if not self.settings.redis_sentinel_hosts:
            raise ValueError("Sentinel hosts must be specified for sentinel mode")

        sentinel_list: List[Tuple[str, int]] = []
        for host in self.settings.redis_sentinel_hosts:
            if isinstance(host, dict):
                sentinel_list.append((str(host["host"]), int(host["port"])))

        if not sentinel_list:
            raise ValueError("No valid sentinel hosts found")

        sentinel = Sentinel(
            sentinel_list,
            socket_timeout=self.settings.redis_socket_connect_timeout,
            password=self.settings.redis_password,
        )

        connection_params = self._get_base_connection_params()
        connection_params.update({
            "db": self.settings.redis_db,
            "password": self.settings.redis_password,
        })

        return sentinel.master_for(
            self.settings.redis_sentinel_service,
            **connection_params
        )

    def _get_base_connection_params(self) -> Dict[str, Any]:
        """Get base connection parameters."""
        return {
            "socket_connect_timeout": self.settings.redis_socket_connect_timeout,
            "socket_keepalive": self.settings.redis_socket_keepalive,
            "health_check_interval": self.settings.redis_health_check_interval,
            "retry_on_timeout": self.settings.redis_retry_on_timeout,
            # Values may be arbitrary bytes; callers decode them explicitly
            "decode_responses": False,
        }

    def get_info(self) -> Dict[str, Any]:
        """Get Redis server information.

        Returns:
            Dictionary containing Redis server info
        """
        with self.session() as client:
            try:
                info = client.info()
                info["connection_mode"] = self.settings.redis_mode.value
                return info
            except RedisError as e:
                logger.error(f"Failed to get Redis info: {e}")
                raise RedisError(f"Failed to get Redis info: {e}")

    def get_database_count(self) -> int:
        """Get the number of logical databases configured on the server.

        Returns:
            Database count, or 0 if it cannot be read
        """
        with self.session() as client:
            try:
                config = client.config_get("databases")
            except RedisError as e:
                logger.error(f"config get databases error: {e}")
                return 0

        for name, value in config.items():
            if name in ("databases", b"databases"):
                try:
                    return int(value)
                except (TypeError, ValueError):
                    return 0
        return 0

    def ping(self) -> bool:
        """Check that the server answers.

        Returns:
            True if responsive, False otherwise
        """
        try:
            with self.session() as client:
                return bool(client.ping())
        except Exception as e:
            logger.warning(f"Connection check failed: {e}")
            return False

"""Single-key inspection: TTL, encoding, size and displayable content."""

import logging
from typing import Optional

from redis.exceptions import RedisError

from ..connection.manager import RedisConnectionManager
from ..config.settings import RedisSettings
from ..models import ContentFormat, ContentResult, ValueType
from ..utils.helpers import format_ttl, to_bytes, to_text
from .formatter import parse_hash_content, parse_string_format

logger = logging.getLogger(__name__)

TOO_LARGE_PLACEHOLDER = "too large to display"


class KeyInspector:
    """Reads one key and renders its content for display."""

    def __init__(self, connection_manager: RedisConnectionManager, settings: RedisSettings):
        """Initialize the key inspector.

        Args:
            connection_manager: Redis connection manager
            settings: Redis configuration settings
        """
        self.connection_manager = connection_manager
        self.settings = settings

    def display_content(
        self,
        key: str,
        max_content_check: bool = False,
        raw: bool = False,
        max_content_size: Optional[int] = None
    ) -> ContentResult:
        """Inspect a key and return its content in a displayable form.

        Args:
            key: Redis key to inspect
            max_content_check: Skip fetching string values larger than
                               ``max_content_size``
            raw: Return string values as stored instead of formatting them
            max_content_size: Size guard threshold in bytes
                              (default: from settings)

        Returns:
            ContentResult; a missing key yields ``exists=False`` with every
            other field empty. Store errors land in ``error`` and
            leave the fields gathered so far in place.
        """
        if max_content_size is None:
            max_content_size = self.settings.max_content_size

        name = to_bytes(key)

        with self.connection_manager.session() as client:
            try:
                exists = client.exists(name)
            except RedisError as e:
                logger.warning(f"Failed to check key '{key}': {e}")
                return ContentResult(error=str(e))
            if not exists:
                return ContentResult()

            result = ContentResult(exists=True)
            try:
                result.ttl = format_ttl(client.ttl(name))
                result.encoding = to_text(client.object("encoding", name))

                type_tag = client.type(name)
                value_type = ValueType.classify(type_tag)
                result.type = value_type

                if value_type == ValueType.STRING:
                    result.size = int(client.strlen(name))
                    if max_content_check and result.size > max_content_size:
                        result.content = TOO_LARGE_PLACEHOLDER
                        result.format = ContentFormat.TOO_LARGE
                    else:
                        result.content = to_text(client.get(name))
                        if not raw:
                            result.content, result.format = parse_string_format(result.content)
                elif value_type == ValueType.HASH:
                    fields = client.hgetall(name)
                    result.content = parse_hash_content(
                        {to_text(f): to_text(v) for f, v in fields.items()}
                    )
                    result.size = int(client.hlen(name))
                elif value_type == ValueType.LIST:
                    result.content = [to_text(item) for item in client.lrange(name, 0, -1)]
                    result.size = int(client.llen(name))
                elif value_type == ValueType.SET:
                    result.content = [to_text(member) for member in client.smembers(name)]
                    result.size = int(client.scard(name))
                elif value_type == ValueType.ZSET:
                    result.content = [
                        {"member": to_text(member), "score": score}
                        for member, score in client.zrange(name, 0, -1, withscores=True)
                    ]
                    result.size = int(client.zcard(name))
                else:
                    result.content = f"unknown type {to_text(type_tag)}"

            except RedisError as e:
                logger.warning(f"Failed to read key '{key}': {e}")
                result.error = str(e)

        logger.debug(f"Inspected key '{key}' ({result.type}, size {result.size})")
        return result

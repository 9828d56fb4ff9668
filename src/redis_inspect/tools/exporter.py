"""Export keys as a Redis command script or as a JSON tree."""

import json
import logging
from typing import Any, Dict, List, Union

from redis.exceptions import RedisError

from ..connection.manager import RedisConnectionManager
from ..config.settings import RedisSettings
from ..models import ExportFormat, PayloadError, ValueType
from ..utils.helpers import format_score, to_bytes, to_text
from .formatter import quote

logger = logging.getLogger(__name__)

# Appended to every SADD line, written out as the four characters \r\n
SADD_LINE_SUFFIX = "\\r\\n"


def parse_key_list(keys: Union[str, List[str]]) -> List[str]:
    """Parse a JSON array of key names.

    Raises:
        PayloadError: If the input is not an array of strings
    """
    if isinstance(keys, str):
        try:
            keys = json.loads(keys)
        except ValueError as e:
            raise PayloadError(f"invalid key list: {e}")

    if not isinstance(keys, list) or not all(isinstance(k, str) for k in keys):
        raise PayloadError("invalid key list: expected a JSON array of strings")
    return keys


class KeyExporter:
    """Dumps keys in one of the two exchange formats."""

    def __init__(self, connection_manager: RedisConnectionManager, settings: RedisSettings):
        """Initialize the exporter.

        Args:
            connection_manager: Redis connection manager
            settings: Redis configuration settings
        """
        self.connection_manager = connection_manager
        self.settings = settings

    def export_keys(
        self,
        keys: Union[str, List[str]],
        export_type: Union[str, ExportFormat]
    ) -> Union[List[str], Dict[str, Any]]:
        """Export keys.

        Args:
            keys: JSON array of key names (or an already parsed list)
            export_type: ``"Redis"`` for a command script, ``"JSON"`` for a
                         key to value mapping

        Returns:
            List of command lines, or a dict keyed by key name. Keys that
            are missing or of an unsupported type are left out.

        Raises:
            PayloadError: If the key list is malformed
            ValueError: If the export type is not recognised
            RedisError: If the store fails while reading
        """
        names = parse_key_list(keys)
        export_format = ExportFormat(export_type)

        with self.connection_manager.session() as client:
            try:
                if export_format == ExportFormat.REDIS:
                    exported = self._export_redis_format(client, names)
                else:
                    exported = self._export_json_format(client, names)
            except RedisError as e:
                logger.error(f"Export of {len(names)} keys failed: {e}")
                raise

        logger.info(f"Exported {len(names)} keys as {export_format.value}")
        return exported

    def _export_json_format(self, client, names: List[str]) -> Dict[str, Any]:
        """Map each key to a plain JSON value.

        Sorted sets export member names only; scores are dropped.
        """
        result: Dict[str, Any] = {}
        for key in names:
            name = to_bytes(key)
            value_type = ValueType.classify(client.type(name))

            if value_type == ValueType.STRING:
                result[key] = to_text(client.get(name))
            elif value_type == ValueType.HASH:
                result[key] = {to_text(f): to_text(v) for f, v in client.hgetall(name).items()}
            elif value_type == ValueType.LIST:
                result[key] = [to_text(item) for item in client.lrange(name, 0, -1)]
            elif value_type == ValueType.SET:
                result[key] = [to_text(member) for member in client.smembers(name)]
            elif value_type == ValueType.ZSET:
                result[key] = [to_text(member) for member in client.zrange(name, 0, -1)]
            else:
                logger.debug(f"Skipping key '{key}' of unsupported type")

        return result

    def _export_redis_format(self, client, names: List[str]) -> List[str]:
        """Render each key as the commands that recreate it."""
        lines: List[str] = []
        for key in names:
            name = to_bytes(key)
            quoted_key = quote(key)
            value_type = ValueType.classify(client.type(name))

            if value_type == ValueType.STRING:
                value = to_text(client.get(name))
                lines.append(f"SET {quoted_key} {quote(value)}")
            elif value_type == ValueType.HASH:
                for field, value in client.hgetall(name).items():
                    lines.append(f"HSET {quoted_key} {quote(to_text(field))} {quote(to_text(value))}")
            elif value_type == ValueType.LIST:
                for item in client.lrange(name, 0, -1):
                    lines.append(f"RPUSH {quoted_key} {quote(to_text(item))}")
            elif value_type == ValueType.SET:
                for member in client.smembers(name):
                    lines.append(f"SADD {quoted_key} {quote(to_text(member))}{SADD_LINE_SUFFIX}")
            elif value_type == ValueType.ZSET:
                for member, score in client.zrange(name, 0, -1, withscores=True):
                    lines.append(f"ZADD {quoted_key} {format_score(score)} {quote(to_text(member))}")
            else:
                logger.debug(f"Skipping key '{key}' of unsupported type")

        return lines

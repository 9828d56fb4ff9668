"""Create keys from JSON payloads and delete keys."""

import json
import math
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, Union

from redis.exceptions import RedisError

from ..connection.manager import RedisConnectionManager
from ..config.settings import RedisSettings
from ..models import DurationError, ErrorKind, MutationResult, PayloadError, ValueType
from ..utils.helpers import format_score, parse_duration, to_bytes
from .formatter import unquote

logger = logging.getLogger(__name__)

NO_EXPIRY_TTL = "-1s"


def _scalar_arg(value: Any) -> bytes:
    """Encode one JSON scalar the way it is written to Redis."""
    if isinstance(value, str):
        return to_bytes(value)
    elif isinstance(value, bool):
        return b"1" if value else b"0"
    elif isinstance(value, int):
        return str(value).encode()
    elif isinstance(value, float):
        return format_score(value).encode()
    elif value is None:
        return b""
    raise PayloadError(f"expected a JSON scalar, got {type(value).__name__}")


class KeyImporter:
    """Writes keys from JSON payloads, replacing whatever was there."""

    def __init__(self, connection_manager: RedisConnectionManager, settings: RedisSettings):
        """Initialize the importer.

        Args:
            connection_manager: Redis connection manager
            settings: Redis configuration settings
        """
        self.connection_manager = connection_manager
        self.settings = settings

    def new_key(self, key_type: str, key: str, ttl: Optional[str], value: str) -> MutationResult:
        """Create a key of the given type from a JSON payload.

        Any existing value at ``key`` is deleted first. TTL and payload are
        validated before anything is written. For hashes, lists, sets and
        sorted sets the TTL is applied with a separate PEXPIRE after the
        write, so the two steps are not atomic.

        Args:
            key_type: One of string, hash, list, set, zset
            key: Key to create
            ttl: Duration such as ``"10s"``; ``""`` or ``"-1s"`` for no expiry
            value: JSON payload shaped for ``key_type``:
                   string -> JSON string, hash -> object,
                   list/set -> array, zset -> array of {member, score}

        Returns:
            MutationResult, ``"OK"`` on success
        """
        value_type = ValueType.classify(key_type)

        try:
            expire_ms = self._parse_ttl(ttl)
        except DurationError as e:
            return MutationResult.failure(ErrorKind.TTL, str(e))

        try:
            payload = self._parse_payload(value_type, value)
        except PayloadError as e:
            return MutationResult.failure(ErrorKind.PAYLOAD, str(e))

        name = to_bytes(key)
        try:
            with self.connection_manager.session() as client:
                client.delete(name)

                if value_type == ValueType.STRING:
                    client.set(name, payload, px=expire_ms)
                elif value_type == ValueType.HASH:
                    client.hset(name, mapping=payload)
                elif value_type == ValueType.LIST:
                    client.rpush(name, *payload)
                elif value_type == ValueType.SET:
                    client.sadd(name, *payload)
                elif value_type == ValueType.ZSET:
                    client.zadd(name, payload)

                if value_type != ValueType.STRING and expire_ms:
                    client.pexpire(name, expire_ms)
        except RedisError as e:
            logger.error(f"Failed to create {value_type.value} key '{key}': {e}")
            return MutationResult.failure(ErrorKind.STORE, str(e))

        logger.info(f"Created {value_type.value} key '{key}'")
        return MutationResult.ok()

    def delete_keys(self, keys: List[str]) -> MutationResult:
        """Delete keys in one DEL call.

        Missing keys are not an error; the number actually removed is
        reported in ``details["deleted"]``.
        """
        if not keys:
            return MutationResult.ok(deleted=0)

        try:
            with self.connection_manager.session() as client:
                deleted = client.delete(*[to_bytes(k) for k in keys])
        except RedisError as e:
            logger.error(f"Failed to delete {len(keys)} keys: {e}")
            return MutationResult.failure(ErrorKind.STORE, str(e))

        logger.info(f"Deleted {deleted} of {len(keys)} keys")
        return MutationResult.ok(deleted=int(deleted))

    @staticmethod
    def _parse_ttl(ttl: Optional[str]) -> Optional[int]:
        """Return the expiry in milliseconds, or None for no expiry."""
        if ttl is None or ttl == "" or ttl == NO_EXPIRY_TTL:
            return None

        duration = parse_duration(ttl)
        if duration <= timedelta(0):
            return None
        return max(1, int(duration / timedelta(milliseconds=1)))

    def _parse_payload(self, value_type: ValueType, value: str) -> Any:
        """Decode and shape-check a payload for its value type.

        Raises:
            PayloadError: On invalid JSON, a wrong shape or an empty collection
        """
        if value_type == ValueType.UNKNOWN:
            raise PayloadError("unsupported key type")

        try:
            document = json.loads(value)
        except (TypeError, ValueError) as e:
            raise PayloadError(f"invalid JSON payload: {e}")

        if value_type == ValueType.STRING:
            if not isinstance(document, str):
                raise PayloadError("string payload must be a JSON string")
            # json.loads only validates; the stored bytes come from unquoting
            return unquote(value.strip())
        elif value_type == ValueType.HASH:
            if not isinstance(document, dict) or not document:
                raise PayloadError("hash payload must be a non-empty JSON object")
            return {to_bytes(f): _scalar_arg(v) for f, v in document.items()}
        elif value_type == ValueType.LIST or value_type == ValueType.SET:
            if not isinstance(document, list) or not document:
                raise PayloadError(f"{value_type.value} payload must be a non-empty JSON array")
            return [_scalar_arg(item) for item in document]
        elif value_type == ValueType.ZSET:
            if not isinstance(document, list) or not document:
                raise PayloadError("zset payload must be a non-empty JSON array")
            return self._parse_zset_members(document)

    @staticmethod
    def _parse_zset_members(document: List[Any]) -> Dict[bytes, float]:
        members: Dict[bytes, float] = {}
        for entry in document:
            if not isinstance(entry, dict):
                raise PayloadError("zset entries must be objects with member and score")
            fields = {str(k).lower(): v for k, v in entry.items()}
            if "member" not in fields:
                raise PayloadError("zset entry is missing its member")
            score: Union[int, float] = fields.get("score", 0)
            if isinstance(score, bool) or not isinstance(score, (int, float)):
                raise PayloadError("zset score must be a number")
            try:
                value = float(score)
            except OverflowError:
                raise PayloadError("zset score is out of range")
            if math.isnan(value):
                raise PayloadError("zset score must not be NaN")
            members[_scalar_arg(fields["member"])] = value
        return members

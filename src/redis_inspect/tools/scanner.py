"""Cursor-based key listing for Redis."""

import logging
from typing import List, Optional

from redis.exceptions import RedisError

from ..connection.manager import RedisConnectionManager
from ..config.settings import RedisSettings
from ..models import KeyRecord, ScanResult, ScanState, ScanStatus, ValueType
from ..utils.helpers import to_text

logger = logging.getLogger(__name__)


class ScanError(RedisError):
    """A key listing failed part way; no records are returned."""

    def __init__(self, message: str, cursor: int):
        super().__init__(message)
        self.cursor = cursor


class KeyScanner:
    """Lists keys page by page, annotated with their type and length."""

    def __init__(self, connection_manager: RedisConnectionManager, settings: RedisSettings):
        """Initialize the key scanner.

        Args:
            connection_manager: Redis connection manager
            settings: Redis configuration settings
        """
        self.connection_manager = connection_manager
        self.settings = settings

    def list_keys(
        self,
        cursor: int = 0,
        pattern: str = "*",
        max_keys: Optional[int] = None
    ) -> ScanResult:
        """List keys matching a glob pattern, starting from a cursor.

        Pages are requested until the server hands back cursor 0 or, when
        ``max_keys`` is positive, until at least that many keys were
        collected. The returned cursor resumes the listing; a non-zero
        cursor means more keys remain.

        Args:
            cursor: Cursor to start from (0 starts a new scan)
            pattern: Key pattern to match (default: "*")
            max_keys: Stop once this many keys were collected (0 = no cap,
                      default: from settings)

        Returns:
            ScanResult with the records and the cursor to resume from

        Raises:
            ScanError: If any page or per-key lookup fails; the records
                       gathered so far are discarded
        """
        if max_keys is None:
            max_keys = self.settings.max_scan_keys

        records: List[KeyRecord] = []
        next_cursor = cursor

        with self.connection_manager.session() as client:
            try:
                while True:
                    next_cursor, keys = client.scan(
                        cursor=next_cursor,
                        match=pattern,
                        count=self.settings.scan_count
                    )
                    next_cursor = int(next_cursor)

                    for key in keys:
                        records.append(self._describe_key(client, key))

                    if next_cursor == 0 or (max_keys > 0 and len(records) >= max_keys):
                        break
            except RedisError as e:
                logger.error(f"Key listing for pattern '{pattern}' failed at cursor {next_cursor}: {e}")
                raise ScanError(str(e), next_cursor) from e

        status = ScanStatus.COMPLETE if next_cursor == 0 else ScanStatus.IN_PROGRESS
        logger.info(f"Listed {len(records)} keys for pattern '{pattern}' (next cursor {next_cursor})")

        return ScanResult(records=records, cursor=next_cursor, status=status)

    def resume(self, state: ScanState) -> ScanResult:
        """Continue a listing from a caller-held state.

        A state marked complete yields an empty result instead of starting
        over, which a bare cursor of 0 cannot express.
        """
        if state.status == ScanStatus.COMPLETE:
            return ScanResult(records=[], cursor=0, status=ScanStatus.COMPLETE)
        return self.list_keys(cursor=state.cursor, pattern=state.pattern, max_keys=state.limit)

    def _describe_key(self, client, key: bytes) -> KeyRecord:
        """Build the record for one key."""
        value_type = ValueType.classify(client.type(key))

        if value_type == ValueType.STRING:
            length = client.strlen(key)
        elif value_type == ValueType.HASH:
            length = client.hlen(key)
        elif value_type == ValueType.LIST:
            length = client.llen(key)
        elif value_type == ValueType.SET:
            length = client.scard(key)
        elif value_type == ValueType.ZSET:
            length = client.zcard(key)
        else:
            length = -1

        return KeyRecord(key=to_text(key), type=value_type, length=int(length))

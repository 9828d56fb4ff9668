"""Value types and result records shared by the inspection tools."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Union


class ValueType(str, Enum):
    """Shape of a stored value, as reported by the TYPE command."""
    STRING = "string"
    HASH = "hash"
    LIST = "list"
    SET = "set"
    ZSET = "zset"
    UNKNOWN = "unknown"

    @classmethod
    def classify(cls, tag: Union[str, bytes, None]) -> "ValueType":
        """Map a TYPE reply to a ValueType.

        Only the five exact tags are recognised; ``none``, module types,
        streams and anything else become ``UNKNOWN``.
        """
        if isinstance(tag, bytes):
            tag = tag.decode("utf-8", errors="replace")
        if tag == cls.STRING.value:
            return cls.STRING
        elif tag == cls.HASH.value:
            return cls.HASH
        elif tag == cls.LIST.value:
            return cls.LIST
        elif tag == cls.SET.value:
            return cls.SET
        elif tag == cls.ZSET.value:
            return cls.ZSET
        return cls.UNKNOWN


class ContentFormat(str, Enum):
    """How a string value was rendered for display."""
    JSON = "JSON"
    NORMAL = "NORMAL"
    UNKNOWN = "UNKNOWN"
    TOO_LARGE = "Unknown!"
    NONE = ""


class ExportFormat(str, Enum):
    """Output modes of the exporter."""
    REDIS = "Redis"
    JSON = "JSON"


class ScanStatus(str, Enum):
    """Progress of a resumable key listing."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class ErrorKind(str, Enum):
    """Failure categories reported by write operations."""
    STORE = "store"
    PAYLOAD = "payload"
    TTL = "ttl"


class PayloadError(ValueError):
    """A JSON payload is malformed or has the wrong shape for its type."""


class DurationError(ValueError):
    """A TTL string does not follow the duration grammar."""


@dataclass(frozen=True)
class KeyRecord:
    """One key found by a scan."""
    key: str
    type: ValueType
    length: int


@dataclass
class ScanState:
    """Where a caller wants a listing to start."""
    cursor: int = 0
    pattern: str = "*"
    limit: Optional[int] = None
    status: ScanStatus = ScanStatus.NOT_STARTED


@dataclass
class ScanResult:
    """One batch of scanned keys and the cursor to resume from."""
    records: List[KeyRecord]
    cursor: int
    status: ScanStatus

    def next_state(self, pattern: str = "*", limit: Optional[int] = None) -> ScanState:
        """Build the state that resumes this listing."""
        return ScanState(cursor=self.cursor, pattern=pattern, limit=limit, status=self.status)


@dataclass
class ContentResult:
    """Everything the inspector learned about one key."""
    exists: bool = False
    content: Any = ""
    ttl: str = ""
    encoding: str = ""
    size: int = 0
    error: str = ""
    format: ContentFormat = ContentFormat.NONE
    type: Optional[ValueType] = None


@dataclass
class MutationResult:
    """Outcome of a write operation.

    ``message`` is ``"OK"`` on success and the error text otherwise, so the
    flat text form is still available through ``str()``.
    """
    success: bool
    message: str = "OK"
    kind: Optional[ErrorKind] = None
    details: dict = field(default_factory=dict)

    @classmethod
    def ok(cls, **details) -> "MutationResult":
        return cls(success=True, details=details)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "MutationResult":
        return cls(success=False, message=message, kind=kind)

    def __str__(self) -> str:
        return self.message

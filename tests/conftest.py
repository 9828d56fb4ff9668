"""Test configuration and fixtures for Redis Inspect tests."""

import fnmatch
import os
from unittest.mock import Mock

import pytest

from redis_inspect.config.settings import RedisSettings, RedisMode
from redis_inspect.connection.manager import RedisConnectionManager


class InMemoryRedis:
    """Dict-backed stand-in for the handful of redis-py calls the tools use.

    Values are kept as bytes, like a client created with
    ``decode_responses=False``.
    """

    def __init__(self):
        self.data = {}
        self.types = {}
        self.expiry_ms = {}
        self.calls = []

    def _record(self, name, *args):
        self.calls.append((name,) + args)

    def exists(self, *names):
        self._record("exists", *names)
        return sum(1 for n in names if n in self.data)

    def type(self, name):
        self._record("type", name)
        return self.types.get(name, "none").encode()

    def ttl(self, name):
        self._record("ttl", name)
        if name not in self.data:
            return -2
        if name not in self.expiry_ms:
            return -1
        return -(-self.expiry_ms[name] // 1000)

    def object(self, infotype, name):
        self._record("object", infotype, name)
        encodings = {"string": b"embstr", "hash": b"listpack", "list": b"quicklist",
                     "set": b"listpack", "zset": b"listpack"}
        return encodings.get(self.types.get(name))

    def delete(self, *names):
        self._record("delete", *names)
        removed = 0
        for n in names:
            if n in self.data:
                del self.data[n]
                del self.types[n]
                self.expiry_ms.pop(n, None)
                removed += 1
        return removed

    def pexpire(self, name, ms):
        self._record("pexpire", name, ms)
        if name not in self.data:
            return False
        self.expiry_ms[name] = ms
        return True

    def set(self, name, value, px=None):
        self._record("set", name, value, px)
        self.data[name] = value
        self.types[name] = "string"
        if px:
            self.expiry_ms[name] = px
        return True

    def get(self, name):
        self._record("get", name)
        return self.data.get(name)

    def strlen(self, name):
        return len(self.data.get(name, b""))

    def hset(self, name, mapping):
        self._record("hset", name, mapping)
        self.data.setdefault(name, {}).update(mapping)
        self.types[name] = "hash"
        return len(mapping)

    def hgetall(self, name):
        return dict(self.data.get(name, {}))

    def hlen(self, name):
        return len(self.data.get(name, {}))

    def rpush(self, name, *values):
        self._record("rpush", name, *values)
        self.data.setdefault(name, []).extend(values)
        self.types[name] = "list"
        return len(self.data[name])

    def lrange(self, name, start, end):
        items = self.data.get(name, [])
        return list(items) if end == -1 else items[start:end + 1]

    def llen(self, name):
        return len(self.data.get(name, []))

    def sadd(self, name, *values):
        self._record("sadd", name, *values)
        members = self.data.setdefault(name, set())
        before = len(members)
        members.update(values)
        self.types[name] = "set"
        return len(members) - before

    def smembers(self, name):
        return set(self.data.get(name, set()))

    def scard(self, name):
        return len(self.data.get(name, set()))

    def zadd(self, name, mapping):
        self._record("zadd", name, mapping)
        self.data.setdefault(name, {}).update(mapping)
        self.types[name] = "zset"
        return len(mapping)

    def zrange(self, name, start, end, withscores=False):
        ordered = sorted(self.data.get(name, {}).items(), key=lambda item: (item[1], item[0]))
        if withscores:
            return [(member, float(score)) for member, score in ordered]
        return [member for member, _ in ordered]

    def zcard(self, name):
        return len(self.data.get(name, {}))

    def scan(self, cursor=0, match=None, count=None):
        self._record("scan", cursor, match, count)
        keys = sorted(self.data)
        page = keys[cursor:cursor + (count or 10)]
        next_cursor = cursor + len(page)
        if next_cursor >= len(keys):
            next_cursor = 0
        if match:
            page = [k for k in page if fnmatch.fnmatchcase(k.decode("utf-8", "replace"), match)]
        return next_cursor, page


@pytest.fixture
def test_settings():
    """Provide test Redis settings."""
    return RedisSettings(
        redis_host="localhost",
        redis_port=6379,
        redis_db=0,
        redis_mode=RedisMode.SINGLE,
        max_content_size=1000,  # Smaller threshold for testing
        scan_count=10,
        max_scan_keys=0
    )


@pytest.fixture
def mock_redis_client():
    """Mock Redis client with common methods."""
    mock_client = Mock()

    # Replies as bytes, as with decode_responses=False
    mock_client.ping.return_value = True
    mock_client.exists.return_value = 1
    mock_client.type.return_value = b"string"
    mock_client.ttl.return_value = -1
    mock_client.object.return_value = b"embstr"
    mock_client.strlen.return_value = 5
    mock_client.get.return_value = b"hello"
    mock_client.scan.return_value = (0, [b"key1", b"key2", b"key3"])
    mock_client.delete.return_value = 1

    return mock_client


@pytest.fixture
def connection_manager(test_settings, mock_redis_client):
    """Provide a connection manager that hands out the mocked client."""
    manager = RedisConnectionManager(test_settings)
    manager.open_client = Mock(return_value=mock_redis_client)
    return manager


@pytest.fixture
def memory_store():
    """Provide an empty in-memory store."""
    return InMemoryRedis()


@pytest.fixture
def memory_manager(test_settings, memory_store):
    """Provide a connection manager backed by the in-memory store."""
    manager = RedisConnectionManager(test_settings)
    manager.open_client = Mock(return_value=memory_store)
    return manager


@pytest.fixture(autouse=True)
def clean_environment():
    """Clean environment variables before and after each test."""
    original_env = dict(os.environ)

    redis_env_vars = [
        "REDIS_URL", "REDIS_HOST", "REDIS_PORT", "REDIS_DB", "REDIS_PASSWORD",
        "REDIS_MODE", "REDIS_SENTINEL_HOSTS", "REDIS_SENTINEL_SERVICE",
        "MAX_CONTENT_SIZE", "SCAN_COUNT", "MAX_SCAN_KEYS", "LOG_LEVEL"
    ]

    for var in redis_env_vars:
        os.environ.pop(var, None)

    yield

    os.environ.clear()
    os.environ.update(original_env)

"""Import, inspect, list and export against an in-memory store."""

import json

import pytest

from redis_inspect.models import ContentFormat, ScanStatus, ValueType
from redis_inspect.tools import KeyExporter, KeyImporter, KeyInspector, KeyScanner


@pytest.fixture
def importer(memory_manager, test_settings):
    return KeyImporter(memory_manager, test_settings)


@pytest.fixture
def exporter(memory_manager, test_settings):
    return KeyExporter(memory_manager, test_settings)


@pytest.fixture
def inspector(memory_manager, test_settings):
    return KeyInspector(memory_manager, test_settings)


@pytest.fixture
def scanner(memory_manager, test_settings):
    return KeyScanner(memory_manager, test_settings)


class TestImportExportRoundTrip:
    """Values written by the importer come back from the JSON export."""

    @pytest.mark.parametrize("key_type,payload,expected", [
        ("string", '"plain text"', "plain text"),
        ("string", '"tab\\there \\u00e9"', "tab\there é"),
        ("hash", '{"a": "1", "b": "two"}', {"a": "1", "b": "two"}),
        ("list", '["c", "a", "c"]', ["c", "a", "c"]),
    ])
    def test_round_trip(self, importer, exporter, key_type, payload, expected):
        assert importer.new_key(key_type, "k", "", payload).success

        assert exporter.export_keys('["k"]', "JSON") == {"k": expected}

    def test_set_round_trip(self, importer, exporter):
        assert importer.new_key("set", "k", "", '["x", "y", "z"]').success

        assert sorted(exporter.export_keys('["k"]', "JSON")["k"]) == ["x", "y", "z"]

    def test_sorted_set_export_loses_scores(self, importer, exporter):
        payload = '[{"member": "b", "score": 2}, {"member": "a", "score": 1}]'
        assert importer.new_key("zset", "k", "", payload).success

        exported = exporter.export_keys('["k"]', "JSON")["k"]

        assert exported == ["a", "b"]
        assert exported != json.loads(payload)

    def test_binary_string_survives_export_and_import(self, importer, exporter, memory_store):
        memory_store.set(b"src", b"\x00\xff\x01")

        exported = exporter.export_keys('["src"]', "JSON")["src"]
        assert importer.new_key("string", "dst", "", json.dumps(exported)).success

        assert memory_store.data[b"dst"] == b"\x00\xff\x01"


class TestOverwrite:
    """The importer replaces, never merges."""

    def test_second_create_replaces_type_and_content(self, importer, exporter, memory_store):
        assert importer.new_key("list", "k", "", '["a", "b"]').success
        assert importer.new_key("hash", "k", "", '{"f": "v"}').success

        assert memory_store.types[b"k"] == "hash"
        assert exporter.export_keys('["k"]', "JSON") == {"k": {"f": "v"}}

    def test_second_create_of_same_type_does_not_merge(self, importer, exporter):
        assert importer.new_key("set", "k", "", '["a", "b"]').success
        assert importer.new_key("set", "k", "", '["c"]').success

        assert exporter.export_keys('["k"]', "JSON") == {"k": ["c"]}

    def test_ttl_applied_after_write(self, importer, inspector, memory_store):
        assert importer.new_key("list", "k", "90s", '["a"]').success

        ops = [c[0] for c in memory_store.calls]
        assert ops.index("delete") < ops.index("rpush") < ops.index("pexpire")
        assert inspector.display_content("k").ttl == "1m30s"

    def test_delete_keys(self, importer, memory_store):
        importer.new_key("string", "a", "", '"1"')

        result = importer.delete_keys(["a", "never-existed"])

        assert str(result) == "OK"
        assert result.details["deleted"] == 1
        assert b"a" not in memory_store.data


class TestInspectAndList:
    """Inspection and listing over imported data."""

    def test_inspect_imported_values(self, importer, inspector):
        importer.new_key("string", "doc", "", '"{\\"a\\":1}"')
        importer.new_key("zset", "board", "", '[{"member": "m", "score": 1.5}]')

        doc = inspector.display_content("doc")
        board = inspector.display_content("board")

        assert doc.format == ContentFormat.JSON
        assert doc.content == '{\n\t"a": 1\n}'
        assert doc.encoding == "embstr"
        assert board.type == ValueType.ZSET
        assert board.content == [{"member": "m", "score": 1.5}]

    def test_size_guard(self, importer, inspector, memory_store):
        importer.new_key("string", "big", "", json.dumps("x" * 2000))
        memory_store.calls.clear()

        result = inspector.display_content("big", max_content_check=True, max_content_size=1000)

        assert result.content == "too large to display"
        assert "get" not in [c[0] for c in memory_store.calls]

    def test_paged_listing(self, importer, scanner, test_settings):
        for i in range(25):
            importer.new_key("list", f"item:{i:02d}", "", '["a", "b"]')

        first = scanner.list_keys(pattern="item:*", max_keys=10)
        assert len(first.records) == 10
        assert first.status == ScanStatus.IN_PROGRESS

        rest = scanner.list_keys(cursor=first.cursor, pattern="item:*")
        assert len(rest.records) == 15
        assert rest.status == ScanStatus.COMPLETE
        assert {r.length for r in first.records + rest.records} == {2}

    def test_native_script_export(self, importer, exporter):
        importer.new_key("list", "q", "", '["x", "y"]')
        importer.new_key("zset", "z", "", '[{"member": "m", "score": 2}]')

        lines = exporter.export_keys('["q", "z"]', "Redis")

        assert lines == ['RPUSH "q" "x"', 'RPUSH "q" "y"', 'ZADD "z" 2 "m"']

"""Tests for the key-value storage backends."""

from __future__ import annotations

import pytest

from notehistory.errors import NoteHistoryStorageError
from notehistory.history.storage import JsonFileKeyValueStore, KeyValueStore, MemoryKeyValueStore


@pytest.fixture(params=["memory", "file"])
def kv(request, tmp_path) -> KeyValueStore:
    if request.param == "memory":
        return MemoryKeyValueStore()
    return JsonFileKeyValueStore(tmp_path / "store")


class TestKeyValueContract:
    def test_satisfies_protocol(self, kv):
        assert isinstance(kv, KeyValueStore)

    def test_missing_key_returns_default(self, kv):
        assert kv.get("doc", "nope") is None
        assert kv.get("doc", "nope", 7) == 7

    def test_put_then_get(self, kv):
        kv.put("doc", "versions", [{"id": "v_1"}])
        assert kv.get("doc", "versions") == [{"id": "v_1"}]

    def test_documents_are_isolated(self, kv):
        kv.put("a", "k", 1)
        kv.put("b", "k", 2)
        assert (kv.get("a", "k"), kv.get("b", "k")) == (1, 2)

    def test_delete(self, kv):
        kv.put("doc", "k", "v")
        kv.delete("doc", "k")
        kv.delete("doc", "k")
        assert kv.get("doc", "k") is None

    def test_stored_values_are_not_aliased(self, kv):
        value = {"list": [1]}
        kv.put("doc", "k", value)
        value["list"].append(2)
        fetched = kv.get("doc", "k")
        fetched["list"].append(3)
        assert kv.get("doc", "k") == {"list": [1]}


class TestMemoryStore:
    def test_keys(self):
        kv = MemoryKeyValueStore()
        kv.put("doc", "b", 1)
        kv.put("doc", "a", 1)
        assert kv.keys("doc") == ["a", "b"]
        assert kv.keys("other") == []


class TestJsonFileStore:
    def test_persists_across_instances(self, tmp_path):
        JsonFileKeyValueStore(tmp_path).put("doc", "k", {"x": 1})
        assert JsonFileKeyValueStore(tmp_path).get("doc", "k") == {"x": 1}

    def test_unsafe_ids_are_escaped(self, tmp_path):
        kv = JsonFileKeyValueStore(tmp_path)
        path = kv.path_for("../etc/passwd")
        assert path.parent == tmp_path
        assert path.name == "..%2Fetc%2Fpasswd.json"

    @pytest.mark.parametrize("first, second", [("team/a", "team_a"), ("a b", "a%20b"), ("x?", "x_")])
    def test_distinct_ids_use_distinct_files(self, tmp_path, first, second):
        kv = JsonFileKeyValueStore(tmp_path)
        kv.put(first, "versions", ["first-owned"])
        assert kv.path_for(first) != kv.path_for(second)
        assert kv.get(second, "versions") is None
        kv.put(second, "versions", ["second-owned"])
        assert kv.get(first, "versions") == ["first-owned"]

    def test_leaves_no_temp_files(self, tmp_path):
        kv = JsonFileKeyValueStore(tmp_path)
        kv.put("doc", "a", 1)
        kv.put("doc", "b", 2)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["doc.json"]

    def test_corrupt_file_raises_storage_error(self, tmp_path):
        kv = JsonFileKeyValueStore(tmp_path)
        kv.path_for("doc").write_text("{broken", encoding="utf-8")
        with pytest.raises(NoteHistoryStorageError) as exc_info:
            kv.get("doc", "k")
        assert exc_info.value.context["operation"] == "decode"

    def test_non_object_file_raises_storage_error(self, tmp_path):
        kv = JsonFileKeyValueStore(tmp_path)
        kv.path_for("doc").write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(NoteHistoryStorageError):
            kv.get("doc", "k")

    def test_unserializable_value_raises_storage_error(self, tmp_path):
        kv = JsonFileKeyValueStore(tmp_path)
        with pytest.raises(NoteHistoryStorageError) as exc_info:
            kv.put("doc", "k", object())
        assert exc_info.value.context["operation"] == "write"
        assert kv.get("doc", "k") is None

"""Tests for secret store adapters."""

from __future__ import annotations

import json
import stat
import sys
from pathlib import Path

import pytest

from adapters.secret_stores import InMemorySecretStore, JsonFileSecretStore
from core.domain.models import SecretEntry
from core.errors import StoreError
from core.interfaces.secret_store import SecretStore


def test_protocol_conformance(tmp_path: Path) -> None:
    assert isinstance(InMemorySecretStore(), SecretStore)
    assert isinstance(JsonFileSecretStore(tmp_path / "s.json"), SecretStore)


class TestInMemory:
    def test_put_overwrites(self) -> None:
        store = InMemorySecretStore()
        store.put(SecretEntry(name="TOKEN", value="a"))
        store.put(SecretEntry(name="TOKEN", value="b"))
        assert store.get("TOKEN") == "b"
        assert [e.name for e in store.list()] == ["TOKEN"]

    def test_names_are_case_sensitive(self) -> None:
        store = InMemorySecretStore({"token": "lower"})
        assert store.get("TOKEN") is None
        assert store.get("token") == "lower"

    def test_snapshot_is_isolated(self) -> None:
        store = InMemorySecretStore({"A": "1"})
        snap = store.snapshot()
        store.put(SecretEntry(name="A", value="2"))
        store.put(SecretEntry(name="B", value="3"))
        assert dict(snap) == {"A": "1"}
        with pytest.raises(TypeError):
            snap["A"] = "x"  # type: ignore[index]

    def test_delete_missing_is_noop(self) -> None:
        store = InMemorySecretStore({"A": "1"})
        store.delete("NOPE")
        store.delete("A")
        assert store.list() == []

    def test_list_sorted(self) -> None:
        store = InMemorySecretStore({"b": "2", "A": "1", "C": "3"})
        assert [e.name for e in store.list()] == ["A", "C", "b"]


class TestJsonFile:
    def test_roundtrip_between_instances(self, tmp_path: Path) -> None:
        path = tmp_path / "data" / "secrets.json"
        JsonFileSecretStore(path).put(SecretEntry(name="TOKEN", value="abc"))

        reopened = JsonFileSecretStore(path)
        assert reopened.get("TOKEN") == "abc"
        assert json.loads(path.read_text(encoding="utf-8")) == {
            "secrets": [{"name": "TOKEN", "value": "abc"}]
        }

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_file_mode_is_private(self, tmp_path: Path) -> None:
        path = tmp_path / "secrets.json"
        JsonFileSecretStore(path).put(SecretEntry(name="TOKEN", value="abc"))
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert not (tmp_path / "secrets.json.tmp").exists()

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        store = JsonFileSecretStore(tmp_path / "secrets.json")
        assert store.list() == []
        assert not store.path.exists()

    def test_corrupt_file(self, tmp_path: Path) -> None:
        path = tmp_path / "secrets.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreError):
            JsonFileSecretStore(path)

    def test_wrong_shape(self, tmp_path: Path) -> None:
        path = tmp_path / "secrets.json"
        path.write_text(json.dumps({"secrets": [{"value": "no name"}]}), encoding="utf-8")
        with pytest.raises(StoreError):
            JsonFileSecretStore(path)

    def test_delete_persists(self, tmp_path: Path) -> None:
        path = tmp_path / "secrets.json"
        store = JsonFileSecretStore(path)
        store.put(SecretEntry(name="A", value="1"))
        store.put(SecretEntry(name="B", value="2"))
        store.delete("A")
        assert [e.name for e in JsonFileSecretStore(path).list()] == ["B"]

    def test_value_not_in_repr(self) -> None:
        assert "abc" not in repr(SecretEntry(name="TOKEN", value="abc"))


class TestFailedWrite:
    @pytest.fixture
    def store(self, tmp_path: Path) -> JsonFileSecretStore:
        store = JsonFileSecretStore(tmp_path / "secrets.json")
        store.put(SecretEntry(name="A", value="1"))
        return store

    @pytest.fixture
    def failing_replace(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("adapters.secret_stores.os.replace", replace)

    def test_put_keeps_memory_in_sync(self, store: JsonFileSecretStore, failing_replace) -> None:
        with pytest.raises(StoreError):
            store.put(SecretEntry(name="B", value="2"))
        assert store.get("B") is None
        assert dict(store.snapshot()) == {"A": "1"}

    def test_delete_keeps_memory_in_sync(self, store: JsonFileSecretStore, failing_replace) -> None:
        with pytest.raises(StoreError):
            store.delete("A")
        assert store.get("A") == "1"

    def test_unwritable_directory(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = JsonFileSecretStore(blocker / "secrets.json")
        with pytest.raises(StoreError):
            store.put(SecretEntry(name="A", value="1"))
        assert store.list() == []

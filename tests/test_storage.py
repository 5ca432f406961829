"""
Tests for the key-value stores and the persisted connection record.
"""

from __future__ import annotations

import json
import stat
from pathlib import Path

import pytest

from orcwallet.storage import CONNECTION_KEY, ConnectionStore, JsonFileStore, MemoryStore
from tests.conftest import MAINNET_ADDRESS


class TestMemoryStore:
    def test_set_get_delete(self) -> None:
        store = MemoryStore()
        assert store.get("a") is None

        store.set("a", "1")
        assert store.get("a") == "1"
        assert "a" in store

        store.delete("a")
        assert store.get("a") is None
        assert "a" not in store

    def test_delete_missing_is_noop(self) -> None:
        MemoryStore().delete("missing")


class TestJsonFileStore:
    @pytest.fixture
    def path(self, tmp_path: Path) -> Path:
        return tmp_path / "nested" / "store.json"

    def test_roundtrip_creates_parent(self, path: Path) -> None:
        store = JsonFileStore(path)
        store.set("a", "1")

        assert path.exists()
        assert json.loads(path.read_text()) == {"a": "1"}
        assert JsonFileStore(path).get("a") == "1"

    def test_file_mode(self, path: Path) -> None:
        JsonFileStore(path).set("a", "1")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_missing_file(self, path: Path) -> None:
        assert JsonFileStore(path).get("a") is None

    def test_delete(self, path: Path) -> None:
        store = JsonFileStore(path)
        store.set("a", "1")
        store.set("b", "2")

        store.delete("a")

        assert store.get("a") is None
        assert store.get("b") == "2"

    @pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
    def test_unreadable_file_treated_as_empty(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True)
        path.write_text(content)

        store = JsonFileStore(path)
        assert store.get("a") is None

        store.set("a", "1")
        assert store.get("a") == "1"


class TestConnectionStore:
    def test_save_and_load(self) -> None:
        backing = MemoryStore()
        store = ConnectionStore(backing)

        store.save("Unisat", MAINNET_ADDRESS)

        raw = json.loads(backing.get(CONNECTION_KEY))
        assert raw == {"walletName": "Unisat", "address": MAINNET_ADDRESS}
        record = store.load()
        assert record.wallet_name == "Unisat"
        assert record.address == MAINNET_ADDRESS

    def test_load_empty(self) -> None:
        assert ConnectionStore(MemoryStore()).load() is None

    @pytest.mark.parametrize(
        "raw", ["not json", '{"walletName": "Unisat"}', '{"walletName": "", "address": "x"}']
    )
    def test_corrupted_record_discarded(self, raw: str) -> None:
        backing = MemoryStore()
        backing.set(CONNECTION_KEY, raw)

        assert ConnectionStore(backing).load() is None
        assert CONNECTION_KEY not in backing

    def test_clear(self) -> None:
        store = ConnectionStore(MemoryStore())
        store.save("OKX", MAINNET_ADDRESS)
        store.clear()
        assert store.load() is None

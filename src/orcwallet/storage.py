"""
Client-local key-value stores.

Two lifetimes are needed: a session-scoped store that lives exactly as long as
the process (used to mirror manual private keys) and a persistent store on disk
(used to remember the last wallet connection between sessions).
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Protocol

from loguru import logger
from pydantic import ValidationError

from orcwallet.formatting import format_address
from orcwallet.models import PersistedConnection

CONNECTION_KEY = "wallet_connection"


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """Process-lifetime store. Nothing here survives a restart."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._data


class JsonFileStore:
    """Persistent store backed by a single JSON object on disk (mode 0600)."""

    def __init__(self, path: Path):
        self.path = path

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed store {self.path}")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2))
        os.chmod(self.path, 0o600)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class ConnectionStore:
    """Reads and writes the persisted ``{walletName, address}`` record."""

    def __init__(self, store: KeyValueStore, key: str = CONNECTION_KEY):
        self.store = store
        self.key = key

    def save(self, wallet_name: str, address: str) -> PersistedConnection:
        record = PersistedConnection(wallet_name=wallet_name, address=address)
        self.store.set(self.key, record.to_json())
        logger.debug(f"Saved connection {wallet_name}/{format_address(address)}")
        return record

    def load(self) -> PersistedConnection | None:
        raw = self.store.get(self.key)
        if raw is None:
            return None
        try:
            return PersistedConnection.from_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding corrupted connection record: {e.error_count()} errors")
            self.store.delete(self.key)
            return None

    def clear(self) -> None:
        self.store.delete(self.key)

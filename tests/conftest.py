"""
Shared fixtures for orcwallet tests.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from orcwallet.providers.registry import MappingEnvironment, ProviderRegistry
from orcwallet.storage import ConnectionStore, MemoryStore
from orcwallet.vault import PrivateKeyVault

MAINNET_ADDRESS = "bc1qar0srrr7xfkvy5l643lydnw9re59gtzzwf5mdq"
OTHER_ADDRESS = "bc1qxy2kgdygjrsqtzq2n0yrf2493p83kkfjhx0wlh"
TESTNET_ADDRESS = "tb1qw508d6qejxtdg4y5r3zarvary0c5xw7kxpjzsx"
PUBLIC_KEY = "02" + "ab" * 32
COMPRESSED_WIF = "L1aW4aubDFB7yfras2S1mN3bqg9nwySY8nkoLmJebSLD5BWv3Enf"
HEX_KEY = "0c28fca386c7a227600b2fe50b7cae11ec86d3bf1fbe471be89827e19d72aa1d"
HEX_PSBT = "70736274ff01007102000000"
BASE64_PSBT = "cHNidP8BAHECAAAAAQ=="


class FakeBitcoinHost:
    """In-memory stand-in for an injected browser wallet object."""

    def __init__(
        self,
        accounts: list[str] | None = None,
        network: str = "livenet",
        public_key: str = PUBLIC_KEY,
    ):
        self.accounts = list(accounts) if accounts is not None else [MAINNET_ADDRESS]
        self.network = network
        self.public_key = public_key
        self.fail_connect = False
        self.fail_sign = False
        self.calls: list[str] = []

    async def request_accounts(self) -> list[str]:
        self.calls.append("request_accounts")
        if self.fail_connect:
            raise RuntimeError("User rejected the request")
        return list(self.accounts)

    async def get_accounts(self) -> list[str]:
        self.calls.append("get_accounts")
        return list(self.accounts)

    async def get_network(self) -> str:
        return self.network

    async def get_public_key(self) -> str:
        return self.public_key

    async def sign_message(self, message: str, address: str) -> str:
        self.calls.append("sign_message")
        if self.fail_sign:
            raise RuntimeError("User rejected signing")
        return f"sig:{address}:{len(message)}"

    async def sign_psbt(self, psbt: str) -> str:
        self.calls.append("sign_psbt")
        if self.fail_sign:
            raise RuntimeError("User rejected signing")
        return f"signed:{psbt}"


class FakeUnisatHost(FakeBitcoinHost):
    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.balance = {"confirmed": 40_000, "unconfirmed": 2_000, "total": 42_000}
        self.listeners: dict[str, list[Any]] = {}

    async def get_balance(self) -> dict[str, int]:
        return dict(self.balance)

    def on(self, event: str, callback: Any) -> None:
        self.listeners.setdefault(event, []).append(callback)

    def remove_listener(self, event: str, callback: Any) -> None:
        self.listeners.get(event, []).remove(callback)

    def emit(self, event: str) -> None:
        for callback in list(self.listeners.get(event, [])):
            callback()


@pytest.fixture
def unisat_host() -> FakeUnisatHost:
    return FakeUnisatHost()


@pytest.fixture
def okx_host() -> FakeBitcoinHost:
    return FakeBitcoinHost(accounts=[OTHER_ADDRESS], network="mainnet")


@pytest.fixture
def environment(unisat_host: FakeUnisatHost, okx_host: FakeBitcoinHost) -> MappingEnvironment:
    return MappingEnvironment(
        {"unisat": unisat_host, "okxwallet": SimpleNamespace(bitcoin=okx_host)}
    )


@pytest.fixture
def registry(environment: MappingEnvironment) -> ProviderRegistry:
    return ProviderRegistry(environment)


@pytest.fixture
def session_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def vault(session_store: MemoryStore) -> PrivateKeyVault:
    return PrivateKeyVault(session_store)


@pytest.fixture
def persistent_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def connection_store(persistent_store: MemoryStore) -> ConnectionStore:
    return ConnectionStore(persistent_store)

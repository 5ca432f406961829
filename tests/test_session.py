"""
Tests for WalletSession wiring.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from orcwallet.config import Settings
from orcwallet.models import BalanceInfo
from orcwallet.providers.registry import MappingEnvironment
from orcwallet.session import WalletSession
from orcwallet.storage import ConnectionStore, MemoryStore
from tests.conftest import MAINNET_ADDRESS, OTHER_ADDRESS


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(state_dir=tmp_path / "state", account_poll_interval=0.01)


@pytest.fixture
def mempool() -> MagicMock:
    client = MagicMock()
    client.close = AsyncMock()
    client.get_address_balance = AsyncMock(return_value=BalanceInfo(confirmed=7_000))
    return client


class TestWalletSession:
    @pytest.mark.asyncio
    async def test_start_without_record(
        self, settings: Settings, environment: MappingEnvironment, mempool: MagicMock
    ) -> None:
        session = WalletSession(settings, environment, mempool=mempool)

        assert await session.start() is False
        assert [p.name for p in session.connection.available_providers()] == ["Unisat", "OKX"]
        await session.close()
        mempool.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_context_manager_restores_connection(
        self, settings: Settings, environment: MappingEnvironment, mempool: MagicMock
    ) -> None:
        store = MemoryStore()
        ConnectionStore(store).save("OKX", OTHER_ADDRESS)

        async with WalletSession(
            settings, environment, persistent_store=store, mempool=mempool
        ) as session:
            assert session.connection.connected
            assert session.connection.address == OTHER_ADDRESS
            # OKX has no balance call, the explorer fills in
            assert session.connection.state.balance == 7_000
            assert session.signer.vault is session.vault

        mempool.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connection_file_under_state_dir(
        self, settings: Settings, environment: MappingEnvironment, mempool: MagicMock
    ) -> None:
        session = WalletSession(settings, environment, mempool=mempool)
        provider = session.registry.find("Unisat")

        await session.connection.connect(provider)
        await session.close()

        assert settings.connection_file.exists()
        reopened = WalletSession(settings, environment, mempool=mempool)
        assert await reopened.start() is True
        assert reopened.connection.address == MAINNET_ADDRESS
        await reopened.close()

    def test_settings_flow_into_components(
        self, settings: Settings, mempool: MagicMock
    ) -> None:
        session = WalletSession(settings, mempool=mempool)

        assert session.utxos.min_value == settings.min_utxo_value
        assert session.fees.default_fee_rate == settings.default_fee_rate
        assert session.connection.account_poll_interval == 0.01
        assert session.registry.detect() == []

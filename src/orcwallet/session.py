"""
Session container wiring the wallet core together.

A WalletSession owns the process-wide pieces of state (connection state,
private key vault) and hands them to the components that need them. Create
one per session, ``start()`` it to attempt a silent reconnect and ``close()``
it on teardown.
"""

from __future__ import annotations

from loguru import logger

from orcwallet.config import Settings, get_settings
from orcwallet.connection import ConnectionStateMachine
from orcwallet.fees import FeeEstimator
from orcwallet.mempool import MempoolClient
from orcwallet.providers.registry import EnvironmentProbe, ProviderRegistry
from orcwallet.signing import SigningCoordinator
from orcwallet.storage import ConnectionStore, JsonFileStore, KeyValueStore, MemoryStore
from orcwallet.utxo import UTXOSelector
from orcwallet.vault import PrivateKeyVault


class WalletSession:
    def __init__(
        self,
        settings: Settings | None = None,
        environment: EnvironmentProbe | None = None,
        persistent_store: KeyValueStore | None = None,
        session_store: KeyValueStore | None = None,
        mempool: MempoolClient | None = None,
    ):
        self.settings = settings or get_settings()
        self.mempool = mempool or MempoolClient(self.settings)
        self.registry = ProviderRegistry(environment)
        self.vault = PrivateKeyVault(session_store if session_store is not None else MemoryStore())

        if persistent_store is None:
            persistent_store = JsonFileStore(self.settings.connection_file)
        self.connection = ConnectionStateMachine(
            self.registry,
            vault=self.vault,
            connection_store=ConnectionStore(persistent_store),
            balance_source=self.mempool,
            account_poll_interval=self.settings.account_poll_interval,
        )
        self.utxos = UTXOSelector(
            self.mempool,
            min_value=self.settings.min_utxo_value,
            retry_delay=self.settings.utxo_retry_delay,
        )
        self.fees = FeeEstimator(self.mempool, default_fee_rate=self.settings.default_fee_rate)
        self.signer = SigningCoordinator(self.connection, vault=self.vault)

    async def start(self) -> bool:
        """Attempt to restore the last connection; returns True if connected."""
        connected = await self.connection.auto_reconnect()
        logger.debug(f"Session started (connected={connected})")
        return connected

    async def close(self) -> None:
        await self.connection.close()
        await self.mempool.close()

    async def __aenter__(self) -> WalletSession:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

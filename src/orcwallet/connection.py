"""
Wallet connection state machine.

Owns the single ConnectionState of a session. State changes go through the
transition table in ``orcwallet.state``; overlapping operations are not
serialized, the last writer wins, and an in-flight connect that has been
superseded by a later connect or disconnect never overwrites the newer state.
"""

from __future__ import annotations

import asyncio

from loguru import logger

from orcwallet.errors import WalletConnectionError, WalletError
from orcwallet.formatting import format_address
from orcwallet.mempool import BalanceSource
from orcwallet.providers.base import AccountsListener, Capability, WalletProvider
from orcwallet.providers.registry import ProviderRegistry
from orcwallet.state import ConnectionEvent, ConnectionState, ConnectionStatus, transition
from orcwallet.storage import ConnectionStore, MemoryStore
from orcwallet.vault import PrivateKeyVault

DEFAULT_ACCOUNT_POLL_INTERVAL = 3.0


class AccountWatcher:
    """
    Notifies on account changes of a connected provider.

    Providers with account-change events are subscribed to directly; all
    others are polled every ``poll_interval`` seconds.
    """

    def __init__(
        self,
        provider: WalletProvider,
        on_change: AccountsListener,
        poll_interval: float = DEFAULT_ACCOUNT_POLL_INTERVAL,
        accounts: list[str] | None = None,
    ):
        self.provider = provider
        self.on_change = on_change
        self.poll_interval = poll_interval
        self._last_accounts = list(accounts) if accounts is not None else None
        self._subscribed = False
        self._running = False
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        if self.provider.supports(Capability.ACCOUNT_EVENTS):
            self.provider.add_accounts_listener(self.on_change)
            self._subscribed = True
        else:
            self._task = asyncio.create_task(self._poll())

    async def _poll(self) -> None:
        while self._running:
            await asyncio.sleep(self.poll_interval)
            if not self._running:
                break
            try:
                accounts = await self.provider.get_accounts()
            except Exception as e:
                logger.warning(f"Polling {self.provider.name} accounts failed: {e}")
                await self.on_change()
                continue
            if self._last_accounts is not None and accounts != self._last_accounts:
                self._last_accounts = accounts
                await self.on_change()
            else:
                self._last_accounts = accounts

    def stop(self) -> None:
        self._running = False
        if self._subscribed:
            self.provider.remove_accounts_listener(self.on_change)
            self._subscribed = False
        # The poll task may be the caller (disconnect triggered from a poll)
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()
        self._task = None


class ConnectionStateMachine:
    """
    Connect/disconnect/balance lifecycle for one wallet session.

    Transitions:
        DISCONNECTED | CONNECTED --connect--> CONNECTING
        CONNECTING --success--> CONNECTED
        CONNECTING --failure--> DISCONNECTED
        any --disconnect--> DISCONNECTED
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        vault: PrivateKeyVault | None = None,
        connection_store: ConnectionStore | None = None,
        balance_source: BalanceSource | None = None,
        account_poll_interval: float = DEFAULT_ACCOUNT_POLL_INTERVAL,
    ):
        self.registry = registry
        self.vault = vault or PrivateKeyVault()
        self.connection_store = connection_store or ConnectionStore(MemoryStore())
        self.balance_source = balance_source
        self.account_poll_interval = account_poll_interval

        self._state = ConnectionState()
        self._watcher: AccountWatcher | None = None
        self._attempt = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def connected(self) -> bool:
        return self._state.connected

    @property
    def provider(self) -> WalletProvider | None:
        return self._state.provider

    @property
    def address(self) -> str | None:
        return self._state.address

    def available_providers(self) -> list[WalletProvider]:
        return self.registry.detect()

    def _apply(self, event: ConnectionEvent, **fields) -> ConnectionState:
        previous = self._state.status
        self._state = transition(self._state, event, **fields)
        if previous is not self._state.status:
            logger.debug(f"Connection {previous.value} -> {self._state.status.value}")
        return self._state

    def _stop_watcher(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None

    def _forget_connection(self) -> None:
        try:
            self.connection_store.clear()
        except OSError as e:
            logger.warning(f"Could not clear saved wallet connection: {e}")

    def _is_current(self, state: ConnectionState) -> bool:
        current = self._state
        return (
            current.connected
            and current.provider is state.provider
            and current.address == state.address
        )

    async def connect(self, provider: WalletProvider) -> ConnectionState:
        """
        Connect to provider and make its first account the active one.

        On failure the machine ends DISCONNECTED with ``error`` set and the
        failure is raised as a WalletError.
        """
        self._apply(ConnectionEvent.CONNECT)
        self._stop_watcher()
        self._attempt += 1
        attempt = self._attempt
        logger.info(f"Connecting to {provider.name} wallet")

        try:
            accounts = await provider.connect()
            if not accounts:
                raise WalletConnectionError("No accounts found")
            address = accounts[0]
            public_key = await provider.get_public_key()
            network = await provider.get_network()
            if attempt != self._attempt:
                raise WalletConnectionError("Connection attempt superseded")
        except Exception as e:
            message = str(e) or "Failed to connect wallet"
            if attempt == self._attempt and self._state.status is ConnectionStatus.CONNECTING:
                self._apply(ConnectionEvent.CONNECT_FAILED, error=message)
            logger.error(f"Failed to connect {provider.name}: {message}")
            if isinstance(e, WalletError):
                raise
            raise WalletConnectionError(message) from e

        self._apply(
            ConnectionEvent.CONNECT_SUCCEEDED,
            provider=provider,
            address=address,
            public_key=public_key,
            network=network,
        )
        logger.info(f"Connected to {provider.name}: {format_address(address)} ({network.value})")

        try:
            self.connection_store.save(provider.name, address)
        except OSError as e:
            logger.warning(f"Could not persist wallet connection: {e}")

        self._watcher = AccountWatcher(
            provider,
            self.handle_accounts_changed,
            poll_interval=self.account_poll_interval,
            accounts=accounts,
        )
        self._watcher.start()

        await self.refresh_balance()
        return self._state

    async def disconnect(self) -> None:
        """Disconnect locally; the provider-side call is best effort."""
        provider = self._state.provider
        self._stop_watcher()
        self._attempt += 1

        if provider is not None:
            try:
                await provider.disconnect()
            except Exception as e:
                logger.warning(f"Error disconnecting {provider.name} wallet: {e}")

        self._forget_connection()
        self.vault.clear()
        self._apply(ConnectionEvent.DISCONNECT)
        logger.info("Wallet disconnected")

    async def refresh_balance(self) -> None:
        state = self._state
        if not state.connected or state.provider is None or state.address is None:
            return

        provider = state.provider
        try:
            if provider.supports(Capability.GET_BALANCE):
                balance = await provider.get_balance()
            elif self.balance_source is not None:
                balance = await self.balance_source.get_address_balance(state.address)
            else:
                logger.debug(f"{provider.name} has no balance capability, balance left as is")
                return
        except Exception as e:
            logger.warning(f"Error refreshing balance: {e}")
            return

        if self._is_current(state):
            self._state = self._state.with_balance(max(balance.total, 0))
            logger.debug(f"Balance for {format_address(state.address)}: {balance.total} sats")

    async def auto_reconnect(self) -> bool:
        """
        Silently restore the persisted connection, if it is still valid.

        Returns True if the session ended up connected.
        """
        record = self.connection_store.load()
        if record is None:
            return False

        provider = self.registry.find(record.wallet_name)
        if provider is None:
            logger.info(f"Saved wallet {record.wallet_name} not detected, skipping auto-connect")
            return False

        try:
            accounts = await provider.get_accounts()
        except Exception as e:
            logger.warning(f"Auto-connect failed: {e}")
            self._forget_connection()
            return False

        if record.address not in accounts:
            logger.info("Saved account no longer available, clearing saved connection")
            self._forget_connection()
            return False

        try:
            await self.connect(provider)
        except WalletError as e:
            logger.warning(f"Auto-connect failed: {e}")
            self._forget_connection()
            return False
        return True

    async def handle_accounts_changed(self) -> None:
        """Disconnect if the connected address left the provider's account list."""
        state = self._state
        if not state.connected or state.provider is None:
            return

        try:
            accounts = await state.provider.get_accounts()
        except Exception as e:
            logger.warning(f"Error handling account change: {e}")
            if self._is_current(state):
                await self.disconnect()
            return

        if not self._is_current(state):
            return
        if not accounts or state.address not in accounts:
            logger.info(f"Account {format_address(state.address)} no longer available")
            await self.disconnect()

    async def close(self) -> None:
        """End the session without forgetting the persisted connection."""
        self._stop_watcher()

"""
Unisat browser wallet integration.
"""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from orcwallet.errors import SigningError, WalletConnectionError
from orcwallet.models import BalanceInfo, NetworkType
from orcwallet.providers.base import AccountsListener, Capability, HostBackedProvider

ACCOUNTS_CHANGED = "accountsChanged"


class UnisatProvider(HostBackedProvider):
    """
    Wraps the ``unisat`` host object.

    Unisat has no disconnect call and reports balances directly. It emits
    ``accountsChanged`` events through ``on``/``removeListener``.
    """

    name = "Unisat"
    optional_capabilities = frozenset({Capability.GET_BALANCE, Capability.ACCOUNT_EVENTS})

    def __init__(self, host: Any):
        super().__init__(host)
        self._handlers: dict[AccountsListener, Any] = {}
        self._pending: set[asyncio.Task[None]] = set()

    async def connect(self) -> list[str]:
        try:
            return await self._accounts("request_accounts")
        except Exception as e:
            raise WalletConnectionError("Failed to connect to Unisat wallet") from e

    async def disconnect(self) -> None:
        # Unisat keeps no connection state on its side
        return None

    async def sign_message(self, message: str, address: str) -> str:
        return await self._string(SigningError, "sign_message", message, address)

    async def sign_psbt(self, psbt: str) -> str:
        return await self._string(SigningError, "sign_psbt", psbt)

    async def get_accounts(self) -> list[str]:
        return await self._accounts("get_accounts")

    async def get_network(self) -> NetworkType:
        return NetworkType.parse(await self._call("get_network"))

    async def get_public_key(self) -> str:
        return await self._string(WalletConnectionError, "get_public_key")

    async def get_balance(self) -> BalanceInfo:
        balance = await self._call("get_balance")
        confirmed = int(balance.get("confirmed", balance.get("total", 0)))
        unconfirmed = int(balance.get("unconfirmed", 0))
        return BalanceInfo(confirmed=confirmed, unconfirmed=unconfirmed)

    def add_accounts_listener(self, listener: AccountsListener) -> None:
        if listener in self._handlers:
            return

        def handler(*_: Any) -> None:
            task = asyncio.ensure_future(listener())
            self._pending.add(task)
            task.add_done_callback(self._on_listener_done)

        self._handlers[listener] = handler
        self.host.on(ACCOUNTS_CHANGED, handler)
        logger.debug("Subscribed to Unisat account changes")

    def remove_accounts_listener(self, listener: AccountsListener) -> None:
        handler = self._handlers.pop(listener, None)
        if handler is not None:
            self.host.remove_listener(ACCOUNTS_CHANGED, handler)
            logger.debug("Unsubscribed from Unisat account changes")

        if self._pending:
            current = asyncio.current_task()
            for task in list(self._pending):
                # A listener that triggered the unsubscribe must run to completion
                if task is not current:
                    task.cancel()

    def _on_listener_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Unisat account change handler failed: {error}")

"""
Wallet provider capability interface.

Every signing agent (browser extension or similar) is wrapped in a
WalletProvider. Calling code never branches on the concrete provider; it only
checks capability presence with ``supports()``.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from orcwallet.errors import WalletError
from orcwallet.models import UTXO, BalanceInfo, NetworkType

AccountsListener = Callable[[], Awaitable[None]]


class Capability(str, Enum):
    CONNECT = "connect"
    DISCONNECT = "disconnect"
    SIGN_MESSAGE = "sign-message"
    SIGN_PSBT = "sign-psbt"
    LIST_ACCOUNTS = "list-accounts"
    GET_NETWORK = "get-network"
    GET_PUBLIC_KEY = "get-public-key"
    GET_UTXOS = "get-utxos"
    GET_BALANCE = "get-balance"
    GET_PRIVATE_KEY = "get-private-key"
    ACCOUNT_EVENTS = "account-events"


REQUIRED_CAPABILITIES: frozenset[Capability] = frozenset(
    {
        Capability.CONNECT,
        Capability.DISCONNECT,
        Capability.SIGN_MESSAGE,
        Capability.SIGN_PSBT,
        Capability.LIST_ACCOUNTS,
        Capability.GET_NETWORK,
        Capability.GET_PUBLIC_KEY,
    }
)


class WalletProvider(ABC):
    """
    Abstract signing provider.

    Subclasses set ``name`` (unique per provider) and list any optional
    capabilities they implement in ``optional_capabilities``. Optional methods
    raise NotImplementedError when the capability is absent.
    """

    name: str = ""
    optional_capabilities: frozenset[Capability] = frozenset()

    @property
    def capabilities(self) -> frozenset[Capability]:
        return REQUIRED_CAPABILITIES | self.optional_capabilities

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    @abstractmethod
    async def connect(self) -> list[str]:
        """Request account access, returns the account addresses"""

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the provider-side session"""

    @abstractmethod
    async def sign_message(self, message: str, address: str) -> str:
        """Sign a message with the key behind address"""

    @abstractmethod
    async def sign_psbt(self, psbt: str) -> str:
        """Sign a PSBT, returns the signed PSBT"""

    @abstractmethod
    async def get_accounts(self) -> list[str]:
        """Currently authorized account addresses"""

    @abstractmethod
    async def get_network(self) -> NetworkType:
        """Network the provider is operating on"""

    @abstractmethod
    async def get_public_key(self) -> str:
        """Public key (hex) of the active account"""

    async def get_balance(self) -> BalanceInfo:
        raise NotImplementedError(f"{self.name} does not expose a balance")

    async def get_utxos(self, address: str) -> list[UTXO]:
        raise NotImplementedError(f"{self.name} does not expose UTXOs")

    async def get_private_key(self) -> str:
        raise NotImplementedError(f"{self.name} does not expose private keys")

    def add_accounts_listener(self, listener: AccountsListener) -> None:
        raise NotImplementedError(f"{self.name} does not emit account events")

    def remove_accounts_listener(self, listener: AccountsListener) -> None:
        raise NotImplementedError(f"{self.name} does not emit account events")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"


class HostBackedProvider(WalletProvider):
    """Provider that forwards calls to an injected host capability object."""

    def __init__(self, host: Any):
        self.host = host

    async def _call(self, method: str, *args: Any) -> Any:
        func = getattr(self.host, method, None)
        if func is None:
            raise AttributeError(f"{self.name} host has no method {method!r}")
        result = func(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _string(self, error: type[WalletError], method: str, *args: Any) -> str:
        """Call method and return its result as a non-empty string, else raise error."""
        result = await self._call(method, *args)
        if result is None or not str(result).strip():
            raise error(f"{self.name} returned no result for {method}")
        return str(result)

    async def _accounts(self, method: str) -> list[str]:
        accounts = await self._call(method)
        return [str(account) for account in accounts or []]

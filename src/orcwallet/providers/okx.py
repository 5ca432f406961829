"""
OKX browser wallet integration (``okxwallet.bitcoin``).
"""

from __future__ import annotations

from orcwallet.errors import SigningError, WalletConnectionError
from orcwallet.models import NetworkType
from orcwallet.providers.base import HostBackedProvider


class OKXProvider(HostBackedProvider):
    """
    Wraps the ``okxwallet.bitcoin`` host object.

    OKX exposes neither a balance call nor account-change events, so balances
    come from the explorer fallback and account changes are polled.
    """

    name = "OKX"

    async def connect(self) -> list[str]:
        try:
            return await self._accounts("request_accounts")
        except Exception as e:
            raise WalletConnectionError("Failed to connect to OKX wallet") from e

    async def disconnect(self) -> None:
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

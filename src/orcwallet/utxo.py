"""
Spendable output selection.

The selection policy is first-fit: the first output in fetch order whose value
meets the minimum wins. Callers needing optimal coin selection must do it
themselves.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from loguru import logger

from orcwallet.errors import NetworkError
from orcwallet.formatting import format_address
from orcwallet.mempool import UTXOSource, validate_address
from orcwallet.models import UTXO
from orcwallet.providers.base import Capability, WalletProvider

DEFAULT_MIN_UTXO_VALUE = 1000
DEFAULT_RETRY_DELAY = 1.0


class UTXOSelector:
    """
    Fetches and selects spendable outputs for an address.

    Outpoints handed to a broadcast can be recorded with ``mark_spent``; they
    are excluded from later fetches so that a re-fetch before the explorer
    indexes the spend does not pick the same input twice.
    """

    def __init__(
        self,
        source: UTXOSource,
        min_value: int = DEFAULT_MIN_UTXO_VALUE,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ):
        self.source = source
        self.min_value = min_value
        self.retry_delay = retry_delay
        self._spent: set[tuple[str, int]] = set()

    async def _fetch_from_provider(self, provider: WalletProvider, address: str) -> list[UTXO]:
        try:
            return await provider.get_utxos(address)
        except Exception as e:
            logger.warning(f"{provider.name} UTXO lookup failed, using explorer: {e}")
            return await self._fetch_with_retry(address)

    async def _fetch_with_retry(self, address: str) -> list[UTXO]:
        try:
            return await self.source.get_utxos(address)
        except NetworkError as e:
            logger.warning(f"UTXO fetch failed, retrying in {self.retry_delay}s: {e}")
        await asyncio.sleep(self.retry_delay)
        try:
            return await self.source.get_utxos(address)
        except NetworkError as e:
            logger.error(f"UTXO fetch failed after retry for {format_address(address)}: {e}")
            raise

    async def fetch_spendable(
        self, address: str, provider: WalletProvider | None = None
    ) -> list[UTXO]:
        """
        Fetch the current spendable outputs for address.

        Uses the provider's own UTXO capability when present, the explorer
        otherwise. Raises NetworkError if the explorer fails twice.
        """
        validate_address(address)
        if provider is not None and provider.supports(Capability.GET_UTXOS):
            utxos = await self._fetch_from_provider(provider, address)
        else:
            utxos = await self._fetch_with_retry(address)

        if self._spent:
            reported = {utxo.outpoint for utxo in utxos}
            # The explorer no longer lists these, nothing left to guard against
            self._spent &= reported
            utxos = [utxo for utxo in utxos if utxo.outpoint not in self._spent]

        logger.debug(f"{len(utxos)} spendable outputs for {format_address(address)}")
        return utxos

    def select_one(
        self,
        utxos: Iterable[UTXO],
        min_value: int | None = None,
        confirmed_only: bool = False,
    ) -> UTXO | None:
        """Return the first UTXO in order with value >= min_value, or None."""
        threshold = self.min_value if min_value is None else min_value
        for utxo in utxos:
            if confirmed_only and not utxo.confirmed:
                continue
            if utxo.value >= threshold:
                return utxo
        return None

    async def select_spendable(
        self,
        address: str,
        min_value: int | None = None,
        provider: WalletProvider | None = None,
        confirmed_only: bool = False,
    ) -> UTXO | None:
        utxos = await self.fetch_spendable(address, provider=provider)
        return self.select_one(utxos, min_value=min_value, confirmed_only=confirmed_only)

    def mark_spent(self, *utxos: UTXO) -> None:
        for utxo in utxos:
            self._spent.add(utxo.outpoint)

    def forget_spent(self) -> None:
        self._spent.clear()

    @property
    def spent_outpoints(self) -> frozenset[tuple[str, int]]:
        return frozenset(self._spent)

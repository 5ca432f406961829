"""
Mempool.space-style explorer client.

Supplies the UTXO list, address balance, recommended fee tiers and the
broadcast endpoint. The explorer instance is picked from the address prefix
so that testnet and regtest addresses never hit the mainnet API.
"""

from __future__ import annotations

import re
from typing import Any, Protocol

import httpx
from loguru import logger

from orcwallet.config import Settings, get_settings
from orcwallet.errors import NetworkError, WalletValidationError
from orcwallet.formatting import format_address
from orcwallet.models import UTXO, BalanceInfo

ADDRESS_PATTERN = re.compile(r"[a-zA-Z0-9]{26,90}")
TXID_PATTERN = re.compile(r"[0-9a-fA-F]{64}")


def validate_address(address: str) -> str:
    """Return the address unchanged if it is syntactically plausible."""
    if not isinstance(address, str) or not ADDRESS_PATTERN.fullmatch(address):
        raise WalletValidationError(f"Malformed address: {address!r}")
    return address


def network_for_address(address: str) -> str:
    """
    Infer the explorer network from an address prefix.

    Returns one of "mainnet", "testnet", "testnet4" or "regtest".
    """
    if address.startswith("bcrt1"):
        return "regtest"
    if address.startswith("ms"):
        return "testnet4"
    if address.startswith(("tb1", "2", "m", "n")):
        return "testnet"
    return "mainnet"


class UTXOSource(Protocol):
    async def get_utxos(self, address: str) -> list[UTXO]: ...


class BalanceSource(Protocol):
    async def get_address_balance(self, address: str) -> BalanceInfo: ...


class FeeSource(Protocol):
    async def get_recommended_fees(self, network: str = "mainnet") -> dict[str, Any]: ...


class Broadcaster(Protocol):
    async def broadcast_transaction(self, tx_hex: str, network: str = "mainnet") -> str: ...


class MempoolClient:
    """Async client for a mempool.space compatible REST API."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings()
        self.client = client or httpx.AsyncClient(timeout=self.settings.http_timeout)

    def base_url(self, network: str) -> str:
        urls = {
            "mainnet": self.settings.mempool_api_url,
            "testnet": self.settings.mempool_testnet_api_url,
            "testnet4": self.settings.mempool_testnet4_api_url,
            "regtest": self.settings.mempool_regtest_api_url,
        }
        if network not in urls:
            raise WalletValidationError(f"Unknown network: {network}")
        return urls[network].rstrip("/")

    async def _get_json(self, url: str) -> Any:
        logger.debug(f"GET {url}")
        try:
            response = await self.client.get(url)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e
        except ValueError as e:
            raise NetworkError(f"Malformed JSON from {url}: {e}") from e

    async def get_utxos(self, address: str) -> list[UTXO]:
        validate_address(address)
        url = f"{self.base_url(network_for_address(address))}/address/{address}/utxo"
        payload = await self._get_json(url)
        if not isinstance(payload, list):
            raise NetworkError(f"Expected a UTXO list from {url}")

        utxos: list[UTXO] = []
        for entry in payload:
            try:
                txid = entry["txid"]
                vout = int(entry["vout"])
                value = int(entry["value"])
                status = entry.get("status") or {}
                if not isinstance(status, dict):
                    raise TypeError(f"status is {type(status).__name__}, expected an object")
                confirmed = bool(status.get("confirmed", False))
                block_height = status.get("block_height")
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise NetworkError(f"Malformed UTXO entry from {url}: {e}") from e
            if not TXID_PATTERN.fullmatch(str(txid)) or vout < 0 or value <= 0:
                logger.warning(f"Skipping invalid UTXO entry {txid}:{vout} ({value} sats)")
                continue
            utxos.append(
                UTXO(
                    txid=txid,
                    vout=vout,
                    value=value,
                    scriptpubkey=entry.get("scriptpubkey"),
                    confirmed=confirmed,
                    block_height=block_height,
                )
            )

        logger.debug(f"Found {len(utxos)} UTXOs for {format_address(address)}")
        return utxos

    async def get_address_balance(self, address: str) -> BalanceInfo:
        validate_address(address)
        url = f"{self.base_url(network_for_address(address))}/address/{address}"
        payload = await self._get_json(url)
        try:
            chain = payload["chain_stats"]
            mempool = payload.get("mempool_stats") or {}
            confirmed = int(chain["funded_txo_sum"]) - int(chain["spent_txo_sum"])
            unconfirmed = int(mempool.get("funded_txo_sum", 0)) - int(
                mempool.get("spent_txo_sum", 0)
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise NetworkError(f"Malformed balance response from {url}: {e}") from e
        return BalanceInfo(confirmed=confirmed, unconfirmed=unconfirmed)

    async def get_recommended_fees(self, network: str = "mainnet") -> dict[str, Any]:
        url = f"{self.base_url(network)}/v1/fees/recommended"
        payload = await self._get_json(url)
        if not isinstance(payload, dict):
            raise NetworkError(f"Expected fee tiers from {url}")
        return payload

    async def broadcast_transaction(self, tx_hex: str, network: str = "mainnet") -> str:
        url = f"{self.base_url(network)}/tx"
        try:
            response = await self.client.post(url, content=tx_hex.strip())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NetworkError(f"Broadcast rejected: {e.response.text.strip()}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Broadcast failed: {e}") from e
        txid = response.text.strip()
        logger.info(f"Broadcast transaction: {txid}")
        return txid

    async def close(self) -> None:
        await self.client.aclose()

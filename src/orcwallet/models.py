"""
Core data models for the wallet core.

Chain snapshots (UTXO, balance) are plain dataclasses; caller-constructed
values that cross a validation boundary use Pydantic.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_PAYLOAD_DEPTH = 10


class NetworkType(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    REGTEST = "regtest"

    @classmethod
    def parse(cls, value: str) -> NetworkType:
        """
        Normalize a provider-reported network name.

        Providers disagree on naming: Unisat reports "livenet" for mainnet and
        some builds report "signet"/"testnet4" which are treated as testnet.
        """
        normalized = str(value).strip().lower()
        aliases = {
            "livenet": cls.MAINNET,
            "bitcoin": cls.MAINNET,
            "signet": cls.TESTNET,
            "testnet4": cls.TESTNET,
        }
        if normalized in aliases:
            return aliases[normalized]
        return cls(normalized)


class TransactionKind(str, Enum):
    TOKEN_DEPLOY = "ORC20_DEPLOY"
    TOKEN_TRANSFER = "ORC20_TRANSFER"
    NFT_DEPLOY = "ORC721_DEPLOY"
    NFT_TRANSFER = "ORC721_TRANSFER"


@dataclass(frozen=True)
class UTXO:
    txid: str
    vout: int
    value: int
    scriptpubkey: str | None = None
    confirmed: bool = True
    block_height: int | None = None

    @property
    def outpoint(self) -> tuple[str, int]:
        return (self.txid, self.vout)


@dataclass(frozen=True)
class BalanceInfo:
    """Balance in satoshis as reported by a provider or explorer."""

    confirmed: int
    unconfirmed: int = 0

    @property
    def total(self) -> int:
        return self.confirmed + self.unconfirmed


def validate_json_nesting_depth(
    obj: Any, max_depth: int = MAX_PAYLOAD_DEPTH, depth: int = 0
) -> None:
    """Raise ValueError if obj nests dicts/lists deeper than max_depth."""
    if depth > max_depth:
        raise ValueError(f"Payload nesting depth exceeds maximum of {max_depth}")
    if isinstance(obj, dict):
        for value in obj.values():
            validate_json_nesting_depth(value, max_depth, depth + 1)
    elif isinstance(obj, list):
        for item in obj:
            validate_json_nesting_depth(item, max_depth, depth + 1)


class SigningRequest(BaseModel):
    """A structured transaction intent, consumed once by the signing coordinator."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: TransactionKind = Field(..., alias="type")
    data: Any = None
    fee: int = Field(default=0, ge=0, description="Network fee in sats")
    recipient: str | None = None
    amount: str | None = None
    token_id: str | None = Field(default=None, alias="tokenId")

    @field_validator("data")
    @classmethod
    def validate_data(cls, v: Any) -> Any:
        try:
            json.dumps(v)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Payload is not JSON serializable: {e}") from e
        validate_json_nesting_depth(v)
        return v


class PersistedConnection(BaseModel):
    """Last successful connection, stored so a new session can reconnect silently."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    wallet_name: str = Field(..., min_length=1, alias="walletName")
    address: str = Field(..., min_length=1)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> PersistedConnection:
        return cls.model_validate_json(raw)


class SignedMessage(BaseModel):
    """Canonical message together with the signature produced for it."""

    model_config = ConfigDict(frozen=True)

    message: str
    signature: str
    address: str

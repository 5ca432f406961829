"""
Scoped container for a manually supplied private key.

Holds at most one raw key at a time. The key is mirrored into a
session-scoped store so it can be restored within the same session, and
``clear()`` wipes both copies.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import base58
from loguru import logger

from orcwallet.errors import WalletValidationError
from orcwallet.models import NetworkType
from orcwallet.storage import KeyValueStore, MemoryStore

SESSION_KEY = "temp_private_key"

BASE58_CHARS = "1-9A-HJ-NP-Za-km-z"
# Mainnet WIF starts with 5 (uncompressed) or K/L (compressed),
# testnet WIF with 9 (uncompressed) or c (compressed).
WIF_PATTERN = re.compile(
    rf"^[5KL][{BASE58_CHARS}]{{50,51}}$|^[9c][{BASE58_CHARS}]{{49,50}}$"
)
HEX_KEY_PATTERN = re.compile(r"^[0-9a-fA-F]{64}$")

WIF_VERSIONS = {0x80: NetworkType.MAINNET, 0xEF: NetworkType.TESTNET}


@dataclass(frozen=True)
class DecodedKey:
    secret: bytes
    compressed: bool
    network: NetworkType | None = None

    def __repr__(self) -> str:
        return f"DecodedKey(compressed={self.compressed}, network={self.network})"


def is_valid_private_key(key: object) -> bool:
    """True for a WIF-shaped string or a 64 character hex string."""
    if not isinstance(key, str):
        return False
    candidate = key.strip()
    if not candidate:
        return False
    return bool(WIF_PATTERN.match(candidate) or HEX_KEY_PATTERN.match(candidate))


def decode_private_key(key: str) -> DecodedKey:
    """
    Decode a WIF or raw hex key into its 32-byte secret.

    WIF strings are base58check decoded, so unlike ``is_valid_private_key``
    this also verifies the checksum and version byte.
    """
    candidate = key.strip()
    if HEX_KEY_PATTERN.match(candidate):
        return DecodedKey(secret=bytes.fromhex(candidate), compressed=True)
    if not WIF_PATTERN.match(candidate):
        raise WalletValidationError("Invalid private key format")

    try:
        payload = base58.b58decode_check(candidate)
    except ValueError as e:
        raise WalletValidationError("Invalid WIF checksum") from e

    version, body = payload[0], payload[1:]
    if version not in WIF_VERSIONS:
        raise WalletValidationError(f"Unknown WIF version byte: {version:#04x}")
    if len(body) == 33 and body[-1] == 0x01:
        return DecodedKey(secret=body[:32], compressed=True, network=WIF_VERSIONS[version])
    if len(body) == 32:
        return DecodedKey(secret=body, compressed=False, network=WIF_VERSIONS[version])
    raise WalletValidationError("Invalid WIF payload length")


class PrivateKeyVault:
    """Holds one validated private key; set replaces, clear empties."""

    def __init__(self, session_store: KeyValueStore | None = None):
        self.session_store = session_store if session_store is not None else MemoryStore()
        self._key: str | None = None

    @staticmethod
    def validate(key: object) -> bool:
        return is_valid_private_key(key)

    def set(self, key: str) -> None:
        if not self.validate(key):
            raise WalletValidationError("Invalid private key format")
        self._key = key.strip()
        self.session_store.set(SESSION_KEY, self._key)
        logger.debug("Private key stored for this session")

    def get(self) -> str | None:
        if self._key is not None:
            return self._key

        stored = self.session_store.get(SESSION_KEY)
        if stored is None:
            return None
        if not self.validate(stored):
            logger.warning("Discarding invalid private key found in session store")
            self.session_store.delete(SESSION_KEY)
            return None

        self._key = stored.strip()
        return self._key

    def has_key(self) -> bool:
        return self.get() is not None

    def clear(self) -> None:
        had_key = self._key is not None or self.session_store.get(SESSION_KEY) is not None
        self._key = None
        self.session_store.delete(SESSION_KEY)
        if had_key:
            logger.debug("Private key cleared")

    def __repr__(self) -> str:
        return f"<PrivateKeyVault holding={self._key is not None}>"

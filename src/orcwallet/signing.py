"""
Signing coordinator.

Drives the two signing steps that precede a broadcast: message signing to
authenticate an intent and PSBT signing to move funds. The coordinator never
broadcasts; the signed artifact goes back to the caller, who can discard it
and retry from the signing step if the broadcast fails.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import re
import secrets
import time
from collections.abc import Callable

from coincurve import PrivateKey
from loguru import logger

from orcwallet.connection import ConnectionStateMachine
from orcwallet.errors import SigningError, WalletConnectionError, WalletError, WalletValidationError
from orcwallet.models import SignedMessage, SigningRequest
from orcwallet.state import ConnectionState
from orcwallet.vault import PrivateKeyVault, decode_private_key

PSBT_MAGIC_HEX = "70736274ff"
PSBT_MAGIC_BASE64 = "cHNidP8"
HEX_PATTERN = re.compile(r"^(?:[0-9a-fA-F]{2})+$")


def generate_nonce() -> str:
    return secrets.token_hex(4)


def bitcoin_message_hash(message: str) -> bytes:
    """
    Hash a message using Bitcoin's message signing format.

    Format: SHA256(SHA256("\\x18Bitcoin Signed Message:\\n" + varint(len) + message))
    """
    prefix = b"\x18Bitcoin Signed Message:\n"
    msg_bytes = message.encode("utf-8")

    msg_len = len(msg_bytes)
    if msg_len < 253:
        varint = bytes([msg_len])
    elif msg_len < 0x10000:
        varint = b"\xfd" + msg_len.to_bytes(2, "little")
    elif msg_len < 0x100000000:
        varint = b"\xfe" + msg_len.to_bytes(4, "little")
    else:
        varint = b"\xff" + msg_len.to_bytes(8, "little")

    full_msg = prefix + varint + msg_bytes
    return hashlib.sha256(hashlib.sha256(full_msg).digest()).digest()


def sign_message_with_key(message: str, key: str) -> str:
    """
    Produce a base64 compact signature (65 bytes, header + r + s) for message.

    The header byte is 27 + recovery id, plus 4 for compressed keys, so any
    standard verifier can recover the signing address.
    """
    decoded = decode_private_key(key)
    try:
        private_key = PrivateKey(decoded.secret)
    except ValueError as e:
        raise WalletValidationError("Private key is out of range") from e

    recoverable = private_key.sign_recoverable(bitcoin_message_hash(message), hasher=None)
    header = 27 + recoverable[64] + (4 if decoded.compressed else 0)
    return base64.b64encode(bytes([header]) + recoverable[:64]).decode("ascii")


def validate_psbt(psbt: str) -> str:
    """Return the PSBT stripped of whitespace, or raise WalletValidationError."""
    if not isinstance(psbt, str) or not psbt.strip():
        raise WalletValidationError("PSBT is empty")
    candidate = psbt.strip()

    if HEX_PATTERN.match(candidate):
        if candidate.lower().startswith(PSBT_MAGIC_HEX):
            return candidate
        raise WalletValidationError("Hex PSBT is missing the psbt magic bytes")

    if candidate.startswith(PSBT_MAGIC_BASE64):
        try:
            base64.b64decode(candidate, validate=True)
        except binascii.Error as e:
            raise WalletValidationError(f"Malformed base64 PSBT: {e}") from e
        return candidate

    raise WalletValidationError("PSBT must be hex or base64 encoded")


class SigningCoordinator:
    """Requests signatures from the connected provider (or the vault key)."""

    def __init__(
        self,
        connection: ConnectionStateMachine,
        vault: PrivateKeyVault | None = None,
        clock: Callable[[], float] = time.time,
        nonce_factory: Callable[[], str] = generate_nonce,
    ):
        self.connection = connection
        self.vault = vault or connection.vault
        self.clock = clock
        self.nonce_factory = nonce_factory

    def _require_connection(self) -> ConnectionState:
        state = self.connection.state
        if not state.connected or state.provider is None or state.address is None:
            raise WalletConnectionError("Wallet not connected")
        return state

    def build_signing_message(self, request: SigningRequest, address: str | None = None) -> str:
        """
        Serialize ``{type, data, timestamp, nonce, address}`` for signing.

        The timestamp (milliseconds) and nonce are fresh on every call, so no
        two messages for the same request are identical.
        """
        signer = address or self.connection.address
        if not signer:
            raise WalletConnectionError("No signing address: wallet not connected")
        return json.dumps(
            {
                "type": request.kind.value,
                "data": request.data,
                "timestamp": int(self.clock() * 1000),
                "nonce": self.nonce_factory(),
                "address": signer,
            },
            separators=(",", ":"),
        )

    async def sign_message(self, message: str) -> str:
        state = self._require_connection()
        try:
            signature = await state.provider.sign_message(message, state.address)
        except WalletError:
            raise
        except Exception as e:
            logger.error(f"{state.provider.name} failed to sign message: {e}")
            raise SigningError(f"Message signing failed: {e}") from e
        if not signature:
            raise SigningError("Provider returned an empty signature")
        return signature

    async def sign_psbt(self, psbt: str) -> str:
        state = self._require_connection()
        candidate = validate_psbt(psbt)
        try:
            signed = await state.provider.sign_psbt(candidate)
        except WalletError:
            raise
        except Exception as e:
            logger.error(f"{state.provider.name} failed to sign PSBT: {e}")
            raise SigningError(f"PSBT signing failed: {e}") from e
        if not signed:
            raise SigningError("Provider returned an empty PSBT")
        logger.debug("PSBT signed")
        return signed

    async def sign_request(self, request: SigningRequest) -> SignedMessage:
        """Build the canonical message for request and sign it with the provider."""
        state = self._require_connection()
        message = self.build_signing_message(request, state.address)
        signature = await self.sign_message(message)
        logger.info(f"Signed {request.kind.value} request")
        return SignedMessage(message=message, signature=signature, address=state.address)

    def sign_message_with_vault_key(self, message: str) -> str:
        """Sign locally with the manual private key, for flows without a provider."""
        key = self.vault.get()
        if key is None:
            raise SigningError("No private key available for local signing")
        return sign_message_with_key(message, key)

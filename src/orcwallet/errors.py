"""
Error taxonomy for the wallet core.
"""

from __future__ import annotations


class WalletError(Exception):
    """Base class for every failure raised by the wallet core."""


class WalletConnectionError(WalletError):
    """No provider, empty account list, or provider-side connect failure."""


class WalletValidationError(WalletError):
    """Malformed key, address, PSBT or JSON payload."""


class NetworkError(WalletError):
    """UTXO, fee or balance fetch failure."""


class SigningError(WalletError):
    """Provider rejected or failed a sign request."""


class InvalidTransitionError(WalletError):
    """Event not allowed from the current connection status."""

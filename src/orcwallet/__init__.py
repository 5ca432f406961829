"""
orcwallet - Wallet abstraction and transaction-signing core for ORC protocol clients

Provides provider discovery, connection state, manual key handling, UTXO and
fee utilities, and the signing coordinator.
"""

__version__ = "0.1.0"

from orcwallet.connection import AccountWatcher, ConnectionStateMachine
from orcwallet.errors import (
    InvalidTransitionError,
    NetworkError,
    SigningError,
    WalletConnectionError,
    WalletError,
    WalletValidationError,
)
from orcwallet.fees import FeeEstimator
from orcwallet.mempool import MempoolClient
from orcwallet.models import (
    UTXO,
    BalanceInfo,
    NetworkType,
    PersistedConnection,
    SignedMessage,
    SigningRequest,
    TransactionKind,
)
from orcwallet.providers import (
    Capability,
    MappingEnvironment,
    NullEnvironment,
    OKXProvider,
    ProviderRegistry,
    UnisatProvider,
    WalletProvider,
)
from orcwallet.session import WalletSession
from orcwallet.signing import SigningCoordinator
from orcwallet.state import ConnectionState, ConnectionStatus
from orcwallet.utxo import UTXOSelector
from orcwallet.vault import PrivateKeyVault

__all__ = [
    "AccountWatcher",
    "BalanceInfo",
    "Capability",
    "ConnectionState",
    "ConnectionStateMachine",
    "ConnectionStatus",
    "FeeEstimator",
    "InvalidTransitionError",
    "MappingEnvironment",
    "MempoolClient",
    "NetworkError",
    "NetworkType",
    "NullEnvironment",
    "OKXProvider",
    "PersistedConnection",
    "PrivateKeyVault",
    "ProviderRegistry",
    "SignedMessage",
    "SigningCoordinator",
    "SigningError",
    "SigningRequest",
    "TransactionKind",
    "UTXO",
    "UTXOSelector",
    "UnisatProvider",
    "WalletConnectionError",
    "WalletError",
    "WalletProvider",
    "WalletSession",
    "WalletValidationError",
]

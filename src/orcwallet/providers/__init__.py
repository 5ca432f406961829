"""
Wallet provider implementations.

Available providers:
- UnisatProvider: Unisat extension (direct balance, account-change events)
- OKXProvider: OKX extension (``okxwallet.bitcoin``)
"""

from orcwallet.providers.base import Capability, WalletProvider
from orcwallet.providers.okx import OKXProvider
from orcwallet.providers.registry import (
    EnvironmentProbe,
    MappingEnvironment,
    NullEnvironment,
    ProviderRegistry,
)
from orcwallet.providers.unisat import UnisatProvider

__all__ = [
    "Capability",
    "EnvironmentProbe",
    "MappingEnvironment",
    "NullEnvironment",
    "OKXProvider",
    "ProviderRegistry",
    "UnisatProvider",
    "WalletProvider",
]

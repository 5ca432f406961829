"""
Provider discovery.

Detection is delegated to an environment probe: the host (a browser bridge,
an embedding application, or a test) exposes named capability objects and the
registry turns each one it recognizes into a WalletProvider.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol

from loguru import logger

from orcwallet.providers.base import WalletProvider
from orcwallet.providers.okx import OKXProvider
from orcwallet.providers.unisat import UnisatProvider


class EnvironmentProbe(Protocol):
    def lookup(self, name: str) -> Any | None: ...


class NullEnvironment:
    """Environment without any injected capability objects (CLI, tests, workers)."""

    def lookup(self, name: str) -> Any | None:
        return None


class MappingEnvironment:
    def __init__(self, objects: Mapping[str, Any] | None = None):
        self.objects = dict(objects or {})

    def lookup(self, name: str) -> Any | None:
        return self.objects.get(name)


Detector = Callable[[EnvironmentProbe], WalletProvider | None]


def detect_unisat(environment: EnvironmentProbe) -> WalletProvider | None:
    host = environment.lookup("unisat")
    return UnisatProvider(host) if host is not None else None


def detect_okx(environment: EnvironmentProbe) -> WalletProvider | None:
    host = environment.lookup("okxwallet")
    if host is None:
        return None
    if isinstance(host, Mapping):
        bitcoin = host.get("bitcoin")
    else:
        bitcoin = getattr(host, "bitcoin", None)
    return OKXProvider(bitcoin) if bitcoin is not None else None


class ProviderRegistry:
    """Enumerates the signing providers available in an environment."""

    def __init__(self, environment: EnvironmentProbe | None = None):
        self.environment = environment or NullEnvironment()
        self._detectors: dict[str, Detector] = {
            "Unisat": detect_unisat,
            "OKX": detect_okx,
        }
        self._instances: dict[str, WalletProvider] = {}

    def register(self, name: str, detector: Detector) -> None:
        """Add a detector, replacing any previous one registered under name."""
        self._detectors[name] = detector
        self._instances.pop(name, None)

    def detect(self) -> list[WalletProvider]:
        detected: list[WalletProvider] = []
        for name, detector in self._detectors.items():
            provider = detector(self.environment)
            if provider is None:
                self._instances.pop(name, None)
                continue
            detected.append(self._reuse(name, provider))
        logger.debug(f"Detected providers: {[p.name for p in detected]}")
        return detected

    def _reuse(self, name: str, provider: WalletProvider) -> WalletProvider:
        """Keep one instance per provider for as long as its host object is unchanged."""
        cached = self._instances.get(name)
        if (
            cached is not None
            and type(cached) is type(provider)
            and getattr(cached, "host", None) is getattr(provider, "host", None)
        ):
            return cached
        self._instances[name] = provider
        return provider

    def find(self, name: str) -> WalletProvider | None:
        for provider in self.detect():
            if provider.name == name:
                return provider
        return None

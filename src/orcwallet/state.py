"""
Connection state and its transition table.

The state is a plain value; the only code that changes it is
ConnectionStateMachine, and only through ``transition()``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from orcwallet.errors import InvalidTransitionError
from orcwallet.models import NetworkType
from orcwallet.providers.base import WalletProvider


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ConnectionEvent(str, Enum):
    CONNECT = "connect"
    CONNECT_SUCCEEDED = "connect_succeeded"
    CONNECT_FAILED = "connect_failed"
    DISCONNECT = "disconnect"


TRANSITIONS: dict[tuple[ConnectionStatus, ConnectionEvent], ConnectionStatus] = {
    (ConnectionStatus.DISCONNECTED, ConnectionEvent.CONNECT): ConnectionStatus.CONNECTING,
    (ConnectionStatus.CONNECTED, ConnectionEvent.CONNECT): ConnectionStatus.CONNECTING,
    (ConnectionStatus.CONNECTING, ConnectionEvent.CONNECT_SUCCEEDED): ConnectionStatus.CONNECTED,
    (ConnectionStatus.CONNECTING, ConnectionEvent.CONNECT_FAILED): ConnectionStatus.DISCONNECTED,
    (ConnectionStatus.CONNECTED, ConnectionEvent.DISCONNECT): ConnectionStatus.DISCONNECTED,
    (ConnectionStatus.CONNECTING, ConnectionEvent.DISCONNECT): ConnectionStatus.DISCONNECTED,
    (ConnectionStatus.DISCONNECTED, ConnectionEvent.DISCONNECT): ConnectionStatus.DISCONNECTED,
}


@dataclass(frozen=True)
class ConnectionState:
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    provider: WalletProvider | None = None
    address: str | None = None
    public_key: str | None = None
    network: NetworkType | None = None
    balance: int = 0
    loading: bool = False
    error: str | None = None

    @property
    def connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    def with_balance(self, balance: int) -> ConnectionState:
        if balance < 0:
            raise ValueError(f"Balance cannot be negative: {balance}")
        return replace(self, balance=balance)


def next_status(status: ConnectionStatus, event: ConnectionEvent) -> ConnectionStatus:
    try:
        return TRANSITIONS[(status, event)]
    except KeyError:
        raise InvalidTransitionError(
            f"Event {event.value!r} not allowed while {status.value}"
        ) from None


def transition(
    state: ConnectionState,
    event: ConnectionEvent,
    *,
    provider: WalletProvider | None = None,
    address: str | None = None,
    public_key: str | None = None,
    network: NetworkType | None = None,
    error: str | None = None,
) -> ConnectionState:
    """
    Apply event to state and return the new state.

    Entering CONNECTED requires provider, address, public key and network.
    Every other target status carries no connection-derived fields and a zero
    balance.
    """
    status = next_status(state.status, event)

    if status is ConnectionStatus.CONNECTED:
        if provider is None or not address or not public_key or network is None:
            raise InvalidTransitionError("Connected state requires provider, address, key, network")
        return ConnectionState(
            status=status,
            provider=provider,
            address=address,
            public_key=public_key,
            network=network,
        )

    if status is ConnectionStatus.CONNECTING:
        return ConnectionState(status=status, loading=True)

    return ConnectionState(status=status, error=error)

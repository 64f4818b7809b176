"""Connection provider registry."""

from typing import Callable

from lib.rcon.config import Protocol
from lib.rcon.connections.base import Connection
from lib.rcon.connections.rcon import RconConnection
from lib.rcon.connections.telnet import TelnetConnection
from lib.rcon.connections.webrcon import WebRconConnection

# Dial factory: (address, password, timeout) -> connected Connection
DialFunc = Callable[[str, str, float], Connection]


class ConnectionRegistry:
    """Registry mapping protocols to connection dial factories."""

    def __init__(self, providers: dict[Protocol, DialFunc] | None = None) -> None:
        """Initialize registry.

        Parameters
        ----------
        providers : dict[Protocol, DialFunc] | None, optional
            Dial factories by protocol, by default the built-in providers
        """
        if providers is None:
            providers = {
                Protocol.RCON: RconConnection.dial,
                Protocol.WEB_RCON: WebRconConnection.dial,
                Protocol.TELNET: TelnetConnection.dial,
            }
        self._providers = dict(providers)

    def get(self, protocol: Protocol) -> DialFunc:
        """Get the dial factory for a protocol.

        Unknown protocols fall back to the default RCON provider.

        Parameters
        ----------
        protocol : Protocol
            Protocol to dial

        Returns
        -------
        DialFunc
            Dial factory

        Raises
        ------
        ValueError
            If neither the protocol nor the RCON fallback is registered
        """
        if protocol in self._providers:
            return self._providers[protocol]

        if Protocol.RCON not in self._providers:
            raise ValueError(f"No connection provider for {protocol.value}")

        return self._providers[Protocol.RCON]

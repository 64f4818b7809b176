"""Protocol dispatch and ownership of the single remote connection."""

from lib.rcon.config import Session
from lib.rcon.connections.base import Connection
from lib.rcon.connections.registry import ConnectionRegistry
from lib.rcon.exceptions import AuthenticationError, ConnectionError, RconError
from lib.rcon.logging import log_debug, log_info


class Dispatcher:
    """Owner of the connection used for a run.

    The connection is dialed lazily on first use and reused by later
    commands until it is closed.
    """

    def __init__(self, registry: ConnectionRegistry | None = None) -> None:
        """Initialize dispatcher.

        Parameters
        ----------
        registry : ConnectionRegistry | None, optional
            Connection providers, by default the built-in ones
        """
        self.registry = registry or ConnectionRegistry()
        self._connection: Connection | None = None

    @property
    def connected(self) -> bool:
        """Check if a connection is held.

        Returns
        -------
        bool
            True if connected
        """
        return self._connection is not None

    def dial(self, session: Session) -> None:
        """Connect to the session's server unless already connected.

        Parameters
        ----------
        session : Session
            Session to connect with

        Raises
        ------
        AuthenticationError
            If connecting or authenticating fails
        """
        if self._connection is not None:
            return

        protocol = session.protocol
        factory = self.registry.get(protocol)
        log_debug(f"Dialing over {protocol.value}", address=session.address, protocol=protocol.value)

        try:
            self._connection = factory(session.address, session.password, session.timeout)
        except AuthenticationError:
            self._connection = None
            raise
        except RconError as e:
            self._connection = None
            raise AuthenticationError(e.message, address=session.address) from e

        log_info("Connected", address=session.address, protocol=protocol.value)

    def execute(self, command: str) -> str:
        """Execute command on the held connection.

        Parameters
        ----------
        command : str
            Command to execute

        Returns
        -------
        str
            Raw response text

        Raises
        ------
        ConnectionError
            If not connected
        """
        if self._connection is None:
            raise ConnectionError("Not connected to server")

        return self._connection.execute(command)

    def close(self) -> None:
        """Close the held connection, if any."""
        if self._connection is None:
            return

        connection, self._connection = self._connection, None
        connection.close()

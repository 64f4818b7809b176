"""Base remote connection class."""

from abc import ABC, abstractmethod

from lib.rcon.exceptions import ConnectionError


class Connection(ABC):
    """Base class for remote console connections.

    A connection is dialed and authenticated by its ``dial`` factory and
    then executes commands until closed.
    """

    protocol: str = "unknown"

    def __init__(self, address: str, password: str, timeout: float) -> None:
        """Initialize connection.

        Parameters
        ----------
        address : str
            Remote server host and port
        password : str
            Remote server password
        timeout : float
            Dial timeout and per-call deadline in seconds
        """
        self.address = address
        self.password = password
        self.timeout = timeout

    @classmethod
    @abstractmethod
    def dial(cls, address: str, password: str, timeout: float) -> "Connection":
        """Connect and authenticate to the remote server.

        Parameters
        ----------
        address : str
            Remote server host and port
        password : str
            Remote server password
        timeout : float
            Dial timeout and per-call deadline in seconds

        Returns
        -------
        Connection
            Authenticated connection
        """
        pass

    @abstractmethod
    def execute(self, command: str) -> str:
        """Execute command on the remote server.

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
        CommandError
            If the server rejects the command, with any partial response
        ConnectionError
            If the transport fails
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the connection."""
        pass

    def __enter__(self) -> "Connection":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()


def split_address(address: str) -> tuple[str, int]:
    """Split a ``host:port`` address.

    Parameters
    ----------
    address : str
        Address in ``host:port`` form

    Returns
    -------
    tuple[str, int]
        Host and port

    Raises
    ------
    ConnectionError
        If the address has no valid port
    """
    host, sep, port = address.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ConnectionError(f"invalid address {address!r}, expected host:port", address=address)

    return host.strip("[]"), int(port)

"""Custom exceptions for the remote console client.

Every error raised across a phase boundary carries a short phase tag
(``auth``, ``execute``, ``log``, ``config``) so the caller can tell the
failing phase from the message alone.
"""


class RconError(Exception):
    """Base exception for all remote console errors."""

    phase: str | None = None

    def __init__(self, message: str, address: str | None = None) -> None:
        """Initialize remote console error.

        Parameters
        ----------
        message : str
            Error message
        address : str | None, optional
            Remote server address if applicable, by default None
        """
        super().__init__(message)
        self.message = message
        self.address = address

    def __str__(self) -> str:
        """Return string representation of error."""
        if self.phase:
            return f"{self.phase}: {self.message}"
        return self.message


class ConfigError(RconError):
    """Raised when the session cannot be resolved from flags and config."""

    phase = "config"


class CommandNotSetError(ConfigError):
    """Raised when there is no command to execute."""

    def __init__(self, message: str = "command is not set", address: str | None = None) -> None:
        super().__init__(message, address)


class ConnectionError(RconError):
    """Raised when the transport to the remote server fails."""

    pass


class TimeoutError(ConnectionError):
    """Raised when a dial or a command exceeds its deadline."""

    def __init__(
        self,
        message: str,
        address: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize timeout error.

        Parameters
        ----------
        message : str
            Error message
        address : str | None, optional
            Remote server address if applicable, by default None
        timeout : float | None, optional
            Timeout value in seconds, by default None
        """
        super().__init__(message, address)
        self.timeout = timeout


class AuthenticationError(RconError):
    """Raised when dialing or authenticating to the remote server fails."""

    phase = "auth"


class CommandError(RconError):
    """Raised when command execution fails.

    The remote side may have answered before flagging the failure, so the
    partial response travels with the error.
    """

    phase = "execute"

    def __init__(
        self,
        message: str,
        address: str | None = None,
        command: str | None = None,
        response: str = "",
    ) -> None:
        """Initialize command error.

        Parameters
        ----------
        message : str
            Error message
        address : str | None, optional
            Remote server address if applicable, by default None
        command : str | None, optional
            Command that failed, by default None
        response : str, optional
            Response text received before the failure, by default ""
        """
        super().__init__(message, address)
        self.command = command
        self.response = response


class LogError(RconError):
    """Raised when a command/response pair cannot be written to the log."""

    phase = "log"

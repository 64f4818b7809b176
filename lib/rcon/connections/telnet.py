"""Telnet remote console connection using pexpect."""

import re
import socket
import time
from typing import IO

import click
import pexpect
from pexpect.fdpexpect import fdspawn

from lib.rcon.config import COMMAND_QUIT, DEFAULT_TIMEOUT
from lib.rcon.connections.base import Connection, split_address
from lib.rcon.exceptions import (
    AuthenticationError,
    CommandError,
    ConnectionError,
    TimeoutError,
)
from lib.rcon.logging import log_debug

PASSWORD_PROMPT = "Please enter password:"
AUTH_SUCCESS = "Logon successful."
AUTH_FAILED = "Password incorrect"
EXIT_COMMAND = "exit"

# Output is considered complete once the server stays quiet this long
SETTLE_DELAY = 0.3
READ_SIZE = 4096


class TelnetConnection(Connection):
    """Telnet remote console connection (7 Days to Die style servers)."""

    protocol = "telnet"

    def __init__(self, address: str, password: str, timeout: float) -> None:
        super().__init__(address, password, timeout)
        self.process: fdspawn | None = None
        self.banner = ""

    @classmethod
    def dial(cls, address: str, password: str, timeout: float) -> "TelnetConnection":
        """Connect to the telnet console and log in.

        Raises
        ------
        ConnectionError
            If connection fails
        AuthenticationError
            If the password is rejected
        TimeoutError
            If the server does not answer in time
        """
        conn = cls(address, password, timeout)
        conn.connect()
        return conn

    def connect(self) -> None:
        """Open the socket and authenticate."""
        host, port = split_address(self.address)

        try:
            sock = socket.create_connection((host, port), timeout=self.timeout)
        except socket.timeout as e:
            raise TimeoutError(
                f"Connection timeout after {self.timeout}s",
                address=self.address,
                timeout=self.timeout,
            ) from e
        except OSError as e:
            raise ConnectionError(f"Connection failed: {e}", address=self.address) from e

        # The spawn owns the descriptor from here on and decodes reads as text
        sock.setblocking(True)
        self.process = fdspawn(
            sock.detach(),
            timeout=self.timeout,
            encoding="utf-8",
            codec_errors="replace",
        )

        try:
            self._authenticate()
            self.banner = self._read_output(wait=SETTLE_DELAY)
        except (AuthenticationError, ConnectionError):
            self._close_socket()
            raise
        except OSError as e:
            self._close_socket()
            raise ConnectionError(f"Login failed: {e}", address=self.address) from e

    def _authenticate(self) -> None:
        index = self.process.expect([PASSWORD_PROMPT, pexpect.EOF, pexpect.TIMEOUT])
        if index == 1:
            raise ConnectionError("Connection closed before login", address=self.address)
        if index == 2:
            raise TimeoutError(
                f"No password prompt after {self.timeout}s",
                address=self.address,
                timeout=self.timeout,
            )

        self.process.send(self.password + "\r\n")

        index = self.process.expect([AUTH_SUCCESS, AUTH_FAILED, pexpect.EOF, pexpect.TIMEOUT])
        if index == 1:
            raise AuthenticationError("authentication failed", address=self.address)
        if index == 2:
            raise AuthenticationError("Connection closed during authentication", address=self.address)
        if index == 3:
            raise TimeoutError(
                f"Authentication timeout after {self.timeout}s",
                address=self.address,
                timeout=self.timeout,
            )

    def execute(self, command: str) -> str:
        """Execute command and return everything the server printed for it."""
        if not command:
            raise CommandError("command is not set", address=self.address, command=command)

        if self.process is None:
            raise ConnectionError("Not connected to server", address=self.address)

        # Drop anything the server logged between commands
        self.process.buffer = ""

        try:
            self.process.send(command + "\r\n")
        except OSError as e:
            raise ConnectionError(f"Write failed: {e}", address=self.address) from e

        output = self._read_output(wait=self.timeout, command=command)

        # Remove command echo
        echo = rf"^.*Executing command '{re.escape(command)}' by Telnet from .*$\n?"
        output = re.sub(echo, "", output, flags=re.MULTILINE)

        return output.strip()

    def close(self) -> None:
        """Log out and close the socket."""
        if self.process is None:
            return

        try:
            self.process.send(EXIT_COMMAND + "\r\n")
        except OSError as e:
            log_debug(f"Logout failed: {e}", address=self.address)
        finally:
            self._close_socket()

    def _close_socket(self) -> None:
        try:
            self.process.close()
        except OSError as e:
            log_debug(f"Socket close failed: {e}", address=self.address)
        finally:
            self.process = None

    def _read_output(self, wait: float, command: str | None = None) -> str:
        """Read until the server goes quiet.

        Parameters
        ----------
        wait : float
            Seconds to wait for the first chunk
        command : str | None, optional
            Command being executed; when set, silence or a closed connection
            before any output is an error, by default None

        Returns
        -------
        str
            Received text with normalized line endings
        """
        chunks = [self.process.buffer]
        self.process.buffer = ""
        received = bool(chunks[0])
        deadline = time.monotonic() + self.timeout

        while True:
            try:
                chunks.append(self.process.read_nonblocking(READ_SIZE, timeout=wait))
                received = True
            except pexpect.TIMEOUT:
                if received or command is None:
                    break
                raise TimeoutError(
                    f"Command timeout: {command}",
                    address=self.address,
                    timeout=self.timeout,
                )
            except pexpect.EOF:
                if received or command is None:
                    break
                raise ConnectionError(
                    "Connection closed during command execution",
                    address=self.address,
                )
            except OSError as e:
                raise ConnectionError(f"Read failed: {e}", address=self.address) from e

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            wait = min(SETTLE_DELAY, remaining)

        return "".join(chunks).replace("\r\n", "\n")


def dial_interactive(
    reader: IO[str],
    writer: IO[str],
    address: str,
    password: str,
    timeout: float = DEFAULT_TIMEOUT,
) -> None:
    """Run an interactive telnet session on the given streams.

    Lines from ``reader`` are sent as commands until the quit token,
    ``exit`` or the end of input.

    Parameters
    ----------
    reader : IO[str]
        Input stream
    writer : IO[str]
        Output stream
    address : str
        Remote server host and port
    password : str
        Remote server password
    timeout : float, optional
        Dial timeout and per-call deadline, by default DEFAULT_TIMEOUT
    """
    conn = TelnetConnection.dial(address, password, timeout)

    try:
        if conn.banner.strip():
            click.echo(conn.banner.strip(), file=writer)
        click.echo(f"Waiting commands for {address} (or type {COMMAND_QUIT} to exit)", file=writer)
        click.echo("> ", file=writer, nl=False)

        while True:
            line = reader.readline()
            if not line:
                break

            command = line.strip()
            if command in (COMMAND_QUIT, EXIT_COMMAND):
                break

            if command:
                output = conn.execute(command)
                if output:
                    click.echo(output, file=writer)

            click.echo("> ", file=writer, nl=False)
    finally:
        conn.close()

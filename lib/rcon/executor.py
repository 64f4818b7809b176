"""Command execution against a remote console session."""

from typing import IO, Callable

import click

from lib.rcon.colors import normalize
from lib.rcon.config import Protocol, Session
from lib.rcon.connections.telnet import dial_interactive
from lib.rcon.dispatcher import Dispatcher
from lib.rcon.exceptions import CommandError, CommandNotSetError, LogError, RconError
from lib.rcon.interactive import InteractiveLoop
from lib.rcon.logging import log_debug, log_warn, write_command_log

# Written between responses when several commands run in one batch
SEPARATOR = "--------"

# (reader, writer, address, password, timeout)
TelnetInteractiveFunc = Callable[[IO[str], IO[str], str, str, float], None]


class Executor:
    """Runs commands on the remote server and prints the responses."""

    def __init__(
        self,
        reader: IO[str] | None = None,
        writer: IO[str] | None = None,
        dispatcher: Dispatcher | None = None,
        telnet_interactive: TelnetInteractiveFunc | None = None,
        color: bool | None = None,
    ) -> None:
        """Initialize executor.

        Parameters
        ----------
        reader : IO[str] | None, optional
            Input stream for interactive mode, by default stdin
        writer : IO[str] | None, optional
            Output stream for responses, by default stdout
        dispatcher : Dispatcher | None, optional
            Connection owner, by default a new Dispatcher
        telnet_interactive : TelnetInteractiveFunc | None, optional
            Interactive telnet session runner, by default ``dial_interactive``
        color : bool | None, optional
            Force or suppress ANSI output, by default only on terminals
        """
        self.reader = reader if reader is not None else click.get_text_stream("stdin")
        self.writer = writer if writer is not None else click.get_text_stream("stdout")
        self.dispatcher = dispatcher or Dispatcher()
        self.telnet_interactive = telnet_interactive or dial_interactive
        self.color = color

    def echo(self, message: str = "", nl: bool = True) -> None:
        """Write a message to the output stream."""
        click.echo(message, file=self.writer, nl=nl, color=self.color)

    def execute_all(self, session: Session, *commands: str) -> None:
        """Execute commands in order and print their responses.

        Parameters
        ----------
        session : Session
            Session to execute in
        *commands : str
            Commands to execute

        Raises
        ------
        CommandNotSetError
            If no commands are given
        AuthenticationError
            If the connection cannot be established
        CommandError
            If a command fails and errors are not skipped
        """
        if not commands:
            raise CommandNotSetError(address=session.address)

        try:
            self.dispatcher.dial(session)

            for i, command in enumerate(commands):
                self.execute(session, command)

                if i + 1 != len(commands):
                    self.echo(SEPARATOR)
        finally:
            # WebSocket RCON connections are not kept alive between calls
            if session.protocol is Protocol.WEB_RCON:
                self._close_quietly(session)

    def execute(self, session: Session, command: str) -> None:
        """Execute one command and print its response.

        Parameters
        ----------
        session : Session
            Session to execute in
        command : str
            Command to execute

        Raises
        ------
        CommandNotSetError
            If the command is empty
        CommandError
            If the command fails and errors are not skipped
        """
        if command == "":
            raise CommandNotSetError(address=session.address)

        log_debug(f"Executing command: {command}", address=session.address, command=command)

        response = ""
        error: CommandError | None = None

        try:
            response = self.dispatcher.execute(command)
        except CommandError as e:
            response, error = e.response, e
        except RconError as e:
            error = CommandError(e.message, address=session.address, command=command)
            error.__cause__ = e

        if response:
            response = normalize(response.strip(), strip=session.strip_colors)
            self.echo(response)

        if error is not None:
            if not session.skip_errors:
                raise error
            log_warn(f"Skipping failed command: {command}", address=session.address, command=command)
            self.echo(str(error))

        try:
            write_command_log(session.log, session.address, command, response)
        except LogError as e:
            self.echo(str(e))

    def interactive(self, session: Session) -> None:
        """Read commands from the input stream until quit.

        Parameters
        ----------
        session : Session
            Session to execute in, missing fields are prompted for
        """
        InteractiveLoop(self, session).run()

    def close(self) -> None:
        """Close the connection to the remote server."""
        self.dispatcher.close()

    def _close_quietly(self, session: Session) -> None:
        try:
            self.dispatcher.close()
        except RconError as e:
            log_warn(f"Failed to close connection: {e}", address=session.address)

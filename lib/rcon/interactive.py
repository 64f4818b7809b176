"""Interactive mode: prompt for missing session fields, then read commands."""

from enum import Enum
from typing import TYPE_CHECKING

from lib.rcon.config import COMMAND_QUIT, Protocol, Session
from lib.rcon.logging import log_debug

if TYPE_CHECKING:
    from lib.rcon.executor import Executor

PROMPT = "> "


class State(Enum):
    """Interactive loop states."""

    PROMPT_ADDRESS = "prompt_address"
    PROMPT_PASSWORD = "prompt_password"
    PROMPT_PROTOCOL = "prompt_protocol"
    CONNECTING = "connecting"
    AWAITING_COMMAND = "awaiting_command"
    TERMINATED = "terminated"


class InteractiveLoop:
    """Single-threaded read loop driven by explicit state transitions.

    Each ``step`` handles the current state and returns the next one.
    Errors from dialing or executing propagate and end the loop.
    """

    def __init__(self, executor: "Executor", session: Session) -> None:
        """Initialize interactive loop.

        Parameters
        ----------
        executor : Executor
            Executor providing the streams and the command execution
        session : Session
            Session to fill in and execute commands in
        """
        self.executor = executor
        self.session = session
        self.state = State.PROMPT_ADDRESS

    def run(self) -> None:
        """Run until the loop terminates."""
        while self.state is not State.TERMINATED:
            self.state = self.step()

    def step(self) -> State:
        """Handle the current state.

        Returns
        -------
        State
            Next state
        """
        handlers = {
            State.PROMPT_ADDRESS: self._prompt_address,
            State.PROMPT_PASSWORD: self._prompt_password,
            State.PROMPT_PROTOCOL: self._prompt_protocol,
            State.CONNECTING: self._connect,
            State.AWAITING_COMMAND: self._await_command,
        }
        log_debug(f"Interactive state: {self.state.value}", address=self.session.address or None)
        return handlers[self.state]()

    def _prompt_address(self) -> State:
        if not self.session.address:
            self.session.address = self._read_token("Enter remote host and port [ip:port]: ")
        return State.PROMPT_PASSWORD

    def _prompt_password(self) -> State:
        if not self.session.password:
            self.session.password = self._read_token("Enter password: ")
        return State.PROMPT_PROTOCOL

    def _prompt_protocol(self) -> State:
        if not self.session.type:
            self.session.type = self._read_token("Enter protocol type (empty for rcon): ")
        return State.CONNECTING

    def _connect(self) -> State:
        session = self.session
        protocol = session.protocol

        if protocol is Protocol.TELNET:
            self.executor.telnet_interactive(
                self.executor.reader,
                self.executor.writer,
                session.address,
                session.password,
                session.timeout,
            )
            return State.TERMINATED

        if protocol is Protocol.UNKNOWN:
            allowed = ", ".join(f'"{name}"' for name in Protocol.identifiers()[:-1])
            self.executor.echo(
                f'Unsupported protocol type ("{session.type}"). '
                f'Allowed {allowed} and "{Protocol.identifiers()[-1]}" protocols'
            )
            return State.TERMINATED

        self.executor.dispatcher.dial(session)
        self.executor.echo(f"Waiting commands for {session.address} (or type {COMMAND_QUIT} to exit)")
        self.executor.echo(PROMPT, nl=False)
        return State.AWAITING_COMMAND

    def _await_command(self) -> State:
        line = self.executor.reader.readline()
        if not line:
            return State.TERMINATED

        command = line.rstrip("\r\n")
        if command:
            if command == COMMAND_QUIT:
                return State.TERMINATED

            self.executor.execute_all(self.session, command)

        self.executor.echo(PROMPT, nl=False)
        return State.AWAITING_COMMAND

    def _read_token(self, prompt: str) -> str:
        """Print a prompt and read the first word of the next input line."""
        self.executor.echo(prompt, nl=False)
        words = self.executor.reader.readline().split()
        return words[0] if words else ""

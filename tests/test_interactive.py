"""Tests for interactive mode."""

import io

import pytest

from lib.rcon.config import Session
from lib.rcon.dispatcher import Dispatcher
from lib.rcon.exceptions import AuthenticationError, CommandError, ConnectionError
from lib.rcon.executor import Executor
from lib.rcon.interactive import PROMPT, InteractiveLoop, State
from tests.fake_connection import FakeDialer

WAITING = "Waiting commands for 127.0.0.1:16260 (or type :q to exit)\n"


def test_interactive_empty_line_then_quit(session: Session) -> None:
    """Test empty line re-prompts and quit ends without executing."""
    dialer = FakeDialer()
    executor, out = make_executor(dialer, "\n:q\n")

    executor.interactive(session)

    assert out.getvalue() == f"{WAITING}{PROMPT}{PROMPT}"
    assert out.getvalue().count(PROMPT) == 2
    assert dialer.commands == []


def test_interactive_executes_lines(session: Session) -> None:
    """Test each line runs as a single command batch."""
    dialer = FakeDialer()
    executor, out = make_executor(dialer, "say hi\nlist\n:q\n")

    executor.interactive(session)

    assert dialer.commands == ["say hi", "list"]
    assert len(dialer.dials) == 1
    assert out.getvalue() == f"{WAITING}{PROMPT}Command: say hi\n{PROMPT}Command: list\n{PROMPT}"


def test_interactive_ends_at_eof(session: Session) -> None:
    """Test end of input terminates cleanly."""
    dialer = FakeDialer()
    executor, _ = make_executor(dialer, "list\n")

    executor.interactive(session)

    assert dialer.commands == ["list"]


def test_interactive_command_error_terminates(session: Session) -> None:
    """Test a failed command ends the session with the error."""

    def handler(command: str) -> str:
        raise CommandError("Unknown command")

    dialer = FakeDialer(handler=handler)
    executor, _ = make_executor(dialer, "bad\nlist\n")

    with pytest.raises(CommandError):
        executor.interactive(session)

    assert dialer.commands == ["bad"]


def test_interactive_skip_errors_continues(session: Session) -> None:
    """Test skip-errors keeps the loop alive."""

    def handler(command: str) -> str:
        if command == "bad":
            raise CommandError("Unknown command")
        return "ok"

    session.skip_errors = True
    dialer = FakeDialer(handler=handler)
    executor, out = make_executor(dialer, "bad\nlist\n:q\n")

    executor.interactive(session)

    assert dialer.commands == ["bad", "list"]
    assert "execute: Unknown command\n" in out.getvalue()


def test_interactive_dial_failure(session: Session) -> None:
    """Test dial failure ends the session before reading commands."""
    executor, out = make_executor(FakeDialer(error=ConnectionError("Connection refused")), "list\n")

    with pytest.raises(AuthenticationError):
        executor.interactive(session)

    assert out.getvalue() == ""


def test_interactive_prompts_missing_fields() -> None:
    """Test address, password and protocol are prompted for."""
    dialer = FakeDialer()
    executor, out = make_executor(dialer, "127.0.0.1:16260\nsecret extra\n\n:q\n")
    session = Session()

    executor.interactive(session)

    assert session.address == "127.0.0.1:16260"
    assert session.password == "secret"
    assert session.type == ""
    assert dialer.dials == [("127.0.0.1:16260", "secret", 10.0)]
    assert out.getvalue() == (
        "Enter remote host and port [ip:port]: "
        "Enter password: "
        "Enter protocol type (empty for rcon): "
        f"{WAITING}{PROMPT}"
    )


def test_interactive_telnet_handoff(session: Session) -> None:
    """Test telnet sessions bypass the dispatcher."""
    calls = []

    def telnet_interactive(reader, writer, address, password, timeout) -> None:
        calls.append((address, password, timeout))
        assert reader.readline() == "version\n"

    session.type = "telnet"
    dialer = FakeDialer()
    executor, _ = make_executor(dialer, "version\n:q\n", telnet_interactive=telnet_interactive)

    executor.interactive(session)

    assert calls == [("127.0.0.1:16260", "pw", 10.0)]
    assert dialer.dials == []


def test_interactive_unsupported_protocol(session: Session) -> None:
    """Test unknown protocols print a diagnostic and exit cleanly."""
    session.type = "ssh"
    dialer = FakeDialer()
    executor, out = make_executor(dialer, "list\n")

    executor.interactive(session)

    assert out.getvalue() == (
        'Unsupported protocol type ("ssh"). Allowed "rcon", "web" and "telnet" protocols\n'
    )
    assert dialer.dials == []


def test_state_transitions_skip_filled_prompts(session: Session) -> None:
    """Test prompt states only read input for empty fields."""
    executor, out = make_executor(FakeDialer(), "")
    loop = InteractiveLoop(executor, session)

    assert loop.step() is State.PROMPT_PASSWORD
    loop.state = State.PROMPT_PASSWORD
    assert loop.step() is State.PROMPT_PROTOCOL
    loop.state = State.PROMPT_PROTOCOL
    session.type = "rcon"
    assert loop.step() is State.CONNECTING
    assert out.getvalue() == ""


def test_state_awaiting_command(session: Session) -> None:
    """Test awaiting command state exits."""
    dialer = FakeDialer()
    executor, _ = make_executor(dialer, "\nlist\n:q\n")
    executor.dispatcher.dial(session)
    loop = InteractiveLoop(executor, session)
    loop.state = State.AWAITING_COMMAND

    assert loop.step() is State.AWAITING_COMMAND
    assert loop.step() is State.AWAITING_COMMAND
    assert loop.step() is State.TERMINATED
    assert dialer.commands == ["list"]


def make_executor(
    dialer: FakeDialer,
    text: str,
    telnet_interactive=None,
) -> tuple[Executor, io.StringIO]:
    """Create an executor reading from text."""
    out = io.StringIO()
    executor = Executor(
        reader=io.StringIO(text),
        writer=out,
        dispatcher=Dispatcher(dialer.registry()),
        telnet_interactive=telnet_interactive,
    )
    return executor, out


@pytest.fixture
def session() -> Session:
    """Create session fixture."""
    return Session(address="127.0.0.1:16260", password="pw", type="rcon")

"""Tests for command execution."""

import io
from pathlib import Path

import pytest

from lib.rcon.colors import RESET
from lib.rcon.config import Session
from lib.rcon.dispatcher import Dispatcher
from lib.rcon.exceptions import (
    AuthenticationError,
    CommandError,
    CommandNotSetError,
    ConnectionError,
)
from lib.rcon.executor import SEPARATOR, Executor
from tests.fake_connection import FakeDialer


def failing_handler(command: str) -> str:
    """Fail on commands starting with "bad"."""
    if command.startswith("bad"):
        raise CommandError("Unknown command", command=command, response="§cno such command")
    return f"ok {command}"


def test_execute_all_prints_separated_responses(session: Session, tmp_path: Path) -> None:
    """Test two commands are printed with one separator and logged as rendered."""
    session.log = str(tmp_path / "logs" / "rcon.log")
    dialer = FakeDialer()
    executor, out = make_executor(dialer)

    executor.execute_all(session, "say hi", "list")

    assert out.getvalue() == f"Command: say hi\n{SEPARATOR}\nCommand: list\n"
    assert dialer.commands == ["say hi", "list"]

    log = Path(session.log).read_text()
    assert f"127.0.0.1:16260: say hi\nCommand: say hi{RESET}\n\n" in log
    assert f"127.0.0.1:16260: list\nCommand: list{RESET}\n\n" in log


@pytest.mark.parametrize("count", [1, 2, 5])
def test_execute_all_separator_count(session: Session, count: int) -> None:
    """Test n commands produce n-1 separators in input order."""
    dialer = FakeDialer()
    executor, out = make_executor(dialer)
    commands = [f"cmd{i}" for i in range(count)]

    executor.execute_all(session, *commands)

    lines = out.getvalue().splitlines()
    assert lines.count(SEPARATOR) == count - 1
    assert lines[0] != SEPARATOR
    assert lines[-1] != SEPARATOR
    assert dialer.commands == commands


def test_execute_all_without_commands(session: Session) -> None:
    """Test empty batch fails before any I/O."""
    dialer = FakeDialer()
    executor, out = make_executor(dialer)

    with pytest.raises(CommandNotSetError, match="command is not set"):
        executor.execute_all(session)

    assert dialer.dials == []
    assert out.getvalue() == ""


def test_execute_empty_command(session: Session) -> None:
    """Test empty command string."""
    executor, _ = make_executor(FakeDialer())

    with pytest.raises(CommandNotSetError):
        executor.execute_all(session, "")


def test_execute_all_dial_failure(session: Session) -> None:
    """Test dial failure aborts the batch."""
    dialer = FakeDialer(error=ConnectionError("Connection refused"))
    executor, out = make_executor(dialer)

    with pytest.raises(AuthenticationError):
        executor.execute_all(session, "list")

    assert out.getvalue() == ""


def test_execute_all_stops_on_error(session: Session, tmp_path: Path) -> None:
    """Test a failing command aborts the rest of the batch."""
    session.log = str(tmp_path / "rcon.log")
    dialer = FakeDialer(handler=failing_handler)
    executor, out = make_executor(dialer)

    with pytest.raises(CommandError) as exc_info:
        executor.execute_all(session, "one", "bad two", "three")

    assert str(exc_info.value) == "execute: Unknown command"
    assert dialer.commands == ["one", "bad two"]
    # The partial response is still shown
    assert out.getvalue() == f"ok one\n{SEPARATOR}\nno such command\n"
    assert Path(session.log).read_text().count("127.0.0.1:16260:") == 1


def test_execute_all_skip_errors(session: Session, tmp_path: Path) -> None:
    """Test skipped errors are printed and the batch continues."""
    session.log = str(tmp_path / "rcon.log")
    session.skip_errors = True
    dialer = FakeDialer(handler=failing_handler)
    executor, out = make_executor(dialer)

    executor.execute_all(session, "one", "bad two", "three")

    assert dialer.commands == ["one", "bad two", "three"]
    assert out.getvalue() == (
        f"ok one\n{SEPARATOR}\nno such command\nexecute: Unknown command\n{SEPARATOR}\nok three\n"
    )

    log = Path(session.log).read_text()
    assert "127.0.0.1:16260: one\n" in log
    assert "127.0.0.1:16260: three\n" in log


def test_execute_wraps_transport_errors(session: Session) -> None:
    """Test transport failures are reported as execute errors."""

    def handler(command: str) -> str:
        raise ConnectionError("Connection closed by server")

    executor, _ = make_executor(FakeDialer(handler=handler))

    with pytest.raises(CommandError) as exc_info:
        executor.execute_all(session, "list")

    assert str(exc_info.value) == "execute: Connection closed by server"
    assert isinstance(exc_info.value.__cause__, ConnectionError)


def test_execute_log_failure_is_not_fatal(session: Session, tmp_path: Path) -> None:
    """Test log write failures are printed but do not abort."""
    blocker = tmp_path / "file"
    blocker.write_text("")
    session.log = str(blocker / "rcon.log")
    executor, out = make_executor(FakeDialer())

    executor.execute_all(session, "one", "two")

    lines = out.getvalue().splitlines()
    assert lines[0] == "Command: one"
    assert lines[1].startswith("log: failed to write")
    assert lines[2] == SEPARATOR
    assert lines[3] == "Command: two"


def test_execute_trims_and_normalizes(session: Session) -> None:
    """Test responses are trimmed and color codes rendered."""
    executor, out = make_executor(FakeDialer(handler=lambda command: "  §aThere are 0 players\n"), color=True)

    executor.execute_all(session, "list")

    assert out.getvalue() == "\033[92mThere are 0 players\033[0m\n"


def test_execute_strip_colors(session: Session) -> None:
    """Test strip mode prints plain text."""
    session.strip_colors = True
    executor, out = make_executor(FakeDialer(handler=lambda command: "§aThere are 0 players"), color=True)

    executor.execute_all(session, "list")

    assert out.getvalue() == "There are 0 players\n"


def test_execute_empty_response_prints_nothing(session: Session) -> None:
    """Test empty responses are not printed, separators still are."""
    executor, out = make_executor(FakeDialer(handler=lambda command: ""))

    executor.execute_all(session, "save", "save")

    assert out.getvalue() == f"{SEPARATOR}\n"


def test_connection_reused_between_batches(session: Session) -> None:
    """Test rcon connections persist across calls."""
    dialer = FakeDialer()
    executor, _ = make_executor(dialer)

    executor.execute_all(session, "one")
    executor.execute_all(session, "two")

    assert len(dialer.dials) == 1
    assert not dialer.connections[0].closed

    executor.close()
    assert dialer.connections[0].closed


def test_web_rcon_closed_after_each_batch(session: Session) -> None:
    """Test WebSocket RCON connections are closed after every call."""
    session.type = "web"
    dialer = FakeDialer()
    executor, _ = make_executor(dialer)

    executor.execute_all(session, "one")
    executor.execute_all(session, "two")

    assert len(dialer.dials) == 2
    assert all(conn.closed for conn in dialer.connections)
    assert not executor.dispatcher.connected


def test_web_rcon_closed_after_failure(session: Session) -> None:
    """Test WebSocket RCON connections are closed when a command fails."""
    session.type = "web"
    dialer = FakeDialer(handler=failing_handler)
    executor, _ = make_executor(dialer)

    with pytest.raises(CommandError):
        executor.execute_all(session, "bad")

    assert dialer.connections[0].closed


def make_executor(dialer: FakeDialer, color: bool | None = None) -> tuple[Executor, io.StringIO]:
    """Create an executor writing to a buffer."""
    out = io.StringIO()
    executor = Executor(
        reader=io.StringIO(),
        writer=out,
        dispatcher=Dispatcher(dialer.registry()),
        color=color,
    )
    return executor, out


@pytest.fixture
def session() -> Session:
    """Create session fixture."""
    return Session(address="127.0.0.1:16260", password="pw")

"""Click-based command line front-end."""

import logging
import re
from typing import IO, Any

import click

from lib.rcon import __version__
from lib.rcon.config import (
    DEFAULT_CONFIG_ENV,
    DEFAULT_CONFIG_NAME,
    Defaults,
    Protocol,
    Session,
    SessionFields,
    get_environment,
    load_config,
    merge_session,
)
from lib.rcon.exceptions import ConfigError, RconError
from lib.rcon.executor import Executor
from lib.rcon.logging import log_debug, setup_logging

ERR_EMPTY_ADDRESS = "address is not set: to set address add -a host:port"
ERR_EMPTY_PASSWORD = "password is not set: to set password add -p password"

DESCRIPTION = """CLI for executing queries on a remote server.

Runs in single mode when COMMANDS are given after the options:

\b
    rcon -a 127.0.0.1:16260 -p password command1 command2

Otherwise reads commands from the input stream until ":q":

\b
    rcon -a 127.0.0.1:16260 -p password
"""


class Duration(click.ParamType):
    """Duration such as ``10s``, ``500ms``, ``1m30s`` or bare seconds."""

    name = "duration"

    UNITS = {
        "ns": 1e-9,
        "us": 1e-6,
        "µs": 1e-6,
        "ms": 1e-3,
        "s": 1.0,
        "m": 60.0,
        "h": 3600.0,
    }
    PATTERN = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> float:
        """Convert a duration to seconds."""
        if isinstance(value, (int, float)):
            seconds = float(value)
        else:
            seconds = self._parse(str(value).strip(), param, ctx)

        if seconds <= 0:
            self.fail(f"{value!r} must be a positive duration", param, ctx)

        return seconds

    def _parse(self, text: str, param: click.Parameter | None, ctx: click.Context | None) -> float:
        try:
            return float(text)
        except ValueError:
            pass

        total = 0.0
        pos = 0
        for match in self.PATTERN.finditer(text):
            if match.start() != pos:
                break
            total += float(match.group(1)) * self.UNITS[match.group(2)]
            pos = match.end()

        if pos == 0 or pos != len(text):
            self.fail(f"{text!r} is not a valid duration", param, ctx)

        return total


def build_session(
    flags: SessionFields,
    config_path: str | None = None,
    env: str | None = None,
    defaults: Defaults | None = None,
) -> Session:
    """Resolve the session from flags, the config file and defaults.

    The config file is only read when the flags lack the address or the
    password.

    Parameters
    ----------
    flags : SessionFields
        Values given on the command line
    config_path : str | None, optional
        Config file path, by default from defaults
    env : str | None, optional
        Config environment name, by default from defaults
    defaults : Defaults | None, optional
        Built-in defaults, by default loaded from the environment

    Returns
    -------
    Session
        Resolved session
    """
    defaults = defaults or Defaults()
    file_values = SessionFields()

    if not (flags.address and flags.password):
        config = load_config(config_path or defaults.config)
        file_values = get_environment(config, env or defaults.env)

    return merge_session(flags, file_values, defaults)


def print_variables(session: Session, config_path: str, env: str, writer: IO[str] | None = None) -> None:
    """Print resolved session variables.

    Parameters
    ----------
    session : Session
        Resolved session
    config_path : str
        Config file path
    env : str
        Config environment name
    writer : IO[str] | None, optional
        Output stream, by default stdout
    """
    click.echo("Got Print Variables param.", file=writer)
    session.print(writer)
    click.echo("", file=writer)
    click.echo("Print other variables:", file=writer)
    click.echo(f"Path to config file (if used): {config_path}", file=writer)
    click.echo(f"Config environment: {env}", file=writer)


def run(executor: Executor, session: Session, commands: tuple[str, ...]) -> None:
    """Run batch mode when commands are given, interactive mode otherwise.

    Raises
    ------
    ConfigError
        If address or password is missing in batch mode
    """
    if not commands:
        executor.interactive(session)
        return

    if not session.address:
        raise ConfigError(ERR_EMPTY_ADDRESS)

    if not session.password:
        raise ConfigError(ERR_EMPTY_PASSWORD)

    executor.execute_all(session, *commands)


@click.command(help=DESCRIPTION, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "--version", "-v")
@click.option("--address", "-a", help="Set host and port to remote server. Example 127.0.0.1:16260")
@click.option("--password", "-p", help="Set password to remote server")
@click.option(
    "--type",
    "-t",
    "type_",
    help=f"Specify type of connection ({', '.join(Protocol.identifiers())})",
)
@click.option("--log", "-l", help="Path to the log file. If not specified it is taken from the config")
@click.option("--config", "-c", "config_path", help=f"Path to the configuration file [default: {DEFAULT_CONFIG_NAME}]")
@click.option("--env", "-e", help=f"Config environment with server credentials [default: {DEFAULT_CONFIG_ENV}]")
@click.option("--skip", "-s", is_flag=True, help="Skip errors and run next command")
@click.option("--timeout", "-T", type=Duration(), help="Set dial and execute timeout [default: 10s]")
@click.option("--variables", "-V", is_flag=True, help="Print stored variables and exit")
@click.option("--strip-colors", is_flag=True, help="Remove color codes instead of rendering them")
@click.option("--verbose", is_flag=True, help="Print debug diagnostics to stderr")
@click.option("--json", "json_output", is_flag=True, help="Write diagnostics as JSON lines")
@click.option("--log-file", help="Also write diagnostics to this file")
@click.argument("commands", nargs=-1)
def cli(
    address: str | None,
    password: str | None,
    type_: str | None,
    log: str | None,
    config_path: str | None,
    env: str | None,
    skip: bool,
    timeout: float | None,
    variables: bool,
    strip_colors: bool,
    verbose: bool,
    json_output: bool,
    log_file: str | None,
    commands: tuple[str, ...],
) -> None:
    """Execute commands on a remote server."""
    setup_logging(
        level=logging.DEBUG if verbose else logging.WARNING,
        json_output=json_output,
        log_file=log_file,
    )

    defaults = Defaults()
    flags = SessionFields(
        address=address,
        password=password,
        type=type_,
        log=log,
        timeout=timeout,
        skip_errors=skip or None,
        variables=variables or None,
        strip_colors=strip_colors or None,
    )

    try:
        session = build_session(flags, config_path, env, defaults)

        if session.variables:
            print_variables(session, config_path or defaults.config, env or defaults.env)
            return

        executor = Executor()
        try:
            run(executor, session, commands)
        finally:
            executor.close()

    except RconError as e:
        log_debug(f"Run failed: {e}", address=e.address)
        raise click.ClickException(str(e)) from e


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()

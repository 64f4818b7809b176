"""Session and configuration management for the remote console client."""

import json
from enum import Enum
from pathlib import Path
from typing import IO

import click
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from lib.rcon.exceptions import ConfigError

DEFAULT_CONFIG_NAME = "rcon.yaml"
DEFAULT_CONFIG_ENV = "default"
DEFAULT_TIMEOUT = 10.0

# Interactive mode input that ends the session
COMMAND_QUIT = ":q"


class Protocol(str, Enum):
    """Supported remote console protocols."""

    RCON = "rcon"
    WEB_RCON = "web"
    TELNET = "telnet"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "Protocol":
        """Resolve a protocol from its identifier.

        Parameters
        ----------
        value : str | None
            Protocol identifier, empty means the default protocol

        Returns
        -------
        Protocol
            Matching protocol, UNKNOWN for unrecognized identifiers
        """
        if not value:
            return cls.RCON

        for protocol in (cls.RCON, cls.WEB_RCON, cls.TELNET):
            if value == protocol.value:
                return protocol

        return cls.UNKNOWN

    @classmethod
    def identifiers(cls) -> list[str]:
        """List identifiers accepted on the command line."""
        return [cls.RCON.value, cls.WEB_RCON.value, cls.TELNET.value]


class SessionFields(BaseModel):
    """Partial session values from a single source.

    Unset fields are None so that sources can be layered.
    """

    model_config = ConfigDict(extra="ignore")

    address: str | None = None
    password: str | None = None
    type: str | None = None
    log: str | None = None
    timeout: float | None = None
    skip_errors: bool | None = None
    variables: bool | None = None
    strip_colors: bool | None = None


class Defaults(BaseSettings):
    """Built-in defaults, overridable from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="RCON_CLI_",
        case_sensitive=False,
        extra="ignore",
    )

    config: str = Field(default=DEFAULT_CONFIG_NAME, description="Path to the configuration file")
    env: str = Field(default=DEFAULT_CONFIG_ENV, description="Config environment name")
    address: str = Field(default="", description="Remote server host and port")
    password: str = Field(default="", description="Remote server password")
    type: str = Field(default="", description="Protocol type, empty for rcon")
    log: str = Field(default="", description="Command log path, empty disables logging")
    timeout: float = Field(default=DEFAULT_TIMEOUT, description="Dial and execute timeout in seconds")
    skip_errors: bool = Field(default=False, description="Skip errors and run next command")
    variables: bool = Field(default=False, description="Print variables and exit")
    strip_colors: bool = Field(default=False, description="Strip color codes from responses")


class Session(BaseModel):
    """Resolved connection parameters for one run."""

    address: str = ""
    password: str = ""
    type: str = ""
    log: str = ""
    timeout: float = DEFAULT_TIMEOUT
    skip_errors: bool = False
    variables: bool = False
    strip_colors: bool = False

    @property
    def protocol(self) -> Protocol:
        """Protocol parsed from the session type."""
        return Protocol.parse(self.type)

    def print(self, writer: IO[str] | None = None) -> None:
        """Print session variables.

        Parameters
        ----------
        writer : IO[str] | None, optional
            Output stream, by default stdout
        """
        lines = [
            "Print variables from session:",
            f"Address: {self.address}",
            f"Password: {self.password}",
            f"Type: {self.type or Protocol.RCON.value}",
            f"Log: {self.log}",
            f"Timeout: {self.timeout}s",
            f"Skip errors: {self.skip_errors}",
            f"Strip colors: {self.strip_colors}",
        ]
        for line in lines:
            click.echo(line, file=writer)


def merge_session(
    flags: SessionFields,
    file_values: SessionFields,
    defaults: Defaults | None = None,
) -> Session:
    """Merge session sources.

    Explicit flags win over config file values, which win over defaults.

    Parameters
    ----------
    flags : SessionFields
        Values given on the command line
    file_values : SessionFields
        Values from the selected config environment
    defaults : Defaults | None, optional
        Built-in defaults, by default loaded from the environment

    Returns
    -------
    Session
        Resolved session
    """
    defaults = defaults or Defaults()
    values = {}

    for name in Session.model_fields:
        value = getattr(flags, name)
        if value is None:
            value = getattr(file_values, name)
        if value is None:
            value = getattr(defaults, name)
        values[name] = value

    return Session(**values)


def load_config(path: str | Path) -> dict[str, SessionFields]:
    """Load config environments from a YAML or JSON file.

    Parameters
    ----------
    path : str | Path
        Path to config file

    Returns
    -------
    dict[str, SessionFields]
        Session values keyed by environment name

    Raises
    ------
    ConfigError
        If the file is missing, has an unsupported extension or is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        # The default config file is optional
        if str(path) == DEFAULT_CONFIG_NAME:
            return {}
        raise ConfigError(f"config file {config_path} does not exist")

    suffix = config_path.suffix.lower()
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            if suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f) or {}
            elif suffix == ".json":
                data = json.load(f)
            else:
                raise ConfigError(f"unsupported config file extension {suffix!r}")
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"failed to read {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must map environment names to sessions")

    try:
        return {str(env): SessionFields(**(values or {})) for env, values in data.items()}
    except (TypeError, ValidationError) as e:
        raise ConfigError(f"invalid config {config_path}: {e}") from e


def get_environment(config: dict[str, SessionFields], env: str | None = None) -> SessionFields:
    """Get session values of a config environment.

    Parameters
    ----------
    config : dict[str, SessionFields]
        Loaded config
    env : str | None, optional
        Environment name, by default ``default``

    Returns
    -------
    SessionFields
        Environment values, empty if the environment is not defined
    """
    return config.get(env or DEFAULT_CONFIG_ENV, SessionFields())

"""Remote console client for game and admin servers.

This package executes commands on remote servers over Source RCON,
WebSocket RCON or telnet, either as a single batch or interactively.
"""

__version__ = "0.1.0"

from lib.rcon.colors import normalize
from lib.rcon.config import Protocol, Session
from lib.rcon.dispatcher import Dispatcher
from lib.rcon.exceptions import (
    AuthenticationError,
    CommandError,
    CommandNotSetError,
    ConfigError,
    ConnectionError,
    LogError,
    RconError,
    TimeoutError,
)
from lib.rcon.executor import Executor

__all__ = [
    "Dispatcher",
    "Executor",
    "Protocol",
    "Session",
    "normalize",
    "RconError",
    "ConfigError",
    "CommandNotSetError",
    "ConnectionError",
    "AuthenticationError",
    "TimeoutError",
    "CommandError",
    "LogError",
]

"""Remote console connection providers, one per protocol."""

from lib.rcon.connections.base import Connection, split_address
from lib.rcon.connections.rcon import RconConnection
from lib.rcon.connections.registry import ConnectionRegistry, DialFunc
from lib.rcon.connections.telnet import TelnetConnection, dial_interactive
from lib.rcon.connections.webrcon import WebRconConnection

__all__ = [
    "Connection",
    "ConnectionRegistry",
    "DialFunc",
    "RconConnection",
    "TelnetConnection",
    "WebRconConnection",
    "dial_interactive",
    "split_address",
]

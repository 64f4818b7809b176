"""WebSocket RCON connection (Rust WebRcon)."""

import json
import socket

import websocket

from lib.rcon.connections.base import Connection, split_address
from lib.rcon.exceptions import (
    AuthenticationError,
    CommandError,
    ConnectionError,
    TimeoutError,
)

WEBRCON_NAME = "WebRcon"


class WebRconConnection(Connection):
    """WebSocket RCON connection.

    The password is part of the URL path, so a rejected password shows up
    as a failed handshake. Server broadcasts arrive on the same socket and
    are skipped until the reply to the current request is read.
    """

    protocol = "web"

    def __init__(self, address: str, password: str, timeout: float) -> None:
        super().__init__(address, password, timeout)
        self.ws: websocket.WebSocket | None = None
        self._last_id = 0

    @property
    def url(self) -> str:
        """WebSocket URL including the password."""
        return f"ws://{self.address}/{self.password}"

    @classmethod
    def dial(cls, address: str, password: str, timeout: float) -> "WebRconConnection":
        """Open the WebSocket connection.

        Raises
        ------
        AuthenticationError
            If the handshake is rejected
        ConnectionError
            If the server cannot be reached
        """
        split_address(address)
        conn = cls(address, password, timeout)
        conn.connect()
        return conn

    def connect(self) -> None:
        """Perform the WebSocket handshake."""
        try:
            self.ws = websocket.create_connection(self.url, timeout=self.timeout)
        except websocket.WebSocketBadStatusException as e:
            raise AuthenticationError(
                f"handshake rejected with status {e.status_code}",
                address=self.address,
            ) from e
        except (websocket.WebSocketTimeoutException, socket.timeout) as e:
            raise TimeoutError(
                f"Connection timeout after {self.timeout}s",
                address=self.address,
                timeout=self.timeout,
            ) from e
        except (websocket.WebSocketException, OSError) as e:
            raise ConnectionError(f"Connection failed: {e}", address=self.address) from e

    def execute(self, command: str) -> str:
        """Send command and wait for the reply with the same identifier."""
        if not command:
            raise CommandError("command is not set", address=self.address, command=command)

        if self.ws is None:
            raise ConnectionError("Not connected to server", address=self.address)

        self._last_id += 1
        request_id = self._last_id
        request = {"Identifier": request_id, "Message": command, "Name": WEBRCON_NAME}

        try:
            self.ws.settimeout(self.timeout)
            self.ws.send(json.dumps(request))

            while True:
                reply = self._decode(self.ws.recv(), command)
                if reply.get("Identifier") == request_id:
                    return str(reply.get("Message", ""))
        except (websocket.WebSocketTimeoutException, socket.timeout) as e:
            raise TimeoutError(
                f"Command timeout: {command}",
                address=self.address,
                timeout=self.timeout,
            ) from e
        except (websocket.WebSocketException, OSError) as e:
            raise ConnectionError(f"Connection failed: {e}", address=self.address) from e

    def close(self) -> None:
        """Close the WebSocket connection."""
        if self.ws:
            try:
                self.ws.close()
            except (websocket.WebSocketException, OSError) as e:
                raise ConnectionError(f"Close failed: {e}", address=self.address) from e
            finally:
                self.ws = None

    def _decode(self, message: str | bytes, command: str) -> dict:
        try:
            reply = json.loads(message)
        except (TypeError, ValueError) as e:
            raise CommandError(
                f"invalid response: {e}",
                address=self.address,
                command=command,
                response=message if isinstance(message, str) else "",
            ) from e

        if not isinstance(reply, dict):
            raise CommandError(
                "invalid response: expected JSON object",
                address=self.address,
                command=command,
            )

        return reply

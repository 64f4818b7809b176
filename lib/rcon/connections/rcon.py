"""Source RCON connection over TCP."""

import socket
import struct

from lib.rcon.connections.base import Connection, split_address
from lib.rcon.exceptions import (
    AuthenticationError,
    CommandError,
    ConnectionError,
    RconError,
    TimeoutError,
)
from lib.rcon.logging import log_debug

SERVERDATA_AUTH = 3
SERVERDATA_AUTH_RESPONSE = 2
SERVERDATA_EXECCOMMAND = 2
SERVERDATA_RESPONSE_VALUE = 0

# id + type + two terminating NUL bytes
MIN_PACKET_SIZE = 10
MAX_PACKET_SIZE = 4096 + MIN_PACKET_SIZE
MAX_COMMAND_LEN = 1000

AUTH_FAILED_ID = -1


class Packet:
    """Source RCON packet."""

    HEADER = struct.Struct("<iii")

    def __init__(self, packet_type: int, body: str, packet_id: int) -> None:
        self.type = packet_type
        self.body = body
        self.id = packet_id

    def encode(self) -> bytes:
        """Encode packet with its size prefix."""
        body = self.body.encode("utf-8")
        size = MIN_PACKET_SIZE + len(body)
        return self.HEADER.pack(size, self.id, self.type) + body + b"\x00\x00"

    @classmethod
    def decode(cls, data: bytes) -> "Packet":
        """Decode packet payload (everything after the size prefix)."""
        packet_id, packet_type = struct.unpack("<ii", data[:8])
        body = data[8:].rstrip(b"\x00").decode("utf-8", errors="replace")
        return cls(packet_type, body, packet_id)

    def __repr__(self) -> str:
        return f"Packet(type={self.type}, id={self.id}, body={self.body!r})"


class RconConnection(Connection):
    """Source RCON connection.

    Used by Minecraft, Project Zomboid, ARK and other Source RCON servers.
    """

    protocol = "rcon"

    def __init__(self, address: str, password: str, timeout: float) -> None:
        super().__init__(address, password, timeout)
        self.sock: socket.socket | None = None
        self._last_id = 0

    @classmethod
    def dial(cls, address: str, password: str, timeout: float) -> "RconConnection":
        """Connect and authenticate to a Source RCON server.

        Raises
        ------
        ConnectionError
            If the server cannot be reached
        AuthenticationError
            If the password is rejected
        """
        conn = cls(address, password, timeout)
        conn.connect()
        return conn

    def connect(self) -> None:
        """Open the TCP connection and authenticate."""
        host, port = split_address(self.address)

        try:
            self.sock = socket.create_connection((host, port), timeout=self.timeout)
        except socket.timeout as e:
            raise TimeoutError(
                f"Connection timeout after {self.timeout}s",
                address=self.address,
                timeout=self.timeout,
            ) from e
        except OSError as e:
            raise ConnectionError(f"Connection failed: {e}", address=self.address) from e

        try:
            self._authenticate()
        except RconError:
            self.close()
            raise

    def _authenticate(self) -> None:
        request_id = self._next_id()
        response = self._exchange(Packet(SERVERDATA_AUTH, self.password, request_id))

        # Some servers send an empty RESPONSE_VALUE before the auth response
        if response.type == SERVERDATA_RESPONSE_VALUE:
            response = self._read()

        if response.type != SERVERDATA_AUTH_RESPONSE:
            raise AuthenticationError(
                f"invalid auth response type {response.type}",
                address=self.address,
            )

        if response.id == AUTH_FAILED_ID:
            raise AuthenticationError("authentication failed", address=self.address)

        if response.id != request_id:
            raise AuthenticationError(
                f"invalid auth response id {response.id}",
                address=self.address,
            )

    def execute(self, command: str) -> str:
        """Execute command and return the response body."""
        if not command:
            raise CommandError("command is not set", address=self.address, command=command)

        if len(command.encode("utf-8")) > MAX_COMMAND_LEN:
            raise CommandError(
                f"command too long, max {MAX_COMMAND_LEN} bytes",
                address=self.address,
                command=command,
            )

        request_id = self._next_id()
        response = self._exchange(Packet(SERVERDATA_EXECCOMMAND, command, request_id))

        # Replies to earlier requests that timed out arrive late
        while 0 < response.id < request_id:
            log_debug(f"Dropping late reply for request {response.id}", address=self.address, command=command)
            response = self._read()

        if response.type != SERVERDATA_RESPONSE_VALUE:
            raise CommandError(
                f"invalid response type {response.type}",
                address=self.address,
                command=command,
                response=response.body,
            )

        if response.id != request_id:
            raise CommandError(
                f"response for another request (id {response.id})",
                address=self.address,
                command=command,
                response=response.body,
            )

        return response.body

    def close(self) -> None:
        """Close the TCP connection."""
        if self.sock:
            try:
                self.sock.close()
            finally:
                self.sock = None

    def _next_id(self) -> int:
        self._last_id += 1
        return self._last_id

    def _exchange(self, packet: Packet) -> Packet:
        if self.sock is None:
            raise ConnectionError("Not connected to server", address=self.address)

        try:
            self.sock.sendall(packet.encode())
        except socket.timeout as e:
            raise TimeoutError("Write timeout", address=self.address, timeout=self.timeout) from e
        except OSError as e:
            raise ConnectionError(f"Write failed: {e}", address=self.address) from e

        return self._read()

    def _read(self) -> Packet:
        try:
            (size,) = struct.unpack("<i", self._recv_exact(4))
            if size < MIN_PACKET_SIZE or size > MAX_PACKET_SIZE:
                raise ConnectionError(f"invalid packet size {size}", address=self.address)
            return Packet.decode(self._recv_exact(size))
        except socket.timeout as e:
            raise TimeoutError("Read timeout", address=self.address, timeout=self.timeout) from e
        except OSError as e:
            raise ConnectionError(f"Read failed: {e}", address=self.address) from e

    def _recv_exact(self, size: int) -> bytes:
        data = b""
        while len(data) < size:
            chunk = self.sock.recv(size - len(data))
            if not chunk:
                raise ConnectionError("Connection closed by server", address=self.address)
            data += chunk
        return data

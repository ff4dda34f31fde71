"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for the length of a single
request/response exchange.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

When a client sends

    "GET / HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n"

recv() may hand it to us in any number of pieces:

    recv() → "GET / HT"
    recv() → "TP/1.1\\r\\nHo"
    recv() → "st: x\\r\\n\\r\\n"

Instead of collecting chunks by hand, the connection exposes the socket as
a BUFFERED FILE (socket.makefile("rb")). The request reader can then ask
for "one line" or "exactly N bytes" and the buffer takes care of joining
the pieces:

    ┌──────────────┐  recv()   ┌──────────────────┐  readline()  ┌─────────┐
    │ client socket│ ────────► │ BufferedReader   │ ───────────► │ reader  │
    └──────────────┘           │ (makefile "rb")  │  read(n)     └─────────┘
                               └──────────────────┘

=============================================================================
ONE REQUEST PER CONNECTION
=============================================================================

There is no keep-alive. Every connection goes through the same four states
exactly once, in order, and can only skip ahead to CLOSED:

    ┌─────────┐    ┌─────────────┐    ┌─────────┐    ┌────────┐
    │ READING │───►│ DISPATCHING │───►│ WRITING │───►│ CLOSED │
    └────┬────┘    └─────────────┘    └────┬────┘    └────────┘
         │ malformed request               │ write failed    ▲
         └─────────────────────────────────┴─────────────────┘

The client learns the response is complete when the server closes the
socket (EOF); responses carry no Content-Length.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import BinaryIO, Optional
import uuid

from ..http.request import Request, read_request
from ..http.response import Response, write_response


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states. Transitions only ever move forward."""
    READING = "reading"          # Waiting for / parsing the request
    DISPATCHING = "dispatching"  # Request parsed, handler is executing
    WRITING = "writing"          # Sending the response
    CLOSED = "closed"            # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short connection identifier used as a log prefix.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        timeout: Socket timeout; None means block indefinitely.
        linger_timeout: How long close() drains unread client data.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.READING
    created_at: float = field(default_factory=time.time)

    timeout: Optional[float] = None
    linger_timeout: float = 0.5

    _reader: Optional[BinaryIO] = field(default=None, repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else ""

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Request:
        """
        Read the connection's single request.

        Raises:
            MalformedRequest: If the request cannot be parsed.
        """
        self.state = ConnectionState.READING
        if self._reader is None:
            self._reader = self.socket.makefile("rb")
        request = read_request(self._reader)
        self.state = ConnectionState.DISPATCHING
        return request

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, response: Response) -> None:
        """
        Send the response in one sendall() call.

        Raises:
            WriteFailure: If the socket reports an error.
        """
        self.state = ConnectionState.WRITING
        write_response(self.socket, response)

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully. Safe to call more than once.

        1. shutdown(SHUT_WR): send FIN so the client sees EOF right after
           the last response byte.
        2. Drain: read and discard anything the client still sends, for at
           most linger_timeout seconds. Closing with unread data in the
           kernel buffer makes the OS send RST, which can destroy a
           response the client has not read yet.
        3. close(): release the file descriptor.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Client already gone

        deadline = time.monotonic() + self.linger_timeout
        try:
            while time.monotonic() < deadline:
                self.socket.settimeout(max(deadline - time.monotonic(), 0.001))
                if not self.socket.recv(1024):
                    break
        except OSError:
            pass  # Timeout or reset; closing anyway

        if self._reader is not None:
            try:
                self._reader.close()
            except OSError:
                pass
            self._reader = None

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        """
        Allows using Connection with 'with' so it is closed on every path:

            with conn:
                request = conn.read_request()
                conn.send_response(response)
            # Connection closed here, even after an exception
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

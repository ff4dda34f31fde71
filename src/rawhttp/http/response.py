"""
=============================================================================
HTTP RESPONSE WRITER
=============================================================================

Serializes a Response to HTTP/1.1 bytes and sends it on a socket.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTP/1.1 200 OK\r\n                ← Status line                   │
    │   Content-Type: text/plain\r\n       ← Headers, in mapping order     │
    │   \r\n                               ← Blank line (exactly one)      │
    │   Request Path: /api/foo             ← Body, sent verbatim           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The reason phrase is NOT looked up in a status table: 200 is "OK" and
every other code is "Error".

=============================================================================
NO CONTENT-LENGTH
=============================================================================

The writer never adds a Content-Length header. Each connection carries
exactly one response and is closed right after it, so the client reads the
body until EOF:

    server                                 client
      │  HTTP/1.1 200 OK ... body  ──────►   │  read, read, read ...
      │  close()                   ──FIN──►  │  EOF → body complete

A handler that wants to declare a length can still set the header itself.

=============================================================================
"""

import socket
from dataclasses import dataclass, field
from typing import Dict, Optional

from .mime_types import detect_content_type
from .request import WIRE_ENCODING, WIRE_ERRORS


HTTP_VERSION = "HTTP/1.1"


class WriteFailure(Exception):
    """
    Raised when a response could not be sent.

    Wraps the underlying OSError. The connection handler logs it and
    closes the connection; the write is never retried.
    """


def status_text_for(status_code: int) -> str:
    """Reason phrase for a status code: "OK" for 200, "Error" otherwise."""
    return "OK" if status_code == 200 else "Error"


@dataclass
class Response:
    """
    Represents an HTTP response to be sent to the client.

    Attributes:
        status_code: Numeric status (200, 404, 500).
        headers:     Header name → value. Must contain "Content-Type".
                     Serialized in insertion order.
        body:        Raw body bytes.
        status_text: Reason phrase. Derived from status_code when omitted.
    """

    status_code: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    status_text: Optional[str] = None

    def __post_init__(self):
        if self.status_text is None:
            self.status_text = status_text_for(self.status_code)

    @property
    def status_line(self) -> str:
        """
        The HTTP status line without its CRLF.

        Example: "HTTP/1.1 404 Error"
        """
        return f"{HTTP_VERSION} {self.status_code} {self.status_text}"

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("Content-Type")

    def to_bytes(self) -> bytes:
        """
        Serialize the response to bytes for sending over a socket.

        =====================================================================
        SERIALIZATION FORMAT
        =====================================================================

            HTTP/1.1 <code> <text>\\r\\n
            <name>: <value>\\r\\n         ← one per header
            \\r\\n                        ← separator
            <body>

        =====================================================================

        Returns:
            Complete HTTP response as bytes ready for socket.sendall()
        """
        lines = [self.status_line]

        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")

        # Empty line separates headers from body
        lines.append("")

        header_bytes = "\r\n".join(lines).encode(WIRE_ENCODING, WIRE_ERRORS) + b"\r\n"
        return header_bytes + self.body


def write_response(sock: socket.socket, response: Response) -> None:
    """
    Send a response with a single sendall() call.

    sendall() keeps writing until the whole buffer is out or the transport
    fails, so there is no partial-success case to handle here.

    Raises:
        WriteFailure: If the socket reports any error.
    """
    data = response.to_bytes()
    try:
        sock.sendall(data)
    except OSError as e:
        raise WriteFailure(f"failed to send {len(data)} bytes: {e}") from e


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# Handlers build their responses through these so that every response
# carries a Content-Type.
#
# =============================================================================

def text_response(status_code: int, text: str) -> Response:
    """
    Create a text/plain response.

    Text that came off the wire (such as a request path) is written back as
    the bytes that were received.

    Example:
        return text_response(404, "File Doesn't Exist")
    """
    return Response(
        status_code=status_code,
        headers={"Content-Type": "text/plain"},
        body=text.encode(WIRE_ENCODING, WIRE_ERRORS),
    )


def file_response(status_code: int, content: bytes) -> Response:
    """
    Create a response carrying file content.

    The Content-Type is sniffed from the bytes themselves, so the file's
    name and extension play no part.
    """
    return Response(
        status_code=status_code,
        headers={"Content-Type": detect_content_type(content)},
        body=content,
    )

"""
=============================================================================
HTTP REQUEST READER
=============================================================================

Reads one HTTP/1.1 request off a byte stream and turns it into a Request.

=============================================================================
WHAT WE READ
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST ON THE WIRE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   POST /api/users HTTP/1.1\r\n        ← Request line                 │
    │   Host: localhost:8080\r\n            ← Header                       │
    │   Content-Length: 5\r\n               ← Header                       │
    │   \r\n                                ← End of headers               │
    │   hello                               ← Body (POST only)             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The reader works line by line on a buffered binary stream (usually
socket.makefile("rb")), so it never needs to search a growing buffer for
the \r\n\r\n delimiter. Each step pulls exactly what it needs:

    1. readline()      → request line  (METHOD SP PATH [SP VERSION])
    2. readline() × N  → header lines, until a bare "\r\n"
    3. read(n)         → body, only for POST with a positive Content-Length

=============================================================================
PERMISSIVE PARSING
=============================================================================

The parser is deliberately forgiving:

    - The method is not checked against a list of known verbs.
    - The path is kept exactly as sent (no percent-decoding, no ?query split).
    - The HTTP version token, if any, is ignored.
    - Header lines without ": " are dropped, not rejected.
    - Header names keep their original case. Look up "Content-Length",
      not "content-length".
    - Only a line that is exactly "\r\n" ends the header block. A lone
      "\n" is treated as an ordinary (dropped) header line.

Only three things are fatal and raise MalformedRequest:

    - the stream ends before the request line is complete
    - the request line has fewer than two tokens
    - a POST body is shorter than its Content-Length

=============================================================================
"""

import logging
import re
import sys
from dataclasses import dataclass, field
from typing import BinaryIO, Dict


logger = logging.getLogger(__name__)


# Request lines and headers are UTF-8. Bytes that are not valid UTF-8 decode
# to lone surrogates, so decoding never fails and str.encode(WIRE_ENCODING,
# WIRE_ERRORS) or os.fsencode() give back the exact bytes that were sent.
WIRE_ENCODING = "utf-8"
WIRE_ERRORS = "surrogateescape"

HEADER_SEPARATOR = b": "
HEADER_TERMINATOR = b"\r\n"

# Signed decimal with ASCII digits only. int() on its own would also accept
# "5_0", surrounding whitespace and non-ASCII digits.
CONTENT_LENGTH_PATTERN = re.compile(r"[+-]?[0-9]+")


class MalformedRequest(Exception):
    """
    Raised when a request cannot be read off the stream.

    The connection handler treats this as fatal for the connection: the
    error is logged and the socket is closed without sending a response.
    """


@dataclass
class Request:
    """
    A parsed HTTP request.

    Lives for one connection only and is owned by the connection handler.

    Attributes:
        method:  Verb token as sent ("GET", "POST", ...).
        path:    Request target as sent.
        headers: Header name → value. Names are case-sensitive; a repeated
                 name keeps its last value.
        body:    Body bytes. Empty unless method is POST with a positive
                 Content-Length.
    """

    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def content_length(self) -> int:
        """
        The Content-Length header as a positive integer, or 0.

        Missing, unparseable, zero and negative values all give 0.
        """
        return parse_content_length(self.headers.get("Content-Length", ""))


def parse_content_length(value: str) -> int:
    """Parse a Content-Length value, returning 0 unless it is a positive integer."""
    if not CONTENT_LENGTH_PATTERN.fullmatch(value):
        return 0
    length = int(value)
    if length > sys.maxsize:
        # Does not fit a machine integer
        return 0
    return length if length > 0 else 0


def decode_wire(data: bytes) -> str:
    return data.decode(WIRE_ENCODING, WIRE_ERRORS)


def parse_request_line(line: bytes) -> tuple[str, str]:
    """
    Split a raw request line into (method, path).

    Any run of ASCII whitespace separates tokens. The split happens on the
    bytes, so a byte such as 0xA0 stays inside its token. Tokens after the
    path (normally the HTTP version) are discarded.

    Raises:
        MalformedRequest: If fewer than two tokens are present.
    """
    parts = line.split()
    if len(parts) < 2:
        raise MalformedRequest("invalid request line")
    return decode_wire(parts[0]), decode_wire(parts[1])


def parse_header_line(line: bytes) -> tuple[str, str] | None:
    """
    Split a raw "Name: Value" line on the first ": ".

    Returns None for lines without the separator. The value is stripped of
    ASCII whitespace, the name is returned untouched.
    """
    name, sep, value = line.partition(HEADER_SEPARATOR)
    if not sep:
        return None
    return decode_wire(name), decode_wire(value.strip())


def read_request(stream: BinaryIO) -> Request:
    """
    Read exactly one request from a binary stream.

    Args:
        stream: Readable binary file object positioned at the start of a
                request. Must support readline() and read(n).

    Returns:
        The parsed Request.

    Raises:
        MalformedRequest: If the request line is incomplete or invalid, or
                          a POST body is cut short.
    """
    # ─────────────────────────────────────────────────────────────────────
    # STEP 1: Request line
    # ─────────────────────────────────────────────────────────────────────
    try:
        raw_line = stream.readline()
    except OSError as e:
        raise MalformedRequest(f"failed to read request line: {e}") from e

    if not raw_line.endswith(b"\n"):
        raise MalformedRequest("connection closed before request line was complete")

    method, path = parse_request_line(raw_line)

    # ─────────────────────────────────────────────────────────────────────
    # STEP 2: Headers
    # ─────────────────────────────────────────────────────────────────────
    headers = _read_headers(stream)

    # ─────────────────────────────────────────────────────────────────────
    # STEP 3: Body (POST only)
    # ─────────────────────────────────────────────────────────────────────
    body = b""
    if method == "POST":
        length = parse_content_length(headers.get("Content-Length", ""))
        if length:
            body = _read_body(stream, length)

    return Request(method=method, path=path, headers=headers, body=body)


def _read_headers(stream: BinaryIO) -> Dict[str, str]:
    """
    Read header lines until a bare "\\r\\n" or a read failure.

    A read failure (EOF before a newline, or a socket error) simply ends
    the header block; whatever was collected so far is kept.
    """
    headers: Dict[str, str] = {}

    while True:
        try:
            raw_line = stream.readline()
        except OSError as e:
            logger.debug(f"Header read ended by socket error: {e}")
            break

        if not raw_line.endswith(b"\n") or raw_line == HEADER_TERMINATOR:
            break

        parsed = parse_header_line(raw_line)
        if parsed is not None:
            name, value = parsed
            headers[name] = value

    return headers


def _read_body(stream: BinaryIO, length: int) -> bytes:
    """Read exactly `length` body bytes or raise MalformedRequest."""
    try:
        body = stream.read(length)
    except OSError as e:
        raise MalformedRequest(f"failed to read request body: {e}") from e

    if body is None or len(body) < length:
        received = 0 if body is None else len(body)
        raise MalformedRequest(
            f"connection closed after {received} of {length} body bytes"
        )
    return body

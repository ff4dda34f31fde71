"""
=============================================================================
RAWHTTP - Minimal HTTP/1.1 Server on Raw Sockets
=============================================================================

An HTTP/1.1 server that parses requests and serializes responses itself,
straight on top of TCP sockets, without http.server or any other HTTP
library.

=============================================================================
WHAT IT DOES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   accept()  ──►  read ONE request  ──►  dispatch  ──►  write  ──►   │
    │                                            │                close    │
    │                                            ├── /api*  → API handler  │
    │                                            └── else   → static files │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

- One thread per connection, one request per connection.
- No keep-alive, chunked encoding, TLS or HTTP/2.
- Responses have no Content-Length; the client reads until EOF.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    rawhttp/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m rawhttp)
    ├── server.py            # HTTPServer - wires everything together
    ├── config.py            # ServerConfig dataclass
    ├── core/
    │   ├── socket_server.py # Listener loop
    │   └── connection.py    # Per-connection wrapper and state
    ├── http/
    │   ├── request.py       # Wire reader
    │   ├── response.py      # Wire writer
    │   ├── dispatcher.py    # Prefix routing
    │   └── mime_types.py    # Content-Type sniffing
    └── handlers/
        ├── api.py           # Path echo
        └── static.py        # Static file serving

=============================================================================
QUICK START
=============================================================================

    from rawhttp import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(port=8080, document_root="./www"))
    server.run()

    $ curl -i http://localhost:8080/api/foo
    HTTP/1.1 200 OK
    Content-Type: text/plain

    Request Path: /api/foo

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "__version__"]

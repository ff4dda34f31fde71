"""
=============================================================================
CORE NETWORKING COMPONENTS
=============================================================================

    socket_server.py   SocketServer - listener loop, thread per connection
    connection.py      Connection   - one client socket, one request

=============================================================================
"""

from .socket_server import SocketServer, AcceptFailure
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",     # Accepts connections
    "AcceptFailure",    # accept() error, logged and tolerated
    "Connection",       # Wrapper for a client socket
    "ConnectionState",  # Lifecycle states of a connection
]

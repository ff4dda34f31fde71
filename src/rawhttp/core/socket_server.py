"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

The listener loop: binds a TCP socket, accepts connections, and hands every
accepted connection to its own thread.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    socket()  →  setsockopt()  →  bind()  →  listen()  →  accept() ...
                                                              │
                                           ┌──────────────────┼──────────────┐
                                           ▼                  ▼              ▼
                                        Thread 1           Thread 2       Thread N
                                     (connection 1)     (connection 2)      ...

=============================================================================
ONE THREAD PER CONNECTION
=============================================================================

Each accepted connection gets a brand-new daemon thread and the loop goes
straight back to accept(). There is no pool, no cap and no queue: the
number of live connection threads is limited only by the OS.

Connection threads share nothing with each other or with the loop, so no
locks are needed.

=============================================================================
ACCEPT ERRORS
=============================================================================

accept() can fail for reasons that fix themselves (EMFILE when file
descriptors run out, ECONNABORTED when a client gives up during the
handshake). Such failures are logged and the loop simply tries again, with
no backoff and no limit on how often.

The accept call has a short timeout so the loop can notice shutdown();
a timeout is not an error.

=============================================================================
SIGNAL HANDLING FOR GRACEFUL SHUTDOWN
=============================================================================

SIGINT (Ctrl+C) and SIGTERM stop the loop cleanly when the server runs on
the main thread. Python only allows installing signal handlers from the
main thread, so a server started from a background thread (tests) skips
this step and is stopped with shutdown() instead.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


ACCEPT_POLL_INTERVAL = 1.0


class AcceptFailure(OSError):
    """An accept() call failed. Logged by the listener, which keeps going."""


class SocketServer:
    """
    Low-level TCP socket server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    start(handler)                                                    │
    │        ├──► _create_socket()   socket() + SO_REUSEADDR               │
    │        ├──► bind(), listen()                                         │
    │        ├──► _setup_signals()   main thread only                      │
    │        └──► _accept_loop()     blocks until shutdown()               │
    │                 └──► accept() → Connection → Thread(handler, conn)   │
    │                                                                      │
    │    shutdown()        _running = False                                │
    │    _cleanup()        restore signals, close listening socket         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        def handle_connection(conn: Connection):
            with conn:
                ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog, timeouts).

        The socket is created lazily in start().
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        # Set when the listener has stopped; other threads can wait on it
        self._shutdown_event = threading.Event()
        # Set once the socket is listening and address is final
        self._ready_event = threading.Event()

        self._original_handlers: dict = {}
        self._bound_address: Optional[Tuple[str, int]] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (ip, port).

        After start() this is the real address, so a configured port of 0
        reports the port the OS picked.
        """
        if self._bound_address is not None:
            return self._bound_address
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """
        Create and configure the listening socket.

        SO_REUSEADDR lets a restarted server bind immediately instead of
        waiting for the old socket to leave TIME_WAIT.
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Periodic wake-up so the loop can check self._running
        sock.settimeout(ACCEPT_POLL_INTERVAL)
        return sock

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers that trigger shutdown()."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, skipping signal handlers")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        """Restore original signal handlers."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Start accepting connections. BLOCKS until shutdown() is called.

        Args:
            connection_handler: Called once per accepted connection, on that
                                connection's own thread.

        Raises:
            OSError: If the socket cannot be bound (port in use, no
                     permission). Startup errors are fatal; only accept()
                     errors are tolerated.
        """
        self._socket = self._create_socket()
        self._shutdown_event.clear()

        try:
            self._socket.bind((self.config.host, self.config.port))
            self._socket.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._cleanup()
            raise

        self._bound_address = self._socket.getsockname()[:2]
        self._running = True
        self._setup_signals()
        self._ready_event.set()

        host, port = self._bound_address
        logger.info(f"Server is listening on {host}:{port}...")

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Main loop for accepting connections.

            while running:
                accept()                    blocks up to 1s
                Connection(...)             wrap the client socket
                Thread(handler, conn)       one thread per connection
        """
        while self._running:
            try:
                client_socket, client_address = self._accept()
            except socket.timeout:
                continue
            except AcceptFailure as e:
                if not self._running:
                    break  # Listening socket closed by shutdown()
                logger.error(f"Error accepting connection: {e}")
                continue

            conn = Connection(
                socket=client_socket,
                address=client_address,
                timeout=self.config.timeout,
                linger_timeout=self.config.linger_timeout,
            )
            logger.debug(f"[{conn.id}] Accepted connection from {conn.client_ip}:{client_address[1]}")

            self._spawn(connection_handler, conn)

    def _accept(self) -> Tuple[socket.socket, tuple]:
        """
        accept() with failures other than the poll timeout re-raised as
        AcceptFailure.
        """
        try:
            return self._socket.accept()
        except socket.timeout:
            raise
        except OSError as e:
            raise AcceptFailure(e.errno, e.strerror or str(e)) from e

    def _spawn(self, connection_handler: Callable[[Connection], None], conn: Connection):
        thread = threading.Thread(
            target=connection_handler,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        try:
            thread.start()
        except RuntimeError as e:
            # Out of threads: drop this connection, keep accepting
            logger.error(f"[{conn.id}] Could not start connection thread: {e}")
            conn.close()

    def shutdown(self):
        """
        Stop the accept loop. Safe to call from any thread, more than once.

        The loop notices within ACCEPT_POLL_INTERVAL seconds. Connection
        threads already running are left to finish on their own.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        """Clean up resources on shutdown."""
        self._running = False
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._shutdown_event.set()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Wait until the socket is listening. Returns False on timeout."""
        return self._ready_event.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the listener to stop.

        Args:
            timeout: Maximum time to wait in seconds. None = wait forever.

        Returns:
            True if shutdown completed, False if timeout.
        """
        return self._shutdown_event.wait(timeout)

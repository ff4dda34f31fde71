"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          HTTPServer                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer            accept loop, one thread per connection     │
    │        │                                                             │
    │        ▼                                                             │
    │   handle_connection()     per-connection state machine               │
    │        │                                                             │
    │        ├──► Connection.read_request()    bytes → Request             │
    │        ├──► Dispatcher.dispatch()        /api → API, else static     │
    │        └──► Connection.send_response()   Response → bytes            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ERROR POLICY
=============================================================================

    MalformedRequest   logged, connection closed, NOTHING sent
    WriteFailure       logged, connection closed, no retry
    handler exception  logged with traceback, connection closed

Missing files, wrong methods and unreadable files are not errors at this
level: the handlers turn them into 404/500 responses.

=============================================================================
"""

import logging
from typing import Optional

from .config import ServerConfig
from .core import SocketServer, Connection
from .handlers import StaticFileHandler, handle_api
from .http import Dispatcher, Handler, MalformedRequest, WriteFailure


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Minimal HTTP/1.1 server: one request per connection.

    Usage:
        server = HTTPServer(ServerConfig(port=8080, document_root="./www"))
        server.run()  # Blocks until Ctrl+C

    The API handler can be replaced, which is mostly useful in tests:

        server = HTTPServer(config, api_handler=my_handler)
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        api_handler: Optional[Handler] = None,
        static_handler: Optional[Handler] = None,
    ):
        """
        Args:
            config: Server configuration. Defaults reproduce the fixed
                    behaviour (port 8080, ./www, /api).
            api_handler: Handler for paths under config.api_prefix.
            static_handler: Handler for every other path.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        if static_handler is None:
            static_handler = StaticFileHandler(self.config.document_root).handle

        self._dispatcher = Dispatcher(
            api_handler=api_handler or handle_api,
            static_handler=static_handler,
            api_prefix=self.config.api_prefix,
        )
        self._socket_server = SocketServer(self.config)

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def address(self):
        """The (host, port) the server is bound to."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, setup_logging: bool = True):
        """
        Start the server (blocking).

        Args:
            setup_logging: Configure the root logger from config.log_level.
                           Pass False when embedding the server in an
                           application that configures logging itself.
        """
        if setup_logging:
            self._setup_logging()

        try:
            self._socket_server.start(self.handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            logger.info("Server stopped")

    def shutdown(self):
        """Stop accepting connections. Threads already running finish normally."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_for_shutdown(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("rawhttp").setLevel(level)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle_connection(self, conn: Connection):
        """
        Serve one connection from start to finish (runs on its own thread).

        READING → DISPATCHING → WRITING → CLOSED

        The connection is closed exactly once on every path, including the
        early return after a malformed request.
        """
        with conn:
            try:
                request = conn.read_request()
            except MalformedRequest as e:
                logger.warning(f"[{conn.id}] Error reading request: {e}")
                return

            logger.info(f"[{conn.id}] Received request: {request.method} {request.path}")
            if request.method == "POST":
                logger.debug(f"[{conn.id}] Request Body: {request.body!r}")

            try:
                response = self._dispatcher.dispatch(request)
            except Exception as e:
                logger.exception(f"[{conn.id}] Handler error: {e}")
                return

            try:
                conn.send_response(response)
            except WriteFailure as e:
                logger.warning(f"[{conn.id}] Error writing response: {e}")

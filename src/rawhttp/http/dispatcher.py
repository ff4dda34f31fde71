"""
Prefix dispatcher.

Chooses between the API handler and the static-file handler by looking at
nothing but the start of the request path:

    /api            → API handler
    /api/users/1    → API handler
    /apiary         → API handler   (plain string prefix, no segment check)
    /index.html     → static handler
"""

import logging
from typing import Callable

from .request import Request
from .response import Response


logger = logging.getLogger(__name__)


Handler = Callable[[Request], Response]

DEFAULT_API_PREFIX = "/api"


def is_api_request(path: str, prefix: str = DEFAULT_API_PREFIX) -> bool:
    """True when the request path starts with the API prefix."""
    return path.startswith(prefix)


class Dispatcher:
    """
    Routes each request to exactly one of two handlers.

    Usage:
        dispatcher = Dispatcher(handle_api, StaticFileHandler("./www").handle)
        response = dispatcher.dispatch(request)
    """

    def __init__(
        self,
        api_handler: Handler,
        static_handler: Handler,
        api_prefix: str = DEFAULT_API_PREFIX,
    ):
        self.api_handler = api_handler
        self.static_handler = static_handler
        self.api_prefix = api_prefix

    def select(self, request: Request) -> Handler:
        """Return the handler that will serve this request."""
        if is_api_request(request.path, self.api_prefix):
            return self.api_handler
        return self.static_handler

    def dispatch(self, request: Request) -> Response:
        handler = self.select(request)
        logger.debug(f"Dispatching {request.method} {request.path} to {_handler_name(handler)}")
        return handler(request)


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", type(handler).__name__)

"""
=============================================================================
HTTP PROTOCOL COMPONENTS
=============================================================================

The wire layer of the server:

    request.py     Byte stream → Request     (the Wire Reader)
    response.py    Response → bytes → socket (the Wire Writer)
    dispatcher.py  Request → API or static handler
    mime_types.py  Content-Type sniffing for file bodies

=============================================================================
"""

from .request import Request, MalformedRequest, read_request
from .response import (
    Response,
    WriteFailure,
    write_response,
    text_response,
    file_response,
)
from .dispatcher import Dispatcher, Handler, is_api_request
from .mime_types import detect_content_type

__all__ = [
    # Reading
    "Request",
    "MalformedRequest",
    "read_request",

    # Writing
    "Response",
    "WriteFailure",
    "write_response",
    "text_response",
    "file_response",

    # Dispatching
    "Dispatcher",
    "Handler",
    "is_api_request",

    # Content types
    "detect_content_type",
]

"""
API handler.

Every request under the API prefix gets a 200 text/plain response that
echoes the requested path:

    GET /api/foo   →   200 OK   "Request Path: /api/foo"

The path is echoed byte for byte, whatever its encoding.
"""

from ..http.request import Request
from ..http.response import Response, text_response


def handle_api(request: Request) -> Response:
    return text_response(200, f"Request Path: {request.path}")

"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Serves files from a document root directory.

=============================================================================
REQUEST → FILE MAPPING
=============================================================================

    GET /index.html          → <root>/index.html
    GET /css/site.css        → <root>/css/site.css
    GET /                    → <root>            (a directory → 404)

The path is used exactly as it arrived on the wire. There is no
percent-decoding and no query-string stripping, so "/a.txt?v=1" looks for a
file literally named "a.txt?v=1".

=============================================================================
RESPONSES
=============================================================================

    ┌────────────────────────────┬────────┬──────────────────────────────┐
    │ Situation                  │ Status │ Body                         │
    ├────────────────────────────┼────────┼──────────────────────────────┤
    │ method is not GET          │  500   │ Not Implemented Yet!         │
    │ no such file / directory   │  404   │ File Doesn't Exist           │
    │ path escapes the root      │  404   │ File Doesn't Exist           │
    │ file cannot be read        │  500   │ Error reading file           │
    │ success                    │  200   │ file bytes (sniffed type)    │
    └────────────────────────────┴────────┴──────────────────────────────┘

=============================================================================
PATH TRAVERSAL PROTECTION
=============================================================================

    GET /../../etc/passwd

    (root / "../../etc/passwd").resolve()  →  /etc/passwd
    /etc/passwd.relative_to(root)          →  ValueError  →  404

The resolved path (after following ".." and symlinks) must stay inside the
resolved document root. Anything else is answered exactly like a missing
file, so the response does not reveal whether the target exists.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Optional

from ..http.request import Request
from ..http.response import Response, text_response, file_response


logger = logging.getLogger(__name__)


NOT_IMPLEMENTED_BODY = "Not Implemented Yet!"
NOT_FOUND_BODY = "File Doesn't Exist"
READ_ERROR_BODY = "Error reading file"


class StaticFileHandler:
    """
    Handler for serving static files.

    Usage:
        static = StaticFileHandler("./www")
        response = static.handle(request)
    """

    def __init__(self, root_dir: str | Path):
        """
        Args:
            root_dir: Directory to serve files from. It does not have to
                      exist yet; until it does, every lookup is a 404.
        """
        # Resolve once so the containment check compares canonical paths
        self.root_dir = Path(root_dir).resolve()

        if not self.root_dir.is_dir():
            logger.warning(f"Document root does not exist: {self.root_dir}")

    def handle(self, request: Request) -> Response:
        """
        Serve the file named by the request path.

        Args:
            request: The parsed request.

        Returns:
            A 200 response with the file, or a 404/500 text response.
        """
        if request.method != "GET":
            return text_response(500, NOT_IMPLEMENTED_BODY)

        full_path = self.resolve(request.path)
        if full_path is None or not _is_file(full_path):
            return text_response(404, NOT_FOUND_BODY)

        try:
            content = full_path.read_bytes()
        except OSError as e:
            logger.error(f"Error reading file {full_path}: {e}")
            return text_response(500, READ_ERROR_BODY)

        response = file_response(200, content)
        logger.debug(f"Serving {full_path} as {response.content_type}")
        return response

    def resolve(self, url_path: str) -> Optional[Path]:
        """
        Map a request path onto the filesystem.

        Returns:
            The resolved path, or None if it would leave the document root
            or cannot be represented as a filesystem path.
        """
        relative = url_path.lstrip("/")

        try:
            full_path = (self.root_dir / relative).resolve()
        except (OSError, ValueError) as e:
            # ValueError: embedded NUL byte; OSError: e.g. symlink loop
            logger.warning(f"Unresolvable path {url_path!r}: {e}")
            return None

        try:
            full_path.relative_to(self.root_dir)
        except ValueError:
            logger.warning(f"Path traversal attempt: {url_path}")
            return None

        return full_path


def _is_file(path: Path) -> bool:
    """Path.is_file(), treating stat errors such as ENAMETOOLONG as "no file"."""
    try:
        return path.is_file()
    except OSError:
        return False


"""
=============================================================================
REQUEST HANDLERS
=============================================================================

The two collaborators the dispatcher chooses between:

    api.py      handle_api         - echoes the request path
    static.py   StaticFileHandler  - serves files from the document root

Both take a Request and return a Response. Neither raises for ordinary
failures (missing file, wrong method, unreadable file); those become
404/500 responses.

=============================================================================
"""

from .api import handle_api
from .static import StaticFileHandler

__all__ = [
    "handle_api",
    "StaticFileHandler",
]

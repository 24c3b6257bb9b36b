"""FastAPI dependencies for route handlers.

Common dependencies like database sessions and the authenticated viewer.
"""

from switchboard.auth.middleware import Viewer, get_viewer
from switchboard.db.session import get_db, get_session_factory

__all__ = ["Viewer", "get_db", "get_session_factory", "get_viewer"]

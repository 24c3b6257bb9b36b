"""Authentication and authorization module.

This module provides:
- Opaque bearer token verification (AccessTokenVerifier)
- Auth middleware for FastAPI
- Request state with viewer identity
- Password hashing helpers
"""

from switchboard.auth.middleware import AuthMiddleware, Viewer, get_viewer
from switchboard.auth.verifier import AccessTokenVerifier, TokenVerifier, VerifiedToken

__all__ = [
    "AuthMiddleware",
    "Viewer",
    "get_viewer",
    "AccessTokenVerifier",
    "TokenVerifier",
    "VerifiedToken",
]

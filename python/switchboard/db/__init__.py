"""Database module for Switchboard.

Provides engine creation, session management, transaction helpers, and ORM models.
"""

from switchboard.db.engine import create_db_engine, get_engine
from switchboard.db.models import (
    AccessToken,
    AllowedContact,
    Base,
    Group,
    GroupMember,
    Message,
    Notification,
    User,
)
from switchboard.db.session import get_db, transaction

__all__ = [
    # Engine and session
    "create_db_engine",
    "get_engine",
    "get_db",
    "transaction",
    # Base
    "Base",
    # Models
    "User",
    "AccessToken",
    "Group",
    "GroupMember",
    "AllowedContact",
    "Message",
    "Notification",
]

"""Business logic services.

Service functions are called by route handlers. They own validation,
authorization and transactions; routes only translate HTTP.
"""

from switchboard.services.contact_policy import can_message
from switchboard.services.groups import get_group_or_404, require_member
from switchboard.services.users import get_user_or_404

__all__ = [
    "can_message",
    "get_group_or_404",
    "get_user_or_404",
    "require_member",
]

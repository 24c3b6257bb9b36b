"""Direct-message contact policy.

A pure decision function: no session, no viewer object, no I/O. Callers
load the sender's allow-list and pass it in as data.

Rule:
- Empty allow-list: the sender may message anyone.
- Non-empty allow-list: the sender may message only listed contacts.
"""

from collections.abc import Collection
from uuid import UUID


def can_message(sender_id: UUID, recipient_id: UUID, allow_list: Collection[UUID]) -> bool:
    """Decide whether sender_id may send a direct message to recipient_id.

    Args:
        sender_id: The sending user.
        recipient_id: The intended receiver.
        allow_list: The sender's allowed contact ids.

    Returns:
        True if the message is permitted.
    """
    if not allow_list:
        return True
    return recipient_id in allow_list

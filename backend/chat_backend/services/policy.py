"""
Ownership checks shared by every chat-scoped endpoint.
"""
from ..errors import PermissionDeniedError
from ..models.auth import UserRecord
from ..models.chat import ChatRecord


def require_chat_owner(chat: ChatRecord, user: UserRecord) -> ChatRecord:
    """Return the chat if the user owns it, otherwise raise PermissionDeniedError."""
    if chat.user_id != user.id:
        raise PermissionDeniedError("Unauthorized access to chat")
    return chat

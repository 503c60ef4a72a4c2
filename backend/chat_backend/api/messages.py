"""
API endpoints for chat messages.
"""
from typing import List

from fastapi import APIRouter, Depends

from ..models.auth import UserRecord
from ..models.chat import MessageCreate, MessageRecord
from ..services.container import Services
from .deps import get_current_user, get_services, owned_chat

router = APIRouter()


@router.post("", response_model=MessageRecord, status_code=201)
def create_message(
    request: MessageCreate,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Store a message; bot messages are stored without <think> blocks."""
    owned_chat(services, request.chat_id, user)
    return services.messages.create(
        request.chat_id,
        user.id,
        request.content,
        message_type=request.message_type,
        file_ids=request.file_ids,
    )


@router.get("/chat/{chat_id}", response_model=List[MessageRecord])
def list_messages(
    chat_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    owned_chat(services, chat_id, user)
    return services.messages.list_for_chat(chat_id)


@router.get("/{message_id}", response_model=MessageRecord)
def get_message(
    message_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    message = services.messages.get(message_id)
    owned_chat(services, message.chat_id, user)
    return message


@router.delete("/{message_id}")
def delete_message(
    message_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    message = services.messages.get(message_id)
    owned_chat(services, message.chat_id, user)
    services.messages.delete(message_id)
    return {"success": True, "message": "Message deleted successfully"}

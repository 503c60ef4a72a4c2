"""
API endpoints for sharing chats through tokenized links.
"""
from fastapi import APIRouter, Depends, HTTPException

from ..models.auth import UserRecord
from ..models.chat import PublicChatView, ShareResponse, SharedChatResponse
from ..services.chats import share_url
from ..services.container import Services
from .deps import get_current_user, get_services, owned_chat

router = APIRouter()


@router.get("/{share_token}", response_model=SharedChatResponse)
def get_shared_chat(share_token: str, services: Services = Depends(get_services)):
    """Public transcript of a shared chat. No authentication required."""
    chat = services.chats.get_by_share_token(share_token)
    if chat is None:
        raise HTTPException(status_code=404, detail="Shared chat not found")

    return SharedChatResponse(
        chat=PublicChatView(title=chat.title, created_at=chat.created_at, llm_type=chat.llm_type),
        messages=services.messages.list_for_chat(chat.id),
    )


@router.post("/generate/{chat_id}", response_model=ShareResponse)
def generate_share_url(
    chat_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    chat = owned_chat(services, chat_id, user)
    return ShareResponse(
        share_token=chat.share_token,
        share_url=share_url(services.settings.share_base_url, chat.share_token),
        chat_title=chat.title,
    )


@router.delete("/disable/{chat_id}")
def disable_sharing(
    chat_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Rotate the share token so existing links stop resolving."""
    owned_chat(services, chat_id, user)
    services.chats.rotate_share_token(chat_id)
    return {"success": True, "message": "Sharing disabled successfully"}

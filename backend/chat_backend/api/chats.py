"""
API endpoints for chat sessions and plain generation.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..errors import ChatBackendError
from ..models.auth import UserRecord
from ..models.chat import (
    ChatCreate,
    ChatRecord,
    ChatTitleUpdate,
    GenerateRequest,
    GenerateResponse,
    ShareResponse,
)
from ..services.chats import share_url
from ..services.container import Services
from .deps import get_current_user, get_services, owned_chat, owned_file

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=ChatRecord, status_code=201)
def create_chat(
    request: ChatCreate,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.chats.create(user.id, request.title, request.llm_type, request.status)


@router.get("", response_model=List[ChatRecord])
def list_chats(
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Get the chats of the logged-in user."""
    return services.chats.list_for_user(user.id)


@router.post("/generate", response_model=GenerateResponse)
def generate(
    request: GenerateRequest,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Generate a reply, grounding the prompt on an attached file when there is one."""
    attachment = request.file_attachment
    file = None
    if attachment is not None and attachment.file_id is not None:
        file = owned_file(services, attachment.file_id, user)

    try:
        response = services.chat_generator.generate_for_request(
            request.prompt,
            model=request.model,
            attachment=attachment,
            server_id=request.server_id,
            file=file,
        )
    except (HTTPException, ChatBackendError):
        raise
    except Exception as e:
        logger.error("Error generating response: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error generating response: {str(e)}")

    return GenerateResponse(response=response, model=services.generation.resolve_model(request.model))


@router.post("/admin/update-default-tokens")
def update_default_tokens(
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Replace placeholder share tokens left by older data."""
    if user.role != "ADMIN":
        raise HTTPException(status_code=403, detail="Admin role required")
    return {"success": True, "updated": services.chats.update_legacy_share_tokens()}


@router.delete("/all")
def delete_all_chats(
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    for chat in services.chats.list_for_user(user.id):
        services.files.purge_chat(chat.id)
    deleted = services.chats.delete_all_for_user(user.id)
    return {"success": True, "deleted": deleted}


@router.get("/{chat_id}", response_model=ChatRecord)
def get_chat(
    chat_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return owned_chat(services, chat_id, user)


@router.delete("/{chat_id}")
def delete_chat(
    chat_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    owned_chat(services, chat_id, user)
    services.files.purge_chat(chat_id)
    services.chats.delete(chat_id)
    return {"success": True, "message": "Chat deleted successfully"}


@router.put("/{chat_id}/title", response_model=ChatRecord)
def rename_chat(
    chat_id: int,
    request: ChatTitleUpdate,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    owned_chat(services, chat_id, user)
    return services.chats.rename(chat_id, request.title)


@router.get("/{chat_id}/share", response_model=ShareResponse)
def get_share_info(
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


@router.post("/{chat_id}/regenerate-share", response_model=ShareResponse)
def regenerate_share(
    chat_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Issue a new share token; links built on the old one stop working."""
    owned_chat(services, chat_id, user)
    chat = services.chats.rotate_share_token(chat_id)
    return ShareResponse(
        share_token=chat.share_token,
        share_url=share_url(services.settings.share_base_url, chat.share_token),
        chat_title=chat.title,
    )

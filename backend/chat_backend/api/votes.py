"""
API endpoints for feedback votes.
"""
from typing import List

from fastapi import APIRouter, Depends

from ..models.auth import UserRecord
from ..models.chat import VoteCreate, VoteRecord
from ..services.container import Services
from .deps import get_current_user, get_services, owned_chat

router = APIRouter()


@router.post("", response_model=VoteRecord, status_code=201)
def create_vote(
    request: VoteCreate,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    owned_chat(services, request.chat_id, user)
    return services.votes.create(request.chat_id, request.vote, request.message_id, request.comment)


@router.get("/chat/{chat_id}", response_model=List[VoteRecord])
def list_votes(
    chat_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    owned_chat(services, chat_id, user)
    return services.votes.list_for_chat(chat_id)


@router.get("/{vote_id}", response_model=VoteRecord)
def get_vote(
    vote_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    vote = services.votes.get(vote_id)
    owned_chat(services, vote.chat_id, user)
    return vote


@router.delete("/{vote_id}")
def delete_vote(
    vote_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    vote = services.votes.get(vote_id)
    owned_chat(services, vote.chat_id, user)
    services.votes.delete(vote_id)
    return {"success": True, "message": "Vote deleted successfully"}

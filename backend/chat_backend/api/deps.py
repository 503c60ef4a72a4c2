"""
Shared FastAPI dependencies.
"""
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..errors import AuthenticationError
from ..models.auth import UserRecord
from ..models.chat import ChatRecord
from ..models.file import ChatFileRecord
from ..services.container import Services
from ..services.policy import require_chat_owner

bearer_scheme = HTTPBearer(auto_error=False)


def get_services(request: Request) -> Services:
    """Get the service container of the running application."""
    services = getattr(request.app.state, "services", None)
    if not services:
        raise HTTPException(status_code=503, detail="Chat services not available")
    return services


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    services: Services = Depends(get_services),
) -> UserRecord:
    """Resolve the bearer JWT to a user."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        return services.auth.user_from_token(credentials.credentials)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=e.message)


def owned_chat(services: Services, chat_id: int, user: UserRecord) -> ChatRecord:
    return require_chat_owner(services.chats.get(chat_id), user)


def owned_file(services: Services, file_id: int, user: UserRecord) -> ChatFileRecord:
    file = services.files.get(file_id)
    require_chat_owner(services.chats.get(file.chat_id), user)
    return file

"""
API endpoints for accounts and login.
"""
from fastapi import APIRouter, Depends

from ..models.auth import ChangePasswordRequest, LoginRequest, LoginResponse, SignupRequest, UserRecord
from ..services.container import Services
from .deps import get_current_user, get_services

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, services: Services = Depends(get_services)):
    return services.auth.login(request.email, request.password)


@router.post("/signup", status_code=201)
def signup(request: SignupRequest, services: Services = Depends(get_services)):
    services.auth.signup(request.username, request.email, request.password)
    return {"success": True, "message": "User registered successfully"}


@router.post("/change-password")
def change_password(
    request: ChangePasswordRequest,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Change the password of the logged-in user."""
    services.auth.change_password(user.email, request.current_password, request.new_password)
    return {"success": True, "message": "Password changed successfully"}


@router.delete("/delete-account")
def delete_account(
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Delete the logged-in user along with their chats."""
    for chat in services.chats.list_for_user(user.id):
        services.files.purge_chat(chat.id)
    services.auth.delete_account(user.email)
    return {"success": True, "message": "Account deleted successfully"}


@router.get("/validate-token", response_model=UserRecord)
def validate_token(user: UserRecord = Depends(get_current_user)):
    return user

"""
Pydantic models for authentication.
"""
from pydantic import BaseModel, ConfigDict, Field


class UserRecord(BaseModel):
    id: int
    username: str
    email: str
    role: str = "USER"

    model_config = ConfigDict(from_attributes=True)


class SignupRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    token: str
    username: str
    email: str
    role: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=1)

"""
Pydantic models for chats, messages, votes and sharing.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatRecord(BaseModel):
    """A chat session owned by one user."""
    id: int
    title: str
    user_id: int
    created_at: datetime
    status: str = "active"
    llm_type: str
    share_token: str

    model_config = ConfigDict(from_attributes=True)


class ChatCreate(BaseModel):
    """Request model for creating a chat."""
    title: str = Field(..., min_length=1, max_length=255)
    llm_type: Optional[str] = Field(None, max_length=100, description="Model used for this chat")
    status: Optional[str] = Field(None, max_length=50)


class ChatTitleUpdate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)


class MessageRecord(BaseModel):
    """A single message within a chat."""
    id: int
    chat_id: int
    user_id: int
    message_type: str = Field(..., description="Message role: user or bot")
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MessageCreate(BaseModel):
    """Request model for storing a message."""
    chat_id: int
    content: str = Field(..., min_length=1)
    message_type: str = Field(default="user", max_length=50)
    file_ids: Optional[List[int]] = Field(default=None, description="Uploaded files to link to this message")


class VoteRecord(BaseModel):
    """Feedback on a chat or one of its messages."""
    id: int
    chat_id: int
    message_id: Optional[int] = None
    vote: int
    comment: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VoteCreate(BaseModel):
    chat_id: int
    message_id: Optional[int] = None
    vote: int
    comment: Optional[str] = Field(None, max_length=1000)


class FileAttachment(BaseModel):
    """File reference sent along with a generation request."""
    file_id: Optional[int] = None
    file_name: str = "file"
    content_type: Optional[str] = None
    file_size: Optional[int] = None


class GenerateRequest(BaseModel):
    """Plain chat generation request."""
    prompt: str = Field(..., min_length=1)
    model: Optional[str] = None
    server_id: Optional[int] = Field(None, description="Use this server instead of the default one")
    file_attachment: Optional[FileAttachment] = None


class GenerateResponse(BaseModel):
    success: bool = True
    response: str
    model: str


class ShareResponse(BaseModel):
    """Share link details for a chat."""
    share_token: str
    share_url: str
    chat_title: str


class PublicChatView(BaseModel):
    """Chat fields that are safe to expose through a share link."""
    title: str
    created_at: datetime
    llm_type: str


class SharedChatResponse(BaseModel):
    chat: PublicChatView
    messages: List[MessageRecord]

"""
Pydantic models for uploaded files and file-assist requests.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatFileRecord(BaseModel):
    """Metadata row of an uploaded file."""
    id: int
    chat_id: int
    message_id: Optional[int] = None
    user_id: int
    file_name: str
    stored_name: str = Field(..., description="Opaque name of the blob under the upload directory")
    content_type: str
    file_size: int
    uploaded_at: datetime
    extracted_text: Optional[str] = None
    text_extraction_successful: bool = False

    model_config = ConfigDict(from_attributes=True)


class FileSummary(BaseModel):
    """File metadata without the extracted text blob."""
    id: int
    chat_id: int
    message_id: Optional[int] = None
    file_name: str
    content_type: str
    file_size: int
    uploaded_at: datetime
    text_extraction_successful: bool = False

    model_config = ConfigDict(from_attributes=True)


class FileUploadResponse(BaseModel):
    success: bool = True
    message: str = "File uploaded successfully"
    file: FileSummary
    extracted_text_length: int = 0


class ExtractedTextResponse(BaseModel):
    file_id: int
    file_name: str
    extracted_text: Optional[str] = None
    text_extraction_successful: bool
    text_length: int


class FileAnalysis(BaseModel):
    """Stateless analysis of an uploaded file."""
    file_name: str
    file_size: int
    content_type: Optional[str] = None
    text_extraction_supported: bool = False
    extraction_successful: bool = False
    full_text: Optional[str] = None
    text_preview: Optional[str] = None
    word_count: int = 0
    error_message: Optional[str] = None


class FileQuestionRequest(BaseModel):
    question: str = Field(..., min_length=1)
    model: Optional[str] = None
    server_id: Optional[int] = None


class FileQuestionWithContextRequest(FileQuestionRequest):
    context: Optional[str] = Field(None, description="Previous conversation context")


class FileTaskRequest(BaseModel):
    model: Optional[str] = None
    server_id: Optional[int] = None


class FileAIResponse(BaseModel):
    success: bool = True
    file_id: int
    file_name: str
    response: str


class SystemCheckResponse(BaseModel):
    upload_dir: str
    upload_dir_exists: bool
    upload_dir_writable: bool
    file_count: int
    supported_types: List[str]

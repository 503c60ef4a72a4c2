"""
API endpoints for asking the model about uploaded files.
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from ..models.auth import UserRecord
from ..models.file import (
    ExtractedTextResponse,
    FileAIResponse,
    FileAnalysis,
    FileQuestionRequest,
    FileQuestionWithContextRequest,
    FileTaskRequest,
)
from ..services.container import Services
from .deps import get_current_user, get_services, owned_file

router = APIRouter()


@router.post("/analyze", response_model=FileAnalysis)
def analyze_upload(
    file: UploadFile = File(...),
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Extract text from a file without storing it."""
    content = file.file.read()
    if not content:
        raise HTTPException(status_code=400, detail="File is empty")
    return services.extractor.analyze(file.filename or "file", content, file.content_type)


@router.post("/question/{file_id}", response_model=FileAIResponse)
def ask_about_file(
    file_id: int,
    request: FileQuestionRequest,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    file = owned_file(services, file_id, user)
    response = services.file_assistant.ask(file, request.question, request.model, request.server_id)
    return FileAIResponse(file_id=file.id, file_name=file.file_name, response=response)


@router.post("/question-with-context/{file_id}", response_model=FileAIResponse)
def ask_about_file_with_context(
    file_id: int,
    request: FileQuestionWithContextRequest,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    file = owned_file(services, file_id, user)
    response = services.file_assistant.ask_with_context(
        file, request.question, request.context, request.model, request.server_id
    )
    return FileAIResponse(file_id=file.id, file_name=file.file_name, response=response)


@router.post("/summarize/{file_id}", response_model=FileAIResponse)
def summarize_file(
    file_id: int,
    request: Optional[FileTaskRequest] = None,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    request = request or FileTaskRequest()
    file = owned_file(services, file_id, user)
    response = services.file_assistant.summarize(file, request.model, request.server_id)
    return FileAIResponse(file_id=file.id, file_name=file.file_name, response=response)


@router.post("/detailed-analysis/{file_id}", response_model=FileAIResponse)
def analyze_file(
    file_id: int,
    request: Optional[FileTaskRequest] = None,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    request = request or FileTaskRequest()
    file = owned_file(services, file_id, user)
    response = services.file_assistant.analyze(file, request.model, request.server_id)
    return FileAIResponse(file_id=file.id, file_name=file.file_name, response=response)


@router.get("/text/{file_id}", response_model=ExtractedTextResponse)
def get_extracted_text(
    file_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    file = owned_file(services, file_id, user)
    return ExtractedTextResponse(
        file_id=file.id,
        file_name=file.file_name,
        extracted_text=file.extracted_text,
        text_extraction_successful=file.text_extraction_successful,
        text_length=len(file.extracted_text or ""),
    )


@router.post("/re-extract/{file_id}", response_model=ExtractedTextResponse)
def re_extract_text(
    file_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Run text extraction again on the stored file."""
    owned_file(services, file_id, user)
    file = services.files.re_extract(file_id)
    return ExtractedTextResponse(
        file_id=file.id,
        file_name=file.file_name,
        extracted_text=file.extracted_text,
        text_extraction_successful=file.text_extraction_successful,
        text_length=len(file.extracted_text or ""),
    )

"""
API endpoints for uploaded chat files.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from ..errors import ChatBackendError
from ..models.auth import UserRecord
from ..models.file import FileSummary, FileUploadResponse, SystemCheckResponse
from ..services.container import Services
from .deps import get_current_user, get_services, owned_chat, owned_file

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/upload", response_model=FileUploadResponse)
def upload_file(
    file: UploadFile = File(...),
    chat_id: int = Form(...),
    message_id: Optional[int] = Form(None),
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Upload a file to a chat and extract its text."""
    owned_chat(services, chat_id, user)
    try:
        content = file.file.read()
        if not content:
            raise HTTPException(status_code=400, detail="File is empty")

        record = services.files.upload(
            chat_id,
            user.id,
            file.filename or "file",
            content,
            content_type=file.content_type,
            message_id=message_id,
        )
    except (HTTPException, ChatBackendError):
        raise
    except Exception as e:
        logger.error("Error uploading file: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error uploading file: {str(e)}")

    return FileUploadResponse(
        file=FileSummary.model_validate(record),
        extracted_text_length=len(record.extracted_text or ""),
    )


@router.get("/chat/{chat_id}", response_model=List[FileSummary])
def list_chat_files(
    chat_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    owned_chat(services, chat_id, user)
    return services.files.list_for_chat(chat_id)


@router.get("/message/{message_id}", response_model=List[FileSummary])
def list_message_files(
    message_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    message = services.messages.get(message_id)
    owned_chat(services, message.chat_id, user)
    return services.files.list_for_message(message_id)


@router.get("/system-check", response_model=SystemCheckResponse)
def system_check(
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Report on the upload directory and stored file count."""
    return services.files.system_check()


@router.get("/download/{file_id}")
def download_file(
    file_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    file = owned_file(services, file_id, user)
    content = services.files.read_content(file)
    return Response(
        content=content,
        media_type=file.content_type,
        headers={"Content-Disposition": f'attachment; filename="{file.file_name}"'},
    )


@router.get("/{file_id}", response_model=FileSummary)
def get_file(
    file_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return owned_file(services, file_id, user)


@router.delete("/{file_id}")
def delete_file(
    file_id: int,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    owned_file(services, file_id, user)
    services.files.delete(file_id)
    return {"success": True, "message": "File deleted successfully"}

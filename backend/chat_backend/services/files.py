"""
Uploaded file storage: blobs on disk, metadata and extracted text in the database.
"""
import logging
import os
import uuid
from pathlib import Path
from typing import List, Optional

from sqlalchemy import func, select

from ..db.models import ChatFile, ChatMessage
from ..db.session import Database
from ..document_processor.extractor import SUPPORTED_TEXT_TYPES, TextExtractor
from ..errors import FileNotFoundInStoreError, MessageNotFoundError, ValidationError
from ..models.file import ChatFileRecord, SystemCheckResponse

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class FileService:
    """Stores uploads under ``upload_dir`` and records them with their extracted text."""

    def __init__(self, database: Database, extractor: TextExtractor, upload_dir: str):
        self.database = database
        self.extractor = extractor
        self.upload_dir = Path(upload_dir)

    def blob_path(self, stored_name: str) -> Path:
        return self.upload_dir / stored_name

    def upload(
        self,
        chat_id: int,
        user_id: int,
        file_name: str,
        content: bytes,
        content_type: Optional[str] = None,
        message_id: Optional[int] = None,
    ) -> ChatFileRecord:
        """Persist the blob, extract its text and record the metadata row."""
        if not content:
            raise ValidationError("File is empty")
        if message_id is not None:
            self._check_message(chat_id, message_id)

        file_name = os.path.basename(file_name or "file")
        content_type = content_type or DEFAULT_CONTENT_TYPE
        extension = os.path.splitext(file_name)[1]
        stored_name = f"{uuid.uuid4()}{extension}"

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        path = self.blob_path(stored_name)
        path.write_bytes(content)

        result = self.extractor.extract(content, content_type)
        logger.info(
            "Uploaded %s (%d bytes, %s) to chat %d, extraction successful: %s",
            file_name, len(content), content_type, chat_id, result.success,
        )

        row = ChatFile(
            chat_id=chat_id,
            message_id=message_id,
            user_id=user_id,
            file_name=file_name,
            stored_name=stored_name,
            content_type=content_type,
            file_size=len(content),
            extracted_text=result.text,
            text_extraction_successful=result.success,
        )
        try:
            with self.database.session() as session:
                session.add(row)
                session.flush()
                return ChatFileRecord.model_validate(row)
        except Exception:
            # No blob without a row
            path.unlink(missing_ok=True)
            raise

    def get(self, file_id: int) -> ChatFileRecord:
        with self.database.session() as session:
            return ChatFileRecord.model_validate(self._load(session, file_id))

    def list_for_chat(self, chat_id: int) -> List[ChatFileRecord]:
        with self.database.session() as session:
            rows = session.scalars(
                select(ChatFile).where(ChatFile.chat_id == chat_id).order_by(ChatFile.id)
            ).all()
            return [ChatFileRecord.model_validate(row) for row in rows]

    def list_for_message(self, message_id: int) -> List[ChatFileRecord]:
        with self.database.session() as session:
            rows = session.scalars(
                select(ChatFile).where(ChatFile.message_id == message_id).order_by(ChatFile.id)
            ).all()
            return [ChatFileRecord.model_validate(row) for row in rows]

    def read_content(self, file: ChatFileRecord) -> bytes:
        """Read a file's bytes. A row whose blob is missing is an error."""
        path = self.blob_path(file.stored_name)
        if not path.exists():
            raise FileNotFoundInStoreError(f"File not found: {file.file_name}")
        return path.read_bytes()

    def re_extract(self, file_id: int) -> ChatFileRecord:
        """Run extraction again on the stored blob and save the new result."""
        file = self.get(file_id)
        result = self.extractor.extract(self.read_content(file), file.content_type)
        with self.database.session() as session:
            row = self._load(session, file_id)
            row.extracted_text = result.text
            row.text_extraction_successful = result.success
            session.flush()
            return ChatFileRecord.model_validate(row)

    def delete(self, file_id: int) -> None:
        with self.database.session() as session:
            row = self._load(session, file_id)
            stored_name = row.stored_name
            session.delete(row)
        self.blob_path(stored_name).unlink(missing_ok=True)

    def purge_chat(self, chat_id: int) -> int:
        """Remove the blobs of a chat's files. Rows go with the chat via cascade."""
        files = self.list_for_chat(chat_id)
        for file in files:
            self.blob_path(file.stored_name).unlink(missing_ok=True)
        return len(files)

    def count(self) -> int:
        with self.database.session() as session:
            return session.scalar(select(func.count(ChatFile.id))) or 0

    def system_check(self) -> SystemCheckResponse:
        exists = self.upload_dir.is_dir()
        return SystemCheckResponse(
            upload_dir=str(self.upload_dir.resolve()),
            upload_dir_exists=exists,
            upload_dir_writable=exists and os.access(self.upload_dir, os.W_OK),
            file_count=self.count(),
            supported_types=SUPPORTED_TEXT_TYPES,
        )

    @staticmethod
    def _load(session, file_id: int) -> ChatFile:
        row = session.get(ChatFile, file_id)
        if row is None:
            raise FileNotFoundInStoreError(f"File not found: {file_id}")
        return row

    def _check_message(self, chat_id: int, message_id: int) -> None:
        """A file can only be linked to an existing message of the same chat."""
        with self.database.session() as session:
            message = session.get(ChatMessage, message_id)
            if message is None:
                raise MessageNotFoundError(message_id)
            if message.chat_id != chat_id:
                raise ValidationError(f"Message {message_id} does not belong to chat {chat_id}")

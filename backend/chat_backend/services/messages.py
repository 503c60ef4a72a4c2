"""
Chat messages and their links to uploaded files.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, update

from ..db.models import ChatFile, ChatMessage
from ..db.session import Database
from ..errors import MessageNotFoundError, ValidationError
from ..llm.prompts import is_bot_message, remove_think_tags
from ..models.chat import MessageRecord

logger = logging.getLogger(__name__)


class MessageService:
    def __init__(self, database: Database):
        self.database = database

    def create(self, chat_id: int, user_id: int, content: str, message_type: str = "user",
               file_ids: Optional[List[int]] = None) -> MessageRecord:
        """Store a message and attach uploaded files to it.

        Bot messages have their <think> blocks removed. Without explicit file ids,
        every file of the chat that is not yet linked to a message is attached.
        """
        if not content or not content.strip():
            raise ValidationError("Message content cannot be empty")

        if is_bot_message(message_type):
            content = remove_think_tags(content)

        row = ChatMessage(chat_id=chat_id, user_id=user_id, message_type=message_type, content=content)
        with self.database.session() as session:
            session.add(row)
            session.flush()

            stmt = update(ChatFile).where(ChatFile.chat_id == chat_id).values(message_id=row.id)
            if file_ids:
                stmt = stmt.where(ChatFile.id.in_(file_ids))
            else:
                stmt = stmt.where(ChatFile.message_id.is_(None))
            linked = session.execute(stmt).rowcount or 0

            record = MessageRecord.model_validate(row)

        if linked:
            logger.debug("Linked %d files to message %d", linked, record.id)
        return record

    def list_for_chat(self, chat_id: int) -> List[MessageRecord]:
        with self.database.session() as session:
            rows = session.scalars(
                select(ChatMessage)
                .where(ChatMessage.chat_id == chat_id)
                .order_by(ChatMessage.created_at, ChatMessage.id)
            ).all()
            return [MessageRecord.model_validate(row) for row in rows]

    def get(self, message_id: int) -> MessageRecord:
        with self.database.session() as session:
            return MessageRecord.model_validate(self._load(session, message_id))

    def delete(self, message_id: int) -> None:
        with self.database.session() as session:
            session.delete(self._load(session, message_id))

    @staticmethod
    def _load(session, message_id: int) -> ChatMessage:
        row = session.get(ChatMessage, message_id)
        if row is None:
            raise MessageNotFoundError(message_id)
        return row

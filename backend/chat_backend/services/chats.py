"""
Chat sessions and their share tokens.
"""
import logging
import uuid
from typing import List, Optional

from sqlalchemy import delete, select

from ..db.models import Chat
from ..db.session import Database
from ..errors import ChatNotFoundError, ValidationError
from ..models.chat import ChatRecord

logger = logging.getLogger(__name__)

LEGACY_SHARE_TOKEN = "default-token"


def generate_share_token() -> str:
    return "sh_" + uuid.uuid4().hex


def share_url(share_base_url: str, share_token: str) -> str:
    return f"{share_base_url.rstrip('/')}/share/{share_token}"


class ChatService:
    """CRUD over chats owned by users."""

    def __init__(self, database: Database, default_model: str):
        self.database = database
        self.default_model = default_model

    def create(self, user_id: int, title: str, llm_type: Optional[str] = None,
               status: Optional[str] = None) -> ChatRecord:
        if not title or not title.strip():
            raise ValidationError("Chat title cannot be empty")

        row = Chat(
            title=title.strip(),
            user_id=user_id,
            status=status or "active",
            llm_type=llm_type or self.default_model,
            share_token=generate_share_token(),
        )
        with self.database.session() as session:
            session.add(row)
            session.flush()
            return ChatRecord.model_validate(row)

    def get(self, chat_id: int) -> ChatRecord:
        with self.database.session() as session:
            return ChatRecord.model_validate(self._load(session, chat_id))

    def get_by_share_token(self, share_token: str) -> Optional[ChatRecord]:
        with self.database.session() as session:
            row = session.scalars(select(Chat).where(Chat.share_token == share_token)).first()
            return ChatRecord.model_validate(row) if row else None

    def list_for_user(self, user_id: int) -> List[ChatRecord]:
        """Chats of one user, newest first."""
        with self.database.session() as session:
            rows = session.scalars(
                select(Chat).where(Chat.user_id == user_id).order_by(Chat.created_at.desc(), Chat.id.desc())
            ).all()
            return [ChatRecord.model_validate(row) for row in rows]

    def rename(self, chat_id: int, title: str) -> ChatRecord:
        if not title or not title.strip():
            raise ValidationError("Chat title cannot be empty")
        with self.database.session() as session:
            row = self._load(session, chat_id)
            row.title = title.strip()
            session.flush()
            return ChatRecord.model_validate(row)

    def rotate_share_token(self, chat_id: int) -> ChatRecord:
        """Give the chat a new share token, invalidating old share links."""
        with self.database.session() as session:
            row = self._load(session, chat_id)
            row.share_token = generate_share_token()
            session.flush()
            return ChatRecord.model_validate(row)

    def update_legacy_share_tokens(self) -> int:
        """Replace placeholder share tokens with unique ones."""
        with self.database.session() as session:
            rows = session.scalars(select(Chat).where(Chat.share_token == LEGACY_SHARE_TOKEN)).all()
            for row in rows:
                row.share_token = generate_share_token()
            count = len(rows)
        logger.info("Updated %d chats with unique share tokens", count)
        return count

    def delete(self, chat_id: int) -> None:
        with self.database.session() as session:
            session.delete(self._load(session, chat_id))

    def delete_all_for_user(self, user_id: int) -> int:
        with self.database.session() as session:
            result = session.execute(delete(Chat).where(Chat.user_id == user_id))
            return result.rowcount or 0

    @staticmethod
    def _load(session, chat_id: int) -> Chat:
        row = session.get(Chat, chat_id)
        if row is None:
            raise ChatNotFoundError(chat_id)
        return row

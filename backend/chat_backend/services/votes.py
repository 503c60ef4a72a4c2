"""
Feedback votes on chats and messages.
"""
from typing import List, Optional

from sqlalchemy import select

from ..db.models import ChatMessage, ChatVote
from ..db.session import Database
from ..errors import ValidationError, VoteNotFoundError
from ..models.chat import VoteRecord


class VoteService:
    def __init__(self, database: Database):
        self.database = database

    def create(self, chat_id: int, vote: int, message_id: Optional[int] = None,
               comment: Optional[str] = None) -> VoteRecord:
        with self.database.session() as session:
            if message_id is not None:
                message = session.get(ChatMessage, message_id)
                if message is None or message.chat_id != chat_id:
                    raise ValidationError(f"Message {message_id} does not belong to chat {chat_id}")

            row = ChatVote(chat_id=chat_id, message_id=message_id, vote=vote, comment=comment)
            session.add(row)
            session.flush()
            return VoteRecord.model_validate(row)

    def list_for_chat(self, chat_id: int) -> List[VoteRecord]:
        with self.database.session() as session:
            rows = session.scalars(
                select(ChatVote).where(ChatVote.chat_id == chat_id).order_by(ChatVote.id)
            ).all()
            return [VoteRecord.model_validate(row) for row in rows]

    def get(self, vote_id: int) -> VoteRecord:
        with self.database.session() as session:
            row = session.get(ChatVote, vote_id)
            if row is None:
                raise VoteNotFoundError(vote_id)
            return VoteRecord.model_validate(row)

    def delete(self, vote_id: int) -> None:
        with self.database.session() as session:
            row = session.get(ChatVote, vote_id)
            if row is None:
                raise VoteNotFoundError(vote_id)
            session.delete(row)

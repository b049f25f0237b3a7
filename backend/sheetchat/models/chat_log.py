"""Chat log model"""
from sqlalchemy import Column, String, Text, DateTime, JSON, Enum as SQLEnum
from datetime import datetime
import uuid
import enum

from sheetchat.core.database import Base


class MessageSender(str, enum.Enum):
    """Who wrote a chat message"""
    USER = "user"
    BOT = "bot"


class ChatLog(Base):
    """One chat message. Append-only; question and answer are separate rows."""
    __tablename__ = "chat_logs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    sheet_id = Column(String, nullable=False, index=True)

    text = Column(Text, nullable=False)
    sender = Column(SQLEnum(MessageSender), nullable=False)

    # {"range": ..., "value": ...} when the bot applied an edit
    update_applied = Column(JSON, nullable=True)

    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<ChatLog(id={self.id}, sheet_id={self.sheet_id}, sender={self.sender})>"

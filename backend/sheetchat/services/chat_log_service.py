"""Chat log service for recording and listing chat messages"""
from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from sheetchat.models.chat_log import ChatLog, MessageSender


class ChatLogService:
    """Append-only store of chat messages"""

    def __init__(self, db: Session):
        self.db = db

    def add_message(
        self,
        user_id: str,
        sheet_id: str,
        text: str,
        sender: MessageSender,
        update_applied: Optional[Dict[str, str]] = None,
    ) -> ChatLog:
        """Append one message"""
        message = ChatLog(
            user_id=user_id,
            sheet_id=sheet_id,
            text=text,
            sender=sender,
            update_applied=update_applied,
        )
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        return message

    def recent_activity(self, user_id: str, limit: int = 10) -> List[ChatLog]:
        """Most recent messages for a user, newest first"""
        return (
            self.db.query(ChatLog)
            .filter(ChatLog.user_id == user_id)
            .order_by(ChatLog.timestamp.desc())
            .limit(limit)
            .all()
        )

"""Chat activity API endpoints"""
from datetime import datetime
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Dict, List, Optional

from sheetchat.api.deps import get_identity
from sheetchat.core.database import get_db
from sheetchat.services.chat_log_service import ChatLogService
from sheetchat.services.identity import Identity

router = APIRouter()


class ActivityItem(BaseModel):
    """One logged chat message"""
    id: str
    sheetId: str
    text: str
    sender: str
    timestamp: datetime
    updateApplied: Optional[Dict[str, str]] = None


@router.get("/activity", response_model=List[ActivityItem])
def recent_activity(
    limit: int = Query(10, description="Number of messages to return", ge=1, le=100),
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Most recent chat messages for the caller, newest first"""
    messages = ChatLogService(db).recent_activity(identity.user_id, limit=limit)
    return [
        ActivityItem(
            id=m.id,
            sheetId=m.sheet_id,
            text=m.text,
            sender=m.sender.value,
            timestamp=m.timestamp,
            updateApplied=m.update_applied,
        )
        for m in messages
    ]

"""Chat API endpoint"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from sheetchat.api.deps import get_ai_service, get_identity, get_sheets_service
from sheetchat.config import settings
from sheetchat.core.database import get_db
from sheetchat.services.ai_service import AIService, EditInstruction
from sheetchat.services.chat_service import ChatService
from sheetchat.services.google_sheets_service import GoogleSheetsService
from sheetchat.services.identity import Identity

router = APIRouter()


class ChatRequest(BaseModel):
    """A question about a connected sheet"""
    question: Optional[str] = None
    spreadsheetId: Optional[str] = None
    useWritebackFlow: bool = False


class ChatResponse(BaseModel):
    """Answer text, plus the edit the model proposed (applied or not)"""
    response: str
    update: Optional[EditInstruction] = None


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
def chat(
    request: ChatRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
    sheets_service: GoogleSheetsService = Depends(get_sheets_service),
    ai_service: AIService = Depends(get_ai_service),
):
    """
    Run one chat turn

    Edits are written back only when useWritebackFlow is set and the caller
    supplied a Google access token (X-Google-Access-Token header, or the
    configured demo token).
    """
    chat_service = ChatService(
        db,
        sheets_service,
        ai_service,
        require_connection=not settings.demo_mode,
    )
    result = chat_service.handle_turn(
        identity,
        request.spreadsheetId,
        request.question,
        use_writeback_flow=request.useWritebackFlow,
    )
    return ChatResponse(response=result.response, update=result.update)

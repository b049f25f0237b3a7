"""Sheet connection and sheet data API endpoints"""
import logging
from datetime import datetime
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import List, Optional

from sheetchat.api.deps import get_identity, get_sheets_service
from sheetchat.core.database import get_db
from sheetchat.core.exceptions import NotFoundError, ValidationError
from sheetchat.models.sheet_connection import SheetConnection
from sheetchat.services.google_sheets_service import GoogleSheetsService, extract_sheet_id
from sheetchat.services.identity import Identity
from sheetchat.services.sheet_cache_service import SheetDataService
from sheetchat.services.sheet_connection_service import SheetConnectionService

router = APIRouter()
logger = logging.getLogger(__name__)


class ConnectRequest(BaseModel):
    """Request to connect a Google Sheet by URL"""
    sheetUrl: Optional[str] = None


class ConnectResponse(BaseModel):
    message: str
    spreadsheetId: str
    sheetName: str


class PromptUpdate(BaseModel):
    """Custom prompt template; empty clears it"""
    prompt: Optional[str] = None


class SheetConnectionResponse(BaseModel):
    """Connected sheet"""
    id: str
    name: str
    url: str
    ownerId: str
    addedAt: datetime
    customPrompt: Optional[str] = None


class SheetDataResponse(BaseModel):
    data: List[List[str]]
    source: str


def _connection_response(connection: SheetConnection) -> SheetConnectionResponse:
    return SheetConnectionResponse(
        id=connection.sheet_id,
        name=connection.name,
        url=connection.url,
        ownerId=connection.owner_id,
        addedAt=connection.added_at,
        customPrompt=connection.custom_prompt,
    )


@router.post("/connect", response_model=ConnectResponse)
def connect_sheet(
    request: ConnectRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
    sheets_service: GoogleSheetsService = Depends(get_sheets_service),
):
    """Connect a sheet from its URL"""
    if not request.sheetUrl:
        raise ValidationError("Sheet URL is required")

    spreadsheet_id = extract_sheet_id(request.sheetUrl)
    if not spreadsheet_id:
        raise ValidationError("Invalid Google Sheet URL")

    sheet_name = sheets_service.get_sheet_title(spreadsheet_id, identity.google_access_token)
    SheetConnectionService(db).connect(identity.user_id, spreadsheet_id, sheet_name, request.sheetUrl)
    logger.info(f"User {identity.user_id} connected sheet {spreadsheet_id}")

    return ConnectResponse(
        message="Sheet connected successfully",
        spreadsheetId=spreadsheet_id,
        sheetName=sheet_name,
    )


@router.get("", response_model=List[SheetConnectionResponse])
def list_sheets(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """List the caller's connected sheets, newest first"""
    connections = SheetConnectionService(db).list_for_owner(identity.user_id)
    return [_connection_response(c) for c in connections]


@router.delete("/{spreadsheet_id}")
def disconnect_sheet(
    spreadsheet_id: str,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Disconnect a sheet. Its cached data is left in place."""
    if not SheetConnectionService(db).disconnect(identity.user_id, spreadsheet_id):
        raise NotFoundError("Sheet not connected")

    return {"message": "Sheet disconnected successfully"}


@router.put("/{spreadsheet_id}/prompt", response_model=SheetConnectionResponse)
def update_sheet_prompt(
    spreadsheet_id: str,
    body: PromptUpdate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Set the prompt template used for this sheet's chats"""
    connection = SheetConnectionService(db).update_prompt(identity.user_id, spreadsheet_id, body.prompt)
    if not connection:
        raise NotFoundError("Sheet not connected")

    return _connection_response(connection)


@router.get("/{spreadsheet_id}/data", response_model=SheetDataResponse)
def get_sheet_data(
    spreadsheet_id: str,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
    sheets_service: GoogleSheetsService = Depends(get_sheets_service),
):
    """Sheet grid from cache when fresh, otherwise from the Sheets API"""
    grid, source = SheetDataService(db, sheets_service).get_sheet_data(spreadsheet_id, identity)
    return SheetDataResponse(data=grid, source=source)

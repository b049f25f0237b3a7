"""
Chat Service - Run one chat turn against a sheet

A turn moves through the ChatStage states in order, then logs the answer.
Failures while reading (sheet fetch, AI call) abort the turn after the
question has been logged.
Failures while writing an edit back are reported in the answer text instead.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional
from sqlalchemy.orm import Session

from sheetchat.core.exceptions import AuthError, SheetChatError, ValidationError
from sheetchat.models.chat_log import MessageSender
from sheetchat.services.ai_service import AIService, EditInstruction, WritebackContext
from sheetchat.services.chat_log_service import ChatLogService
from sheetchat.services.google_sheets_service import GoogleSheetsService
from sheetchat.services.identity import Identity
from sheetchat.services.prompt_formatter import format_sheet_for_prompt
from sheetchat.services.sheet_cache_service import SheetDataService
from sheetchat.services.sheet_connection_service import SheetConnectionService

logger = logging.getLogger(__name__)


class ChatStage(str, enum.Enum):
    LOGGING_QUESTION = "logging_question"
    FETCHING_SHEET = "fetching_sheet"
    FORMATTING = "formatting"
    CALLING_AI = "calling_ai"
    APPLYING_EDIT = "applying_edit"


@dataclass
class ChatTurnResult:
    response: str
    update: Optional[EditInstruction] = None


class ChatService:
    """Sequences cache, formatter, AI and writer for a single question"""

    def __init__(
        self,
        db: Session,
        sheets_service: GoogleSheetsService,
        ai_service: AIService,
        require_connection: bool = False,
    ):
        self.sheets_service = sheets_service
        self.ai_service = ai_service
        self.require_connection = require_connection
        self.sheet_data = SheetDataService(db, sheets_service)
        self.chat_logs = ChatLogService(db)
        self.connections = SheetConnectionService(db)

    def handle_turn(
        self,
        identity: Identity,
        sheet_id: str,
        question: str,
        use_writeback_flow: bool = False,
    ) -> ChatTurnResult:
        """
        Answer a question about a sheet, applying an edit when allowed

        Args:
            identity: Caller; its Google access token is the write credential
            sheet_id: Spreadsheet ID
            question: User question
            use_writeback_flow: Caller asks for edits to be applied

        Returns:
            ChatTurnResult with the final (annotated) text and the model's update
        """
        if not question or not sheet_id:
            raise ValidationError("Question and Spreadsheet ID are required")

        connection = self.connections.get(identity.user_id, sheet_id)
        if self.require_connection and not connection:
            raise AuthError("Sheet not connected or access denied", status_code=403)

        # Writeback only when both requested and a write credential is present
        credential = identity.google_access_token
        writeback = None
        if use_writeback_flow and credential:
            writeback = WritebackContext(spreadsheet_id=sheet_id, access_token=credential)
        elif use_writeback_flow:
            logger.warning(f"Google access token not found for user {identity.user_id}. Writeback will be disabled.")

        stage = ChatStage.LOGGING_QUESTION
        try:
            self.chat_logs.add_message(identity.user_id, sheet_id, question, MessageSender.USER)

            stage = ChatStage.FETCHING_SHEET
            grid, source = self.sheet_data.get_sheet_data(sheet_id, identity)
            logger.info(f"Sheet {sheet_id}: {len(grid)} rows from {source}")

            stage = ChatStage.FORMATTING
            sheet_text = format_sheet_for_prompt(grid)

            stage = ChatStage.CALLING_AI
            answer = self.ai_service.respond(
                question,
                sheet_text,
                writeback=writeback,
                custom_prompt=connection.custom_prompt if connection else None,
            )
        except SheetChatError as e:
            logger.error(f"Chat turn for sheet {sheet_id} failed at {stage.value}: {e.message}")
            raise
        except Exception:
            logger.exception(f"Chat turn for sheet {sheet_id} failed at {stage.value}")
            raise

        text, update_applied = self._apply_update(
            sheet_id, answer.response, answer.update, writeback, has_credential=bool(credential)
        )
        self.chat_logs.add_message(identity.user_id, sheet_id, text, MessageSender.BOT, update_applied=update_applied)

        return ChatTurnResult(response=text, update=answer.update)

    def _apply_update(
        self,
        sheet_id: str,
        text: str,
        update: Optional[EditInstruction],
        writeback: Optional[WritebackContext],
        has_credential: bool,
    ):
        """Writeback decision; returns (annotated text, applied update dict or None)"""
        if not update or not update.range:
            return text, None

        if not update.value:
            return text + (
                f"\n(Note: I identified an update for {update.range} but it was not applied "
                "because no new value was given. Clearing cells is not supported.)"
            ), None

        if not has_credential:
            return text + (
                f"\n(Note: I identified an update for {update.range} but it was not applied "
                "because Google Sheets access is not currently configured.)"
            ), None

        if writeback is None:
            return text + (
                f"\n(Note: I identified an update for {update.range} but it was not applied "
                "because writeback is turned off for this chat.)"
            ), None

        try:
            self.sheets_service.write_cell(sheet_id, update.range, update.value, writeback.access_token)
        except SheetChatError as e:
            logger.warning(
                f"Chat turn for sheet {sheet_id} failed at {ChatStage.APPLYING_EDIT.value} ({update.range}): {e.message}"
            )
            return text + f"\n(Note: I tried to update the sheet but encountered an error: {e.message})", None
        except Exception as e:
            logger.exception(
                f"Chat turn for sheet {sheet_id} failed at {ChatStage.APPLYING_EDIT.value} ({update.range})"
            )
            return text + f"\n(Note: I tried to update the sheet but encountered an error: {e})", None

        text += f'\n(Sheet updated at {update.range} with value: "{update.value}")'
        return text, {"range": update.range, "value": update.value}

"""
Tests for the chat turn orchestration
"""

import pytest

from sheetchat.core.exceptions import AuthError, ShapeError, UpstreamError, ValidationError
from sheetchat.models.chat_log import ChatLog, MessageSender
from sheetchat.models.sheet_cache import SheetCacheEntry
from sheetchat.services.ai_service import EditInstruction, SheetAnswer
from sheetchat.services.chat_service import ChatService
from sheetchat.services.identity import Identity
from sheetchat.services.sheet_connection_service import SheetConnectionService

from conftest import SHEET_ID, TABLE

QUESTION = "What is Alice's age?"


def _logs(db_session):
    return db_session.query(ChatLog).order_by(ChatLog.timestamp).all()


@pytest.fixture
def chat_service(db_session, sheets_service, ai_service):
    return ChatService(db_session, sheets_service, ai_service)


@pytest.fixture
def no_token():
    return Identity(user_id="user-1")


def _answer_with_update(ai_service, text="Updated Alice.", cell="B2", value="31"):
    ai_service.respond.return_value = SheetAnswer(
        response=text, update=EditInstruction(range=cell, value=value)
    )


class TestReadOnlyTurn:
    """Test turns without writeback"""

    def test_answers_from_formatted_sheet(self, chat_service, ai_service, sheets_service, identity, db_session):
        ai_service.respond.return_value = SheetAnswer(response="Alice is 30.")

        result = chat_service.handle_turn(identity, SHEET_ID, QUESTION)

        assert result.response == "Alice is 30."
        assert result.update is None
        ai_service.respond.assert_called_once_with(QUESTION, TABLE, writeback=None, custom_prompt=None)
        sheets_service.write_cell.assert_not_called()

        logs = _logs(db_session)
        assert [(log.sender, log.text) for log in logs] == [
            (MessageSender.USER, QUESTION),
            (MessageSender.BOT, "Alice is 30."),
        ]

    def test_update_is_not_written_when_writeback_off(self, chat_service, ai_service, sheets_service, identity, db_session):
        """Test a proposed edit is reported, never applied, in read-only mode"""
        _answer_with_update(ai_service)

        result = chat_service.handle_turn(identity, SHEET_ID, QUESTION, use_writeback_flow=False)

        sheets_service.write_cell.assert_not_called()
        assert "not applied" in result.response
        assert result.update == EditInstruction(range="B2", value="31")
        assert _logs(db_session)[-1].update_applied is None

    def test_sheet_data_is_cached_between_turns(self, chat_service, ai_service, sheets_service, identity):
        ai_service.respond.return_value = SheetAnswer(response="ok")

        chat_service.handle_turn(identity, SHEET_ID, QUESTION)
        chat_service.handle_turn(identity, SHEET_ID, "And Bob?")

        assert sheets_service.fetch_grid.call_count == 1

    def test_custom_prompt_from_connection(self, chat_service, ai_service, identity, db_session):
        connections = SheetConnectionService(db_session)
        connections.connect("user-1", SHEET_ID, "People", "https://docs.google.com/spreadsheets/d/ABC123/edit")
        connections.update_prompt("user-1", SHEET_ID, "Be brief.\n{{{sheetData}}}\n{{{question}}}")
        ai_service.respond.return_value = SheetAnswer(response="30")

        chat_service.handle_turn(identity, SHEET_ID, QUESTION)

        assert ai_service.respond.call_args.kwargs["custom_prompt"] == "Be brief.\n{{{sheetData}}}\n{{{question}}}"


class TestWritebackTurn:
    """Test turns with writeback requested"""

    def test_update_applied_once(self, chat_service, ai_service, sheets_service, identity, db_session):
        _answer_with_update(ai_service)

        result = chat_service.handle_turn(identity, SHEET_ID, "Set Alice to 31", use_writeback_flow=True)

        sheets_service.write_cell.assert_called_once_with(SHEET_ID, "B2", "31", "google-token")
        writeback = ai_service.respond.call_args.kwargs["writeback"]
        assert writeback.spreadsheet_id == SHEET_ID
        assert writeback.access_token == "google-token"
        assert result.response == 'Updated Alice.\n(Sheet updated at B2 with value: "31")'

        bot_log = _logs(db_session)[-1]
        assert bot_log.text == result.response
        assert bot_log.update_applied == {"range": "B2", "value": "31"}

    def test_no_credential_falls_back_to_read_only(self, chat_service, ai_service, sheets_service, no_token, db_session):
        _answer_with_update(ai_service)

        result = chat_service.handle_turn(no_token, SHEET_ID, "Set Alice to 31", use_writeback_flow=True)

        assert ai_service.respond.call_args.kwargs["writeback"] is None
        sheets_service.write_cell.assert_not_called()
        assert "not applied" in result.response
        assert "B2" in result.response
        assert _logs(db_session)[-1].update_applied is None

    def test_write_failure_is_annotated_not_raised(self, chat_service, ai_service, sheets_service, identity, db_session):
        _answer_with_update(ai_service)
        sheets_service.write_cell.side_effect = UpstreamError(
            "Failed to update sheet data: The caller does not have permission", provider_status=403
        )

        result = chat_service.handle_turn(identity, SHEET_ID, "Set Alice to 31", use_writeback_flow=True)

        assert result.response == (
            "Updated Alice.\n(Note: I tried to update the sheet but encountered an error: "
            "Failed to update sheet data: The caller does not have permission)"
        )
        bot_log = _logs(db_session)[-1]
        assert bot_log.text == result.response
        assert bot_log.update_applied is None

    def test_network_failure_during_write_is_annotated(self, chat_service, ai_service, sheets_service, identity, db_session):
        """Test a failure that is not a provider error still leaves the turn successful"""
        _answer_with_update(ai_service)
        sheets_service.write_cell.side_effect = TimeoutError("timed out")

        result = chat_service.handle_turn(identity, SHEET_ID, "Set Alice to 31", use_writeback_flow=True)

        assert result.response == (
            "Updated Alice.\n(Note: I tried to update the sheet but encountered an error: timed out)"
        )
        logs = _logs(db_session)
        assert [log.sender for log in logs] == [MessageSender.USER, MessageSender.BOT]
        assert logs[-1].text == result.response
        assert logs[-1].update_applied is None

    def test_empty_update_value_is_reported(self, chat_service, ai_service, sheets_service, identity):
        _answer_with_update(ai_service, text="Cleared it.", value="")

        result = chat_service.handle_turn(identity, SHEET_ID, "Clear B2", use_writeback_flow=True)

        sheets_service.write_cell.assert_not_called()
        assert result.response.startswith("Cleared it.\n(Note: I identified an update for B2 but it was not applied")
        assert "no new value" in result.response

    def test_update_without_range_is_ignored(self, chat_service, ai_service, sheets_service, identity):
        _answer_with_update(ai_service, text="Nothing to change.", cell="", value="31")

        result = chat_service.handle_turn(identity, SHEET_ID, QUESTION, use_writeback_flow=True)

        sheets_service.write_cell.assert_not_called()
        assert result.response == "Nothing to change."


class TestFailedTurn:
    """Test read-path failures abort the turn"""

    def test_fetch_failure_aborts(self, chat_service, ai_service, sheets_service, identity, db_session):
        sheets_service.fetch_grid.side_effect = UpstreamError("Failed to fetch sheet data: Backend Error")

        with pytest.raises(UpstreamError):
            chat_service.handle_turn(identity, SHEET_ID, QUESTION)

        ai_service.respond.assert_not_called()
        assert [log.sender for log in _logs(db_session)] == [MessageSender.USER]
        assert db_session.get(SheetCacheEntry, SHEET_ID) is None

    def test_unexpected_failure_is_logged_with_stage(self, chat_service, ai_service, sheets_service, identity, db_session, caplog):
        sheets_service.fetch_grid.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            chat_service.handle_turn(identity, SHEET_ID, QUESTION)

        assert f"Chat turn for sheet {SHEET_ID} failed at fetching_sheet" in caplog.text
        ai_service.respond.assert_not_called()
        assert [log.sender for log in _logs(db_session)] == [MessageSender.USER]

    def test_missing_credential_aborts(self, chat_service, sheets_service, no_token, db_session):
        sheets_service.fetch_grid.side_effect = AuthError("Google OAuth token not found.", status_code=403)

        with pytest.raises(AuthError):
            chat_service.handle_turn(no_token, SHEET_ID, QUESTION)

        assert len(_logs(db_session)) == 1

    def test_shape_error_aborts(self, chat_service, ai_service, identity, db_session):
        ai_service.respond.side_effect = ShapeError("AI response was not in the expected format")

        with pytest.raises(ShapeError):
            chat_service.handle_turn(identity, SHEET_ID, QUESTION)

        assert [log.sender for log in _logs(db_session)] == [MessageSender.USER]

    @pytest.mark.parametrize("sheet_id,question", [(SHEET_ID, ""), ("", QUESTION), (None, None)])
    def test_missing_fields(self, chat_service, identity, db_session, sheet_id, question):
        with pytest.raises(ValidationError):
            chat_service.handle_turn(identity, sheet_id, question)

        assert _logs(db_session) == []

    def test_unconnected_sheet_rejected_when_required(self, db_session, sheets_service, ai_service, identity):
        chat_service = ChatService(db_session, sheets_service, ai_service, require_connection=True)

        with pytest.raises(AuthError) as exc_info:
            chat_service.handle_turn(identity, SHEET_ID, QUESTION)

        assert exc_info.value.status_code == 403
        sheets_service.fetch_grid.assert_not_called()
        assert _logs(db_session) == []

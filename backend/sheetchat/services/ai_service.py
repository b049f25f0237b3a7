"""
AI Service - Answer questions about sheet data and propose cell edits
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional
from openai import APIError, AzureOpenAI, OpenAI
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from sheetchat.config import Settings
from sheetchat.core.exceptions import ShapeError, UpstreamError

logger = logging.getLogger(__name__)

SHEET_DATA_PLACEHOLDER = "{{{sheetData}}}"
QUESTION_PLACEHOLDER = "{{{question}}}"

CHAT_SYSTEM_PROMPT = """You are an intelligent assistant that helps users analyze data in a Google Sheet.
Always respond with a single JSON object of this form:
{"response": "<your answer to the user>", "update": {"range": "<A1 cell to update>", "value": "<new value>"}}
Include "update" only if the user asks you to modify a value in the sheet; otherwise omit it.
Return ONLY valid JSON, no other text."""

WRITEBACK_SYSTEM_PROMPT = """You are an assistant that answers questions based on the provided Google Sheet data and can update the sheet.
Always respond with a single JSON object of this form:
{"response": "<your answer to the user>", "update": {"range": "<cell to update, e.g. B3>", "value": "<new value>"}}
If answering requires an update to the sheet, include "update" with exactly one cell. Otherwise omit it.
Return ONLY valid JSON, no other text."""

DEFAULT_USER_PROMPT = f"""Here is the data from the Google Sheet:
{SHEET_DATA_PLACEHOLDER}

User question: {QUESTION_PLACEHOLDER}"""


class EditInstruction(BaseModel):
    """A single-cell edit proposed by the model"""
    range: str
    value: str

    class Config:
        extra = "forbid"


class SheetAnswer(BaseModel):
    """Model output: answer text plus an optional edit"""
    response: str
    update: Optional[EditInstruction] = None

    class Config:
        extra = "forbid"


@dataclass(frozen=True)
class WritebackContext:
    """Marks a call as writeback-capable; the token never enters the prompt"""
    spreadsheet_id: str
    access_token: str


def render_prompt(template: Optional[str], sheet_data: str, question: str) -> str:
    """Fill the sheetData and question placeholders of a prompt template"""
    template = template or DEFAULT_USER_PROMPT
    return template.replace(SHEET_DATA_PLACEHOLDER, sheet_data).replace(QUESTION_PLACEHOLDER, question)


def parse_answer(content: Optional[str]) -> SheetAnswer:
    """
    Parse model output into a SheetAnswer

    Raises:
        ShapeError: output is not JSON of the expected shape
    """
    if not content or not content.strip():
        raise ShapeError("AI returned an empty response")

    text = content.strip()
    # Remove markdown code blocks if present
    if text.startswith("```"):
        text = text.split("```")[1]
        if text.startswith("json"):
            text = text[4:]

    try:
        return SheetAnswer.model_validate(json.loads(text))
    except (json.JSONDecodeError, SchemaValidationError) as e:
        logger.error(f"AI response did not match expected shape: {e}")
        raise ShapeError("AI response was not in the expected format")


class AIService:
    """Service wrapping the chat model used to answer sheet questions"""

    def __init__(self, client=None, model: Optional[str] = None):
        self.client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "AIService":
        """Build the provider client selected by AI_PROVIDER"""
        if not settings.ai_configured:
            logger.warning("AI provider not configured, chat will be unavailable")
            return cls()

        if settings.AI_PROVIDER == "azure":
            client = AzureOpenAI(
                api_key=settings.AZURE_OPENAI_KEY,
                api_version=settings.AZURE_OPENAI_API_VERSION,
                azure_endpoint=settings.AZURE_OPENAI_ENDPOINT
            )
            model = settings.AZURE_OPENAI_DEPLOYMENT
            logger.info(f"Initialized Azure OpenAI with deployment: {model}")
        else:
            client = OpenAI(api_key=settings.OPENAI_API_KEY)
            model = settings.OPENAI_MODEL
            logger.info(f"Initialized OpenAI with model: {model}")

        return cls(client=client, model=model)

    def respond(
        self,
        question: str,
        sheet_data: str,
        writeback: Optional[WritebackContext] = None,
        custom_prompt: Optional[str] = None,
    ) -> SheetAnswer:
        """
        Answer a question about a formatted sheet snapshot

        Args:
            question: The user's question
            sheet_data: Sheet rendered by format_sheet_for_prompt
            writeback: Present when the caller can apply an edit
            custom_prompt: Optional per-sheet template overriding the default

        Returns:
            SheetAnswer with response text and optional update

        Raises:
            UpstreamError: provider missing or the call failed
            ShapeError: output did not match the expected shape
        """
        if not self.client:
            raise UpstreamError("AI provider is not configured", status_code=503)

        system_prompt = WRITEBACK_SYSTEM_PROMPT if writeback else CHAT_SYSTEM_PROMPT
        if writeback:
            logger.info(f"Calling AI with writeback context for sheet {writeback.spreadsheet_id}")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": render_prompt(custom_prompt, sheet_data, question)},
                ],
                temperature=0.2,
                response_format={"type": "json_object"}
            )
        except APIError as e:
            logger.error(f"AI provider call failed: {e}")
            raise UpstreamError(f"AI provider error: {e}")

        answer = parse_answer(response.choices[0].message.content)
        logger.info(f"AI answered ({len(answer.response)} chars, update={'yes' if answer.update else 'no'})")
        return answer

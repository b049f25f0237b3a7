"""
Google Sheets Service - Read sheet values and write single-cell edits
"""

import logging
import re
from typing import List, Optional
import httplib2
from google.auth.credentials import Credentials
from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from sheetchat.config import settings
from sheetchat.core.exceptions import AuthError, UpstreamError

logger = logging.getLogger(__name__)

SHEET_URL_PATTERN = re.compile(r'/spreadsheets/d/([a-zA-Z0-9-_]+)')

# Failures below the HTTP layer; these never carry a provider status
TRANSPORT_ERRORS = (httplib2.HttpLib2Error, TransportError, OSError)


class AccessTokenCredentials(Credentials):
    """Credentials holding only a user's OAuth access token"""

    def __init__(self, access_token: str):
        super().__init__()
        self.token = access_token

    def refresh(self, request):
        raise RefreshError("Access token refresh not supported by this class.")

    def apply(self, headers, token=None):
        headers['Authorization'] = f'Bearer {self.token}'

    def before_request(self, request, method, url, headers):
        self.apply(headers)

    @property
    def expired(self):
        return False

    @property
    def valid(self):
        return True


def extract_sheet_id(url: Optional[str]) -> Optional[str]:
    """
    Extract spreadsheet ID from Google Sheets URL

    Args:
        url: Google Sheets URL

    Returns:
        Spreadsheet ID or None
    """
    if not url:
        return None
    match = SHEET_URL_PATTERN.search(url)
    return match.group(1) if match else None


def _upstream_error(action: str, sheet_id: str, error: HttpError) -> UpstreamError:
    reason = error.reason or str(error)
    logger.error(f"Google Sheets API error while {action} {sheet_id}: {error.resp.status} {reason}")
    return UpstreamError(
        f"Failed to {action} sheet data: {reason}",
        provider_status=error.resp.status,
    )


def _transport_error(action: str, sheet_id: str, error: Exception) -> UpstreamError:
    reason = str(error) or type(error).__name__
    logger.error(f"Could not reach Google Sheets while {action} {sheet_id}: {type(error).__name__}: {reason}")
    return UpstreamError(f"Failed to {action} sheet data: {reason}")


def _rejected_token_error(sheet_id: str, error: RefreshError) -> AuthError:
    logger.warning(f"Google access token rejected for sheet {sheet_id}: {error}")
    return AuthError(
        "Google OAuth token expired or was rejected. Reconnect Google Sheets access.",
        status_code=403,
    )


class GoogleSheetsService:
    """
    Service for interacting with Google Sheets API

    One instance is shared by the whole process; the caller's access token is
    supplied per call.
    """

    def __init__(self, fetch_range: Optional[str] = None):
        self.fetch_range = fetch_range or settings.SHEET_FETCH_RANGE

    def _sheets(self, access_token: Optional[str]):
        if not access_token:
            raise AuthError(
                "Google OAuth token not found. Cannot access sheet data without authentication.",
                status_code=403,
            )
        credentials = AccessTokenCredentials(access_token)
        return build('sheets', 'v4', credentials=credentials, cache_discovery=False).spreadsheets()

    def fetch_grid(self, sheet_id: str, access_token: Optional[str]) -> List[List[str]]:
        """
        Fetch every row of the configured column range

        Args:
            sheet_id: Spreadsheet ID
            access_token: Google OAuth access token

        Returns:
            Grid of cell values; empty list for an empty sheet
        """
        sheets = self._sheets(access_token)
        try:
            result = sheets.values().get(
                spreadsheetId=sheet_id,
                range=self.fetch_range
            ).execute()
        except HttpError as e:
            raise _upstream_error("fetch", sheet_id, e)
        except RefreshError as e:
            raise _rejected_token_error(sheet_id, e)
        except TRANSPORT_ERRORS as e:
            raise _transport_error("fetch", sheet_id, e)

        values = result.get('values', [])
        logger.info(f"Fetched {len(values)} rows from sheet {sheet_id}")
        return values

    def write_cell(self, sheet_id: str, cell_range: str, value: str, access_token: Optional[str]) -> None:
        """
        Write one value to one range, interpreted as if typed by the user

        Args:
            sheet_id: Spreadsheet ID
            cell_range: A1-style range, e.g. "B3"
            value: Raw string value
            access_token: Google OAuth access token
        """
        sheets = self._sheets(access_token)
        try:
            sheets.values().update(
                spreadsheetId=sheet_id,
                range=cell_range,
                valueInputOption='USER_ENTERED',
                body={'values': [[value]]}
            ).execute()
        except HttpError as e:
            raise _upstream_error("update", sheet_id, e)
        except RefreshError as e:
            raise _rejected_token_error(sheet_id, e)
        except TRANSPORT_ERRORS as e:
            raise _transport_error("update", sheet_id, e)

        logger.info(f"Updated sheet {sheet_id} at {cell_range}")

    def get_sheet_title(self, sheet_id: str, access_token: Optional[str]) -> str:
        """Spreadsheet title, or a placeholder when it can't be read"""
        placeholder = f"Sheet: {sheet_id[:8]}..."
        if not access_token:
            logger.warning(f"No access token, using placeholder name for sheet {sheet_id}")
            return f"{placeholder} (Name not fetched)"

        try:
            metadata = self._sheets(access_token).get(
                spreadsheetId=sheet_id,
                fields='properties.title'
            ).execute()
        except (HttpError, RefreshError) + TRANSPORT_ERRORS as e:
            logger.error(f"Error fetching title for sheet {sheet_id}: {e}")
            return f"{placeholder} (Error fetching name)"

        return metadata.get('properties', {}).get('title') or placeholder

"""
Usage Logger Service
Appends one row per analysis call to a Google Sheet for token usage monitoring.
"""
import os
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional
from urllib.parse import quote

import requests
from google.auth import default as google_auth_default
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from gost_expert.services.gemini_client import UsageMetadata
from gost_expert.services.property_store import LOG_SHEET_ID, PropertyStore

logger = logging.getLogger(__name__)

SHEETS_API_URL = 'https://sheets.googleapis.com/v4/spreadsheets'
SHEETS_SCOPES = ['https://www.googleapis.com/auth/spreadsheets']

HEADER_ROW = [
    'Timestamp',
    'Standards Count',
    'Country',
    'Prompt Tokens',
    'Output Tokens',
    'Total Tokens',
    'Finish Reason'
]


def _build_creds():
    key_path = os.environ.get('GOOGLE_APPLICATION_CREDENTIALS')
    if key_path and os.path.exists(key_path):
        return service_account.Credentials.from_service_account_file(key_path, scopes=SHEETS_SCOPES)
    creds, _ = google_auth_default(scopes=SHEETS_SCOPES)
    return creds


def default_session_factory() -> requests.Session:
    """Authorized session for the Sheets API using service account or ADC credentials."""
    return AuthorizedSession(_build_creds())


@dataclass
class UsageRecord:
    """One row of the usage log."""
    item_count: int
    country: str
    usage: UsageMetadata
    finish_reason: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_row(self) -> list:
        return [
            self.timestamp.strftime('%Y-%m-%d %H:%M:%S'),
            self.item_count,
            self.country,
            self.usage.prompt_token_count,
            self.usage.candidates_token_count,
            self.usage.total_token_count,
            self.finish_reason or 'N/A'
        ]


def _a1_range(sheet_title: str, cells: str = '') -> str:
    quoted = "'" + sheet_title.replace("'", "''") + "'"
    return f"{quoted}!{cells}" if cells else quoted


class UsageLogger:
    """Best-effort usage log writer. Never raises to the caller."""

    def __init__(
        self,
        property_store: PropertyStore,
        session_factory: Callable[[], requests.Session] = default_session_factory,
        timeout: float = 10
    ):
        self.property_store = property_store
        self.session_factory = session_factory
        self.timeout = timeout

    def _first_sheet_title(self, session: requests.Session, sheet_id: str) -> Optional[str]:
        response = session.get(
            f"{SHEETS_API_URL}/{sheet_id}",
            params={'fields': 'sheets.properties.title'},
            timeout=self.timeout
        )
        response.raise_for_status()
        sheets = response.json().get('sheets') or []
        if not sheets:
            return None
        return sheets[0].get('properties', {}).get('title')

    def _read_values(self, session: requests.Session, sheet_id: str, title: str, cells: str) -> list:
        range_name = quote(_a1_range(title, cells), safe='')
        response = session.get(
            f"{SHEETS_API_URL}/{sheet_id}/values/{range_name}",
            timeout=self.timeout
        )
        response.raise_for_status()
        return response.json().get('values') or []

    def _is_empty(self, session: requests.Session, sheet_id: str, title: str) -> bool:
        """True when columns A:G hold no values at all."""
        if self._read_values(session, sheet_id, title, 'A1:G1'):
            return False
        # Row 1 may have been cleared by hand while older rows remain below it
        return not self._read_values(session, sheet_id, title, 'A:G')

    def _append_rows(self, session: requests.Session, sheet_id: str, title: str, rows: List[list]) -> None:
        range_name = quote(_a1_range(title), safe='')
        response = session.post(
            f"{SHEETS_API_URL}/{sheet_id}/values/{range_name}:append",
            params={'valueInputOption': 'USER_ENTERED', 'insertDataOption': 'INSERT_ROWS'},
            json={'values': rows},
            timeout=self.timeout
        )
        response.raise_for_status()

    def log_usage(
        self,
        item_count: int,
        country: str,
        usage: Optional[UsageMetadata],
        finish_reason: Optional[str]
    ) -> bool:
        """
        Append a usage row to the first sheet of the configured spreadsheet.

        Args:
            item_count: Number of standards in the analysis request.
            country: Country the standards were analyzed for.
            usage: Token counts from the API response.
            finish_reason: Model finish reason (STOP, SAFETY, MAX_TOKENS, ...).

        Returns:
            bool: True if the row was written, False otherwise.
        """
        try:
            sheet_id = self.property_store.get_property(LOG_SHEET_ID)
            if not sheet_id:
                logger.info("LOG_SHEET_ID is not set, skipping usage logging")
                return False

            record = UsageRecord(
                item_count=item_count,
                country=country,
                usage=usage or UsageMetadata(),
                finish_reason=finish_reason
            )

            with self.session_factory() as session:
                title = self._first_sheet_title(session, sheet_id)
                if not title:
                    logger.warning(f"No sheet found in usage log spreadsheet {sheet_id}")
                    return False

                rows = []
                if self._is_empty(session, sheet_id, title):
                    rows.append(HEADER_ROW)
                rows.append(record.to_row())

                self._append_rows(session, sheet_id, title, rows)

            logger.info(f"Usage logged: {item_count} standards, {record.usage.total_token_count} tokens")
            return True

        except Exception as e:
            logger.error(f"Failed to log API usage: {type(e).__name__} - {e}")
            return False

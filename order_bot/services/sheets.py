"""
Google Sheets Client
====================

Thin wrapper over the Sheets v4 API used by both the catalog and the order
gateways. The underlying service object is built lazily from service account
credentials on first use and shared afterwards.

Only three primitives are needed:
- get_values: Read a range
- append_rows: Append rows after the last row of a range
- update_values: Overwrite a fixed range in place

Errors from the API propagate to the caller; the gateways decide how to
degrade (log and return empty/False).
"""

import logging
import threading
from typing import Any, List, Optional

from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build

from ..exceptions import StoreNotConfiguredError


logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


def a1(sheet: str, rng: str) -> str:
    """Build an A1 range, quoting the sheet name when it contains spaces or symbols."""
    sheet = sheet.strip()
    if any(ch in sheet for ch in " -!()[],.;:'"):
        sheet = "'" + sheet.replace("'", "''") + "'"
    return f"{sheet}!{rng}"


class SheetsClient:
    """Lazily-authenticated Sheets v4 client bound to one spreadsheet."""

    def __init__(self, spreadsheet_id: str, client_email: str, private_key: str):
        self.spreadsheet_id = spreadsheet_id
        self._client_email = client_email
        self._private_key = private_key
        self._service = None
        self._lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return all([self.spreadsheet_id, self._client_email, self._private_key])

    def _values(self):
        with self._lock:
            if self._service is None:
                if not self.configured:
                    raise StoreNotConfiguredError(
                        "Spreadsheet store not configured. Set SPREADSHEET_ID, "
                        "GOOGLE_SERVICE_ACCOUNT_EMAIL and GOOGLE_PRIVATE_KEY."
                    )
                creds = Credentials.from_service_account_info(
                    {
                        "type": "service_account",
                        "client_email": self._client_email,
                        "private_key": self._private_key,
                        "token_uri": TOKEN_URI,
                    },
                    scopes=SHEETS_SCOPES,
                )
                self._service = build("sheets", "v4", credentials=creds, cache_discovery=False)
                logger.info("Sheets service initialized for spreadsheet %s", self.spreadsheet_id)
            return self._service.spreadsheets().values()

    def get_values(self, range_a1: str) -> List[List[Any]]:
        resp = self._values().get(
            spreadsheetId=self.spreadsheet_id,
            range=range_a1,
        ).execute()
        return resp.get("values", [])

    def append_rows(self, range_a1: str, rows: List[List[Any]]) -> Optional[str]:
        """Append rows and return the A1 range the API reports as updated."""
        resp = self._values().append(
            spreadsheetId=self.spreadsheet_id,
            range=range_a1,
            valueInputOption="USER_ENTERED",
            insertDataOption="INSERT_ROWS",
            body={"values": rows},
        ).execute()
        return (resp.get("updates") or {}).get("updatedRange")

    def update_values(self, range_a1: str, rows: List[List[Any]]) -> None:
        self._values().update(
            spreadsheetId=self.spreadsheet_id,
            range=range_a1,
            valueInputOption="USER_ENTERED",
            body={"values": rows},
        ).execute()

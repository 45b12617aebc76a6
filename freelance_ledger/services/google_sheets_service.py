"""
Google Sheets API client used by the spreadsheet record store.
"""

import logging
from typing import Any, Dict, List, Optional

import google.auth
import pandas as pd
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)

DEFAULT_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


def values_to_dataframe(values: List[List[Any]]) -> pd.DataFrame:
    """Turn a values grid into a DataFrame, first row as headers.

    Short rows are padded with empty strings; a header-only grid gives an
    empty DataFrame with those columns.
    """
    if not values:
        return pd.DataFrame()
    headers = values[0]
    width = len(headers)
    rows = [list(row[:width]) + [""] * (width - len(row)) for row in values[1:]]
    return pd.DataFrame(rows, columns=headers)


def _add_sheet_request(title: str, rows: int, columns: int) -> Dict[str, Any]:
    grid = {"rowCount": rows, "columnCount": columns}
    return {"addSheet": {"properties": {"title": title, "gridProperties": grid}}}


class GoogleSheetsService:
    """
    Thin Google Sheets client returning pandas DataFrames.

    Authenticates with a service account when one is configured and with
    Application Default Credentials otherwise. Every API failure is logged
    and re-raised as the original HttpError; callers decide whether to retry.
    """

    def __init__(
        self,
        credentials: Optional[Dict[str, Any]] = None,
        scopes: Optional[List[str]] = None,
        service: Any = None,
    ):
        """
        Args:
            credentials: Service account info from
                LedgerConfig.get_google_service_account_info(), or None for ADC
            scopes: OAuth scopes; read/write spreadsheet access by default
            service: Prebuilt API resource, skipping authentication
        """
        self.credentials_info = credentials
        self.scopes = scopes or DEFAULT_SCOPES
        if service is None:
            service = build(
                "sheets", "v4", credentials=self._credentials(), cache_discovery=False
            )
        self._service = service

    def _credentials(self):
        try:
            if self.credentials_info:
                project = self.credentials_info.get("project_id", "unknown")
                creds = service_account.Credentials.from_service_account_info(
                    self.credentials_info, scopes=self.scopes
                )
                source = "service account"
            else:
                creds, project = google.auth.default(scopes=self.scopes)
                source = "application default credentials"
        except Exception as e:
            logger.error(f"Could not load Google credentials: {e}")
            raise
        logger.info(f"Authenticated to Google Sheets via {source} ({project})")
        return creds

    def _run(self, request, action: str) -> Dict[str, Any]:
        """Execute one API request, logging failures with ``action``."""
        try:
            return request.execute()
        except HttpError as e:
            logger.error(f"Sheets API failed to {action}: {e}")
            raise

    def _values(self):
        return self._service.spreadsheets().values()

    def read_sheet(
        self,
        spreadsheet_id: str,
        range_name: str,
        value_render_option: str = "UNFORMATTED_VALUE",
    ) -> pd.DataFrame:
        """Read a range into a DataFrame with the first row as headers."""
        request = self._values().get(
            spreadsheetId=spreadsheet_id,
            range=range_name,
            valueRenderOption=value_render_option,
        )
        result = self._run(request, f"read {range_name} of {spreadsheet_id}")
        df = values_to_dataframe(result.get("values", []))
        logger.debug(f"Read {len(df)} rows from {range_name}")
        return df

    def write_values(
        self,
        spreadsheet_id: str,
        range_name: str,
        values: List[List[Any]],
        value_input_option: str = "RAW",
    ) -> Dict[str, Any]:
        """Overwrite ``range_name`` with a grid of values."""
        request = self._values().update(
            spreadsheetId=spreadsheet_id,
            range=range_name,
            valueInputOption=value_input_option,
            body={"values": values},
        )
        result = self._run(request, f"write {range_name} of {spreadsheet_id}")
        logger.info(
            f"Wrote {len(values)} rows ({result.get('updatedCells', 0)} cells) "
            f"to {range_name}"
        )
        return result

    def append_values(
        self,
        spreadsheet_id: str,
        range_name: str,
        values: List[List[Any]],
        value_input_option: str = "RAW",
    ) -> Dict[str, Any]:
        """Insert rows after the last filled row of ``range_name``."""
        request = self._values().append(
            spreadsheetId=spreadsheet_id,
            range=range_name,
            valueInputOption=value_input_option,
            insertDataOption="INSERT_ROWS",
            body={"values": values},
        )
        result = self._run(request, f"append to {range_name} of {spreadsheet_id}")
        logger.info(f"Appended {len(values)} rows to {range_name}")
        return result

    def clear_sheet_range(self, spreadsheet_id: str, range_name: str) -> Dict[str, Any]:
        request = self._values().clear(
            spreadsheetId=spreadsheet_id, range=range_name, body={}
        )
        result = self._run(request, f"clear {range_name} of {spreadsheet_id}")
        logger.info(f"Cleared {range_name}")
        return result

    def get_sheet_titles(self, spreadsheet_id: str) -> List[str]:
        """Titles of every tab in the spreadsheet, in display order."""
        request = self._service.spreadsheets().get(
            spreadsheetId=spreadsheet_id, fields="sheets.properties.title"
        )
        metadata = self._run(request, f"list tabs of {spreadsheet_id}")
        return [tab["properties"]["title"] for tab in metadata.get("sheets", [])]

    def create_sheet(
        self,
        spreadsheet_id: str,
        sheet_title: str,
        row_count: int = 1000,
        column_count: int = 26,
    ) -> Dict[str, Any]:
        """Add an empty tab called ``sheet_title``."""
        body = {"requests": [_add_sheet_request(sheet_title, row_count, column_count)]}
        request = self._service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id, body=body
        )
        result = self._run(request, f"add tab '{sheet_title}' to {spreadsheet_id}")
        logger.info(f"Created tab '{sheet_title}' in {spreadsheet_id}")
        return result

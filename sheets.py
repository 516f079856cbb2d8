"""
sheets.py
Google Sheets access: raw cell reads/writes, next-free-row lookup and invoice persistence.
"""

from typing import Any, Dict, List, Optional, Sequence, TYPE_CHECKING

from google.oauth2 import service_account
from googleapiclient.discovery import build

from invoice import Invoice
from logger_config import logger, security_logger

if TYPE_CHECKING:
    from interfaces import ISpreadsheetService

SCOPES = ['https://www.googleapis.com/auth/spreadsheets']

DEFAULT_SHEET_NAME = "JANEIRO"
DEFAULT_START_ROW = 22

# Lookahead columns scanned to find the next free row
LOOKAHEAD_FIRST_COLUMN = "M"
LOOKAHEAD_LAST_COLUMN = "O"

# (invoice attribute, column), in the order the cells are written
INVOICE_COLUMNS = (
    ("value", "M"),
    ("date", "N"),
    ("payment_tag", "P"),
    ("category_tag", "O"),
    ("description", "L"),
    ("essential", "Q"),
)


class PersistenceError(Exception):
    """Raised when writing an invoice to the sheet fails part way or entirely."""
    pass


class GoogleSheetsClient:
    """Thin wrapper over the Sheets v4 values API using a service account."""

    def __init__(self, spreadsheet_id: str, credentials_info: Dict[str, Any]):
        self.spreadsheet_id = spreadsheet_id
        self.credentials_info = credentials_info
        self._credentials = None

    def _get_credentials(self):
        if self._credentials is None:
            self._credentials = service_account.Credentials.from_service_account_info(
                self.credentials_info, scopes=SCOPES
            )
        return self._credentials

    def _values(self):
        # A fresh service per call: handlers run in worker threads and the
        # underlying http client is not thread safe.
        service = build('sheets', 'v4', credentials=self._get_credentials(), cache_discovery=False)
        return service.spreadsheets().values()

    def read_range(self, range_a1: str) -> List[List[str]]:
        logger.debug(f"Reading range {range_a1}")
        result = self._values().get(spreadsheetId=self.spreadsheet_id, range=range_a1).execute()
        return result.get('values', [])

    def write_cell(self, cell_a1: str, value: str) -> None:
        logger.debug(f"Writing {cell_a1}")
        self._values().update(
            spreadsheetId=self.spreadsheet_id,
            range=cell_a1,
            valueInputOption='USER_ENTERED',
            body={'values': [[value]]}
        ).execute()


def row_has_content(row: Optional[Sequence[Any]]) -> bool:
    return any(cell is not None and str(cell).strip() != "" for cell in (row or []))


def find_insertion_row(rows: Sequence[Optional[Sequence[Any]]], start_row: int = DEFAULT_START_ROW) -> int:
    """Row number one past the last non-blank row of ``rows``; ``start_row`` when all are blank.

    ``rows`` are the values read from the lookahead range, index 0 being ``start_row``.
    Gaps before the last used row are not reused.
    """
    last_used_index = -1
    for index, row in enumerate(rows or []):
        if row_has_content(row):
            last_used_index = index

    if last_used_index == -1:
        return start_row
    return start_row + last_used_index + 1


class InvoiceSheetWriter:
    """Places invoices in the configured sheet, one row each."""

    def __init__(self, spreadsheet: "ISpreadsheetService", sheet_name: str = DEFAULT_SHEET_NAME,
                 start_row: int = DEFAULT_START_ROW):
        self.spreadsheet = spreadsheet
        self.sheet_name = sheet_name
        self.start_row = start_row

    @property
    def lookahead_range(self) -> str:
        return f"{self.sheet_name}!{LOOKAHEAD_FIRST_COLUMN}{self.start_row}:{LOOKAHEAD_LAST_COLUMN}"

    def cell(self, column: str, row: int) -> str:
        return f"{self.sheet_name}!{column}{row}"

    def find_insertion_row(self) -> int:
        rows = self.spreadsheet.read_range(self.lookahead_range)
        row = find_insertion_row(rows, self.start_row)
        logger.info(f"Next empty row in {self.sheet_name}: {row} ({len(rows)} rows scanned)")
        return row

    def persist(self, invoice: Invoice, row: int) -> None:
        """Write the six invoice cells of ``row``. Cells already written stay written on failure."""
        written = 0
        try:
            for attribute, column in INVOICE_COLUMNS:
                value = getattr(invoice, attribute)
                self.spreadsheet.write_cell(self.cell(column, row), value if value is not None else "")
                written += 1
        except Exception as e:
            security_logger.log_api_error("google_sheets", str(e))
            raise PersistenceError(
                f"Failed writing row {row} after {written} of {len(INVOICE_COLUMNS)} cells: {e}"
            ) from e
        logger.info(f"Invoice written to {self.sheet_name} row {row}")

    def save(self, invoice: Invoice) -> int:
        """Locate the next free row and persist the invoice there. Returns the row used."""
        try:
            row = self.find_insertion_row()
        except Exception as e:
            security_logger.log_api_error("google_sheets", str(e))
            raise PersistenceError(f"Failed locating next empty row: {e}") from e
        self.persist(invoice, row)
        return row

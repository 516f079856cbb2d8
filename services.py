"""
services.py
Concrete implementations of service interfaces.
"""

from typing import Any, Dict, List, Optional

from interfaces import IExtractionService, ISpreadsheetService
from conversation import ConversationService, SessionStore
from security_utils import AccessGate
from sheets import InvoiceSheetWriter, DEFAULT_SHEET_NAME, DEFAULT_START_ROW
from logger_config import logger


# =============================================================================
# EXTRACTION SERVICE IMPLEMENTATION
# =============================================================================

class ExtractionService(IExtractionService):
    """Concrete implementation of text extraction."""

    def __init__(self, language: Optional[str] = None):
        self.language = language

    def extract_text(self, content: bytes, mime_type: str) -> str:
        """Return best-effort plain text for the upload."""
        from extraction import extract_text
        return extract_text(content, mime_type, self.language)


# =============================================================================
# SPREADSHEET SERVICE IMPLEMENTATION
# =============================================================================

class SpreadsheetService(ISpreadsheetService):
    """Concrete implementation of spreadsheet access through the Google Sheets API."""

    def __init__(self, spreadsheet_id: str, credentials_info: Dict[str, Any]):
        from sheets import GoogleSheetsClient
        self.client = GoogleSheetsClient(spreadsheet_id, credentials_info)

    def read_range(self, range_a1: str) -> List[List[str]]:
        """Read the values of an A1 range, one list per row."""
        return self.client.read_range(range_a1)

    def write_cell(self, cell_a1: str, value: str) -> None:
        """Write a single cell."""
        self.client.write_cell(cell_a1, value)


# =============================================================================
# APPLICATION SERVICE FACTORY
# =============================================================================

class ReceiptBotApp:
    """Main application class that provides access to all services."""

    def __init__(self, extraction_service: IExtractionService = None,
                 spreadsheet_service: ISpreadsheetService = None,
                 access_gate: AccessGate = None,
                 sheet_name: str = None, start_row: int = None):
        if extraction_service is None or spreadsheet_service is None or access_gate is None:
            import auth_data
            if extraction_service is None:
                extraction_service = ExtractionService(auth_data.OCR_LANGUAGE)
            if spreadsheet_service is None:
                spreadsheet_service = SpreadsheetService(
                    auth_data.GOOGLE_SPREADSHEET, auth_data.get_google_credentials_info()
                )
            if access_gate is None:
                access_gate = AccessGate.from_csv(auth_data.ALLOWED_USERS)
            sheet_name = sheet_name or auth_data.SHEET_NAME
            start_row = start_row or auth_data.SHEET_START_ROW

        self._extraction_service = extraction_service
        self._spreadsheet_service = spreadsheet_service
        self._access_gate = access_gate
        self._session_store = SessionStore()
        self._sheet_writer = InvoiceSheetWriter(
            spreadsheet_service,
            sheet_name or DEFAULT_SHEET_NAME,
            start_row or DEFAULT_START_ROW
        )
        self._conversation_service = ConversationService(
            extraction_service, self._sheet_writer, self._session_store
        )
        logger.info(
            f"Receipt bot services ready (sheet {self._sheet_writer.sheet_name}, "
            f"start row {self._sheet_writer.start_row}, "
            f"{len(access_gate.allowed_users) or 'any'} allowed user(s))"
        )

    def get_extraction_service(self) -> IExtractionService:
        """Get extraction service instance."""
        return self._extraction_service

    def get_spreadsheet_service(self) -> ISpreadsheetService:
        """Get spreadsheet service instance."""
        return self._spreadsheet_service

    def get_access_gate(self) -> AccessGate:
        return self._access_gate

    def get_session_store(self) -> SessionStore:
        return self._session_store

    def get_sheet_writer(self) -> InvoiceSheetWriter:
        return self._sheet_writer

    def get_conversation_service(self) -> ConversationService:
        """Get business logic service instance."""
        return self._conversation_service

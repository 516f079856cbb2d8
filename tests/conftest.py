"""
Test configuration and fixtures for the receipt bot.
"""

import pytest
import os
from typing import Generator
import sys
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mocks import MockExtractionService, MockSpreadsheetService
from conversation import ConversationService, SessionStore
from security_utils import AccessGate
from services import ReceiptBotApp
from sheets import InvoiceSheetWriter

TEST_SHEET = "JANEIRO"
TEST_START_ROW = 22
LOOKAHEAD_RANGE = f"{TEST_SHEET}!M{TEST_START_ROW}:O"


# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )


# =============================================================================
# SERVICE FIXTURES
# =============================================================================

@pytest.fixture
def mock_extraction_service() -> Generator[MockExtractionService, None, None]:
    """Provide a fresh mock extraction service for each test."""
    service = MockExtractionService()
    yield service
    service.clear_call_history()


@pytest.fixture
def mock_spreadsheet_service() -> Generator[MockSpreadsheetService, None, None]:
    """Provide a fresh mock spreadsheet for each test."""
    service = MockSpreadsheetService()
    yield service
    service.clear_all_data()


@pytest.fixture
def sheet_writer(mock_spreadsheet_service) -> InvoiceSheetWriter:
    return InvoiceSheetWriter(mock_spreadsheet_service, TEST_SHEET, TEST_START_ROW)


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def conversation_service(mock_extraction_service, sheet_writer, session_store) -> ConversationService:
    """Provide a conversation service wired to mocks."""
    return ConversationService(mock_extraction_service, sheet_writer, session_store)


@pytest.fixture
def receipt_app(mock_extraction_service, mock_spreadsheet_service) -> ReceiptBotApp:
    """Provide a fully configured application with mocks and an open access gate."""
    return ReceiptBotApp(
        extraction_service=mock_extraction_service,
        spreadsheet_service=mock_spreadsheet_service,
        access_gate=AccessGate(),
        sheet_name=TEST_SHEET,
        start_row=TEST_START_ROW
    )


# =============================================================================
# DATA FIXTURES
# =============================================================================

@pytest.fixture
def user_id() -> int:
    return 98336105


@pytest.fixture
def pdf_bytes() -> bytes:
    return b'%PDF-1.4 mock receipt'


@pytest.fixture
def sample_receipt_text() -> str:
    """Text as PDF extraction returns it for a typical card receipt."""
    return (
        "SUPERMERCADO BOM PRECO LTDA\n"
        "CNPJ 00.000.000/0001-00\n"
        "10 MAR 2024 14:32\n"
        "Valor R$ 50,00\n"
        "CREDITO A VISTA\n"
    )


@pytest.fixture
def started_session(conversation_service, mock_extraction_service, user_id, pdf_bytes, sample_receipt_text):
    """A submission waiting for its category."""
    mock_extraction_service.set_custom_response(pdf_bytes, sample_receipt_text)
    conversation_service.start_submission(user_id, pdf_bytes, "application/pdf")
    return conversation_service.session_store.get(user_id)


@pytest.fixture
def description_session(conversation_service, started_session, user_id):
    """A submission waiting for its description."""
    conversation_service.select_option(user_id, "cat", "1")
    conversation_service.select_option(user_id, "pay", "3")
    conversation_service.select_option(user_id, "ess", "yes")
    return started_session


# =============================================================================
# PARAMETRIZED TEST DATA
# =============================================================================

@pytest.fixture(params=[
    ("JAN", "01"), ("FEV", "02"), ("MAR", "03"), ("ABR", "04"),
    ("MAI", "05"), ("JUN", "06"), ("JUL", "07"), ("AGO", "08"),
    ("SET", "09"), ("OUT", "10"), ("NOV", "11"), ("DEZ", "12"),
])
def month_case(request):
    """Parametrize tests across every supported month abbreviation."""
    return request.param

"""
interfaces.py
Abstract interfaces for dependency injection and testing.
"""

from abc import ABC, abstractmethod
from typing import List


# =============================================================================
# EXTRACTION INTERFACE
# =============================================================================

class IExtractionService(ABC):
    """Abstract interface for text extraction (PDF parsing / OCR)."""

    @abstractmethod
    def extract_text(self, content: bytes, mime_type: str) -> str:
        """Return best-effort plain text for the upload."""
        pass


# =============================================================================
# SPREADSHEET INTERFACE
# =============================================================================

class ISpreadsheetService(ABC):
    """Abstract interface for spreadsheet cell access."""

    @abstractmethod
    def read_range(self, range_a1: str) -> List[List[str]]:
        """Read the values of an A1 range, one list per row."""
        pass

    @abstractmethod
    def write_cell(self, cell_a1: str, value: str) -> None:
        """Write a single cell."""
        pass

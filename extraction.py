"""
extraction.py
Plain-text extraction from receipt uploads: PyMuPDF for PDFs, Tesseract OCR for images.
"""

import io

import fitz  # PyMuPDF
import pytesseract
from PIL import Image

from logger_config import logger
from security_utils import InputValidator, PDF_TYPE

# Tesseract's bundled language
DEFAULT_OCR_LANGUAGE = 'eng'


class ExtractionError(Exception):
    """Raised when the underlying extractor cannot read the upload."""
    pass


def extract_text_from_pdf(content: bytes) -> str:
    """Concatenate the text layer of every page."""
    try:
        with fitz.open(stream=content, filetype="pdf") as document:
            pages = [page.get_text() for page in document]
    except Exception as e:
        raise ExtractionError(f"Could not read PDF: {e}") from e

    text = "\n".join(pages)
    logger.info(f"Extracted {len(text)} characters from {len(pages)} PDF page(s)")
    return text


def extract_text_from_image(content: bytes, language: str = None) -> str:
    """Run Tesseract over the image."""
    try:
        image = Image.open(io.BytesIO(content))
        text = pytesseract.image_to_string(image, lang=language or DEFAULT_OCR_LANGUAGE)
    except Exception as e:
        raise ExtractionError(f"Could not OCR image: {e}") from e

    logger.info(f"OCR extracted {len(text)} characters")
    return text


def extract_text(content: bytes, mime_type: str, language: str = None) -> str:
    """Best-effort plain text for a PDF or image upload.

    Raises SecurityException for unsupported content types and ExtractionError
    when the extractor fails.
    """
    mime_type = InputValidator.validate_content_type(mime_type)
    if mime_type == PDF_TYPE:
        return extract_text_from_pdf(content)
    return extract_text_from_image(content, language)

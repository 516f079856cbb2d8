"""
parse.py
Handles parsing of extracted receipt text into an Invoice.
"""

import re
import unicodedata
from typing import Optional
from invoice import Invoice, MONTHS
from logger_config import logger

AMOUNT_PATTERN = re.compile(r'Valor\s+R\$\s*([\d.,]+)', re.IGNORECASE)
DATE_PATTERN = re.compile(r'\b(\d{2})\s+([A-ZÇÃÕÁÉÍÓÚÂÊÔ]{3})\s+(\d{4})\b', re.IGNORECASE)


def strip_accents(text: str) -> str:
    """Drop combining marks so that e.g. 'FÉV' and 'FEV' compare equal."""
    decomposed = unicodedata.normalize('NFKD', text)
    return ''.join(char for char in decomposed if not unicodedata.combining(char))


def parse_amount(text: str) -> Optional[str]:
    """Return the amount after 'Valor R$' exactly as printed, or None."""
    match = AMOUNT_PATTERN.search(text)
    if not match:
        return None
    return match.group(1).strip()


def parse_date(text: str) -> Optional[str]:
    """Return the first 'DD MMM YYYY' date as DD/MM/YYYY, or None if absent or the month is unknown."""
    match = DATE_PATTERN.search(text)
    if not match:
        return None

    day, month_abbreviation, year = match.groups()
    month = MONTHS.get(strip_accents(month_abbreviation).upper())
    if not month:
        logger.debug(f"Unknown month abbreviation: {month_abbreviation}")
        return None
    return f"{day}/{month}/{year}"


def parse_invoice_from_text(text: str) -> Invoice:
    """Build a partially filled Invoice from extracted receipt text."""
    text = text or ''
    logger.debug(f"Parsing extracted text ({len(text)} chars)")

    invoice = Invoice(value=parse_amount(text), date=parse_date(text))
    logger.info(f"Parsed invoice fields: value={invoice.value}, date={invoice.date}")
    return invoice

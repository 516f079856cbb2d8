"""
invoice.py
Invoice record and the fixed category, payment and month tables.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Option:
    """One selectable entry: stable code, display label and the string stored in the sheet."""
    code: int
    label: str
    sheet_tag: str


@dataclass
class Invoice:
    """Purchase record assembled during the dialogue."""
    value: Optional[str] = None
    date: Optional[str] = None
    category_code: Optional[int] = None
    category_label: Optional[str] = None
    category_tag: Optional[str] = None
    payment_code: Optional[int] = None
    payment_label: Optional[str] = None
    payment_tag: Optional[str] = None
    essential: Optional[str] = None
    description: Optional[str] = None


CATEGORIES: Tuple[Option, ...] = (
    Option(1, "Supermercado", "🛒 Supermercado"),
    Option(2, "Alimentação", "🍔 Alimentação"),
    Option(3, "Transporte", "🚗 Transporte"),
    Option(4, "Lazer", "🎉 Lazer"),
    Option(5, "Gastos pessoais", "👤 Gastos pessoais"),
    Option(6, "Saúde e bem-estar", "🩺 Saúde e bem-estar"),
    Option(7, "Presentes", "🎁 Presentes"),
    Option(8, "Pets", "🐾 Pets"),
    Option(9, "Moradia", "🏠 Moradia"),
    Option(10, "Assinaturas", "🗂️ Assinaturas"),
    Option(11, "Serviços domésticos", "🧹 Serviços domésticos"),
    Option(12, "Parcelamentos", "💳 Parcelamentos"),
    Option(13, "Mensalidades", "🪙 Mensalidades"),
    Option(14, "Outros", "🧾 Outros"),
)

PAYMENTS: Tuple[Option, ...] = (
    Option(1, "Dinheiro", "💸 Dinheiro / Pix"),
    Option(2, "Pix", "💸 Dinheiro / Pix"),
    Option(3, "Crédito", "💳 Crédito"),
    Option(4, "Débito", "💳 Débito"),
    Option(5, "Vale", "🎟️ Vale"),
    Option(6, "Boleto", "💲 Boleto"),
)

# Portuguese three-letter month abbreviations as printed on receipts
MONTHS = {
    "JAN": "01",
    "FEV": "02",
    "MAR": "03",
    "ABR": "04",
    "MAI": "05",
    "JUN": "06",
    "JUL": "07",
    "AGO": "08",
    "SET": "09",
    "OUT": "10",
    "NOV": "11",
    "DEZ": "12",
}

ESSENTIAL_YES = "✔️"
ESSENTIAL_NO = "❌"
ESSENTIAL_CHOICES = {
    "yes": ESSENTIAL_YES,
    "no": ESSENTIAL_NO,
}


def find_option(options: Tuple[Option, ...], code: Optional[int]) -> Optional[Option]:
    """Return the entry with the given code, or None when the code is not in the table."""
    if code is None:
        return None
    for option in options:
        if option.code == code:
            return option
    return None


def find_category(code: Optional[int]) -> Optional[Option]:
    return find_option(CATEGORIES, code)


def find_payment(code: Optional[int]) -> Optional[Option]:
    return find_option(PAYMENTS, code)

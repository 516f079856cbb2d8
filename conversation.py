"""
conversation.py
Per-user receipt dialogue: upload -> category -> payment -> essential -> description -> saved.

The state machine is transport agnostic. Every operation returns a BotReply that the
Telegram layer renders, with buttons described as (label, callback_data) pairs.
"""

import enum
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

from invoice import (
    Invoice, Option, CATEGORIES, PAYMENTS, ESSENTIAL_CHOICES, ESSENTIAL_YES, ESSENTIAL_NO,
    find_category, find_payment
)
from logger_config import logger
from parse import parse_invoice_from_text
from security_utils import InputValidator
from sheets import PersistenceError

if TYPE_CHECKING:
    from interfaces import IExtractionService
    from sheets import InvoiceSheetWriter

# Callback data kinds, sent as "<kind>:<value>"
CATEGORY_KIND = "cat"
PAYMENT_KIND = "pay"
ESSENTIAL_KIND = "ess"

SKIP_COMMAND = "/pular"
KEYBOARD_ROW_SIZE = 2

AMOUNT_PLACEHOLDER = "não encontrado"
DATE_PLACEHOLDER = "não encontrada"

START_MESSAGE = "Manda a nota fiscal em PDF ou PNG como arquivo que eu leio para você."
INSTRUCTIONS_MESSAGE = "Manda a nota fiscal como PDF ou PNG/JPEG para eu processar."
NO_SUBMISSION_MESSAGE = "Não encontrei uma nota em andamento. Manda a nota novamente."
SAVED_MESSAGE = "Fechado. Salvei no Google Sheets."
SAVE_FAILED_MESSAGE = "Deu erro ao salvar no Google Sheets."

Button = Tuple[str, str]
Keyboard = List[List[Button]]


class Step(enum.Enum):
    CATEGORY = "category"
    PAYMENT = "payment"
    ESSENTIAL = "essential"
    DESCRIPTION = "description"


@dataclass
class BotReply:
    text: str
    keyboard: Optional[Keyboard] = None


@dataclass
class Session:
    step: Step
    invoice: Invoice


class SessionStore:
    """In-progress submissions keyed by user id, at most one per user."""

    def __init__(self):
        self.sessions: Dict[int, Session] = {}

    def get(self, user_id: int) -> Optional[Session]:
        return self.sessions.get(user_id)

    def start(self, user_id: int, invoice: Invoice) -> Session:
        """Open a session at the category step, replacing any previous one."""
        if user_id in self.sessions:
            logger.info(f"Discarding unfinished submission of user {user_id}")
        session = Session(step=Step.CATEGORY, invoice=invoice)
        self.sessions[user_id] = session
        return session

    def remove(self, user_id: int) -> None:
        self.sessions.pop(user_id, None)

    def clear(self) -> None:
        self.sessions.clear()

    def __contains__(self, user_id: int) -> bool:
        return user_id in self.sessions

    def __len__(self) -> int:
        return len(self.sessions)


# =============================================================================
# KEYBOARDS AND MESSAGES
# =============================================================================

def chunk(items: Sequence, size: int) -> List[list]:
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def build_options_keyboard(options: Sequence[Option], kind: str) -> Keyboard:
    buttons = [(option.sheet_tag, f"{kind}:{option.code}") for option in options]
    return chunk(buttons, KEYBOARD_ROW_SIZE)


def build_category_keyboard() -> Keyboard:
    return build_options_keyboard(CATEGORIES, CATEGORY_KIND)


def build_payment_keyboard() -> Keyboard:
    return build_options_keyboard(PAYMENTS, PAYMENT_KIND)


def build_essential_keyboard() -> Keyboard:
    return [[
        (f"{ESSENTIAL_YES} Essencial", f"{ESSENTIAL_KIND}:yes"),
        (f"{ESSENTIAL_NO} Não essencial", f"{ESSENTIAL_KIND}:no"),
    ]]


def format_invoice_preview(invoice: Invoice) -> str:
    value = f"R$ {invoice.value}" if invoice.value else AMOUNT_PLACEHOLDER
    date = invoice.date or DATE_PLACEHOLDER
    return f"Achei isso na nota:\nValor: {value}\nData: {date}\n\nAgora escolha a categoria:"


def parse_callback_data(data: str) -> Tuple[str, str]:
    """Split "<kind>:<value>" callback data."""
    kind, _, value = (data or '').partition(':')
    return kind, value


def parse_code(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# =============================================================================
# FIELD UPDATES
# =============================================================================
# Each update mutates the invoice and returns the reply for the next step,
# or None when the value is not an acceptable choice.

def apply_category(invoice: Invoice, value: str) -> Optional[BotReply]:
    category = find_category(parse_code(value))
    invoice.category_code = category.code if category else None
    invoice.category_label = category.label if category else None
    invoice.category_tag = category.sheet_tag if category else None
    if not category:
        logger.warning(f"Unknown category code {value!r}, leaving category blank")

    shown = category.sheet_tag if category else value
    return BotReply(
        f"Categoria selecionada: {shown}\n\nAgora escolha a forma de pagamento:",
        build_payment_keyboard()
    )


def apply_payment(invoice: Invoice, value: str) -> Optional[BotReply]:
    payment = find_payment(parse_code(value))
    invoice.payment_code = payment.code if payment else None
    invoice.payment_label = payment.label if payment else None
    invoice.payment_tag = payment.sheet_tag if payment else None
    if not payment:
        logger.warning(f"Unknown payment code {value!r}, leaving payment blank")

    shown = payment.sheet_tag if payment else value
    return BotReply(
        f"Forma selecionada: {shown}\n\nA compra foi essencial?",
        build_essential_keyboard()
    )


def apply_essential(invoice: Invoice, value: str) -> Optional[BotReply]:
    glyph = ESSENTIAL_CHOICES.get(value)
    if glyph is None:
        return None
    invoice.essential = glyph
    return BotReply(f"Marcado: {glyph}\n\nDigite uma descrição da nota fiscal (ou mande {SKIP_COMMAND}):")


FieldUpdate = Callable[[Invoice, str], Optional[BotReply]]

# (current step, callback kind) -> (next step, field update)
TRANSITIONS: Dict[Tuple[Step, str], Tuple[Step, FieldUpdate]] = {
    (Step.CATEGORY, CATEGORY_KIND): (Step.PAYMENT, apply_category),
    (Step.PAYMENT, PAYMENT_KIND): (Step.ESSENTIAL, apply_payment),
    (Step.ESSENTIAL, ESSENTIAL_KIND): (Step.DESCRIPTION, apply_essential),
}


# =============================================================================
# CONVERSATION SERVICE
# =============================================================================

class ConversationService:
    """Drives the receipt dialogue for every user."""

    def __init__(self, extraction_service: "IExtractionService", sheet_writer: "InvoiceSheetWriter",
                 session_store: SessionStore = None):
        self.extraction_service = extraction_service
        self.sheet_writer = sheet_writer
        self.session_store = session_store if session_store is not None else SessionStore()

    def has_pending_step(self, user_id: int) -> bool:
        return user_id in self.session_store

    def start_submission(self, user_id: int, content: bytes, mime_type: str) -> BotReply:
        """Extract and parse an uploaded receipt and open a new session at the category step.

        Raises SecurityException for unsupported content and propagates extractor errors;
        in both cases no session is created or changed.
        """
        user_id = InputValidator.validate_user_id(user_id)
        mime_type = InputValidator.validate_content_type(mime_type)

        logger.info(f"Extracting text from {mime_type} upload of user {user_id}")
        text = self.extraction_service.extract_text(content, mime_type)
        logger.debug(f"Extracted text: {text}")

        invoice = parse_invoice_from_text(text)
        self.session_store.start(user_id, invoice)
        return BotReply(format_invoice_preview(invoice), build_category_keyboard())

    def select_option(self, user_id: int, kind: str, value: str) -> BotReply:
        """Apply a button press. Presses that don't belong to the current step are rejected."""
        session = self.session_store.get(user_id)
        if session is None:
            logger.info(f"Selection {kind}:{value} from user {user_id} without a submission in progress")
            return BotReply(NO_SUBMISSION_MESSAGE)

        transition = TRANSITIONS.get((session.step, kind))
        if transition is None:
            logger.warning(f"Rejected {kind}:{value} from user {user_id} at step {session.step.value}")
            return BotReply(NO_SUBMISSION_MESSAGE)

        next_step, update = transition
        reply = update(session.invoice, value)
        if reply is None:
            logger.warning(f"Rejected invalid value {kind}:{value} from user {user_id}")
            return BotReply(NO_SUBMISSION_MESSAGE)

        session.step = next_step
        logger.info(f"User {user_id} moved to step {next_step.value}")
        return reply

    def submit_text(self, user_id: int, text: str) -> BotReply:
        """Take the description and save the invoice, or answer with instructions."""
        session = self.session_store.get(user_id)
        if session is None or session.step is not Step.DESCRIPTION:
            return BotReply(INSTRUCTIONS_MESSAGE)

        message = (text or '').strip()
        session.invoice.description = "" if message.lower() == SKIP_COMMAND else message

        try:
            row = self.sheet_writer.save(session.invoice)
        except PersistenceError as e:
            logger.error(f"Failed to save invoice for user {user_id}: {e}", exc_info=True)
            return BotReply(SAVE_FAILED_MESSAGE)

        self.session_store.remove(user_id)
        logger.info(f"Invoice of user {user_id} saved to row {row}")
        return BotReply(SAVED_MESSAGE)

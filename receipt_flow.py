# Receipt intake handlers: uploads, button presses and the description message

import asyncio
from typing import Optional

from telegram import Update, InlineKeyboardMarkup, InlineKeyboardButton
from telegram.ext import ContextTypes

from conversation import (
    BotReply, ConversationService, Keyboard, parse_callback_data,
    CATEGORY_KIND, PAYMENT_KIND, ESSENTIAL_KIND,
    START_MESSAGE, INSTRUCTIONS_MESSAGE, SAVE_FAILED_MESSAGE
)
from logger_config import logger, security_logger
from security_utils import AccessGate, InputValidator, SecurityException, ACCESS_DENIED_MESSAGE

CALLBACK_PATTERN = rf"^({CATEGORY_KIND}:\d+|{PAYMENT_KIND}:\d+|{ESSENTIAL_KIND}:(yes|no))$"

MISSING_FILE_MESSAGE = "Não consegui ver o arquivo."
DOCUMENT_ERROR_MESSAGE = "Deu erro ao ler o arquivo."
PHOTO_ERROR_MESSAGE = "Deu erro ao ler a imagem."
SELECTION_ERROR_MESSAGES = {
    CATEGORY_KIND: "Deu erro ao selecionar a categoria.",
    PAYMENT_KIND: "Deu erro ao selecionar a forma de pagamento.",
    ESSENTIAL_KIND: "Deu erro ao marcar essencial.",
}

# Telegram delivers photos as JPEG
PHOTO_MIME_TYPE = "image/jpeg"


def build_reply_markup(keyboard: Optional[Keyboard]) -> Optional[InlineKeyboardMarkup]:
    if not keyboard:
        return None
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(label, callback_data=data) for label, data in row]
        for row in keyboard
    ])


async def send_reply(update: Update, reply: BotReply):
    return await update.effective_message.reply_text(reply.text, reply_markup=build_reply_markup(reply.keyboard))


async def run_blocking(func, *args):
    """Run extraction or Sheets calls off the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func, *args)


def build_access_check(access_gate: AccessGate):
    """Create the access check shared by every handler."""

    async def check_user_access(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
        user = update.effective_user
        interaction = "callback" if update.callback_query else "message"
        if access_gate.check(user.id, user.username, interaction):
            return True

        if update.callback_query:
            await update.callback_query.answer()
        await update.effective_message.reply_text(ACCESS_DENIED_MESSAGE)
        return False

    return check_user_access


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE, check_user_access_func):
    user = update.effective_user
    logger.info(f"[RECEIPT_FLOW] Start command received from user {user.full_name} (ID: {user.id})")

    if not await check_user_access_func(update, context):
        return

    await update.effective_message.reply_text(START_MESSAGE)


async def _start_submission(update: Update, context: ContextTypes.DEFAULT_TYPE, conversation: ConversationService,
                            *, file_id: str, mime_type: str, error_message: str):
    """Download the upload, extract its text and open the category step."""
    user = update.effective_user
    try:
        file = await context.bot.get_file(file_id)
        content = bytes(await file.download_as_bytearray())
        security_logger.log_file_upload(user.id, mime_type, len(content))

        reply = await run_blocking(conversation.start_submission, user.id, content, mime_type)
    except SecurityException as e:
        await update.effective_message.reply_text(e.user_message)
        return
    except Exception as e:
        logger.error(f"Failed to read receipt from user {user.id}: {e}", exc_info=True)
        await update.effective_message.reply_text(error_message)
        return

    await send_reply(update, reply)


async def handle_document(update: Update, context: ContextTypes.DEFAULT_TYPE, check_user_access_func,
                          conversation: ConversationService):
    user = update.effective_user
    logger.info(f"[RECEIPT_FLOW] Received document from user {user.full_name} (ID: {user.id})")

    if not await check_user_access_func(update, context):
        return

    document = update.effective_message.document
    if not document:
        await update.effective_message.reply_text(MISSING_FILE_MESSAGE)
        return

    # Reject before downloading anything
    try:
        mime_type = InputValidator.validate_content_type(document.mime_type)
    except SecurityException as e:
        logger.info(f"Unsupported document type {document.mime_type!r} from user {user.id}")
        await update.effective_message.reply_text(e.user_message)
        return

    await _start_submission(
        update, context, conversation,
        file_id=document.file_id, mime_type=mime_type, error_message=DOCUMENT_ERROR_MESSAGE
    )


async def handle_photo(update: Update, context: ContextTypes.DEFAULT_TYPE, check_user_access_func,
                       conversation: ConversationService):
    user = update.effective_user
    logger.info(f"[RECEIPT_FLOW] Received photo from user {user.full_name} (ID: {user.id})")

    if not await check_user_access_func(update, context):
        return

    photo = update.effective_message.photo[-1]  # Get highest resolution photo
    await _start_submission(
        update, context, conversation,
        file_id=photo.file_id, mime_type=PHOTO_MIME_TYPE, error_message=PHOTO_ERROR_MESSAGE
    )


async def handle_selection(update: Update, context: ContextTypes.DEFAULT_TYPE, check_user_access_func,
                           conversation: ConversationService):
    """Category, payment and essential buttons."""
    if not await check_user_access_func(update, context):
        return

    query = update.callback_query
    await query.answer()

    user = update.effective_user
    kind, value = parse_callback_data(query.data)
    logger.info(f"Received selection {query.data} from user {user.id}")

    try:
        reply = conversation.select_option(user.id, kind, value)
    except Exception as e:
        logger.error(f"Failed to apply selection {query.data} for user {user.id}: {e}", exc_info=True)
        await update.effective_message.reply_text(
            SELECTION_ERROR_MESSAGES.get(kind, INSTRUCTIONS_MESSAGE)
        )
        return

    await send_reply(update, reply)


async def handle_text(update: Update, context: ContextTypes.DEFAULT_TYPE, check_user_access_func,
                      conversation: ConversationService):
    """Description (or /pular) while one is awaited, instructions otherwise."""
    if not await check_user_access_func(update, context):
        return

    user = update.effective_user
    text = update.effective_message.text or ''
    logger.info(f"Received text message from user {user.full_name} (ID: {user.id})")

    try:
        reply = await run_blocking(conversation.submit_text, user.id, text)
    except Exception as e:
        logger.error(f"Unexpected error handling text from user {user.id}: {e}", exc_info=True)
        reply = BotReply(SAVE_FAILED_MESSAGE)

    await send_reply(update, reply)


async def handle_other_message(update: Update, context: ContextTypes.DEFAULT_TYPE, check_user_access_func,
                               conversation: ConversationService):
    """Anything else (stickers, voice, ...): instructions, unless a submission is in progress."""
    if not await check_user_access_func(update, context):
        return

    if conversation.has_pending_step(update.effective_user.id):
        return

    await update.effective_message.reply_text(INSTRUCTIONS_MESSAGE)

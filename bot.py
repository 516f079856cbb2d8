# Receipt intake Telegram bot - Main entry point

import signal

from telegram.ext import Application, ApplicationBuilder, CommandHandler, MessageHandler, CallbackQueryHandler, filters

from auth_data import BOT_TOKEN, PORT, WEBHOOK_DOMAIN, WEBHOOK_PATH, WEBHOOK_SECRET
from logger_config import logger
from services import ReceiptBotApp
from receipt_flow import (
    CALLBACK_PATTERN, build_access_check, start, handle_document, handle_photo,
    handle_selection, handle_text, handle_other_message
)

# Stop polling / the webhook server cleanly on these
STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)

# Global application instance
receipt_app = None


async def on_shutdown(application: Application):
    """Drop unfinished submissions once updates have stopped flowing."""
    pending = len(receipt_app.get_session_store()) if receipt_app else 0
    if pending:
        logger.info(f"Discarding {pending} unfinished submission(s)")
    if receipt_app:
        receipt_app.get_session_store().clear()
    logger.info("Graceful shutdown complete.")


def register_handlers(application: Application, app: ReceiptBotApp):
    conversation = app.get_conversation_service()
    check_user_access = build_access_check(app.get_access_gate())

    application.add_handler(CommandHandler('start', lambda update, context: start(update, context, check_user_access)))
    application.add_handler(CallbackQueryHandler(
        lambda update, context: handle_selection(update, context, check_user_access, conversation),
        pattern=CALLBACK_PATTERN
    ))
    # Edited messages and channel posts match nothing below
    application.add_handler(MessageHandler(
        filters.UpdateType.MESSAGE & filters.Document.ALL,
        lambda update, context: handle_document(update, context, check_user_access, conversation)
    ))
    application.add_handler(MessageHandler(
        filters.UpdateType.MESSAGE & filters.PHOTO,
        lambda update, context: handle_photo(update, context, check_user_access, conversation)
    ))
    # Commands included so that /pular reaches the description step
    application.add_handler(MessageHandler(
        filters.UpdateType.MESSAGE & filters.TEXT,
        lambda update, context: handle_text(update, context, check_user_access, conversation)
    ))
    application.add_handler(MessageHandler(
        filters.UpdateType.MESSAGE,
        lambda update, context: handle_other_message(update, context, check_user_access, conversation)
    ))


def main():
    global receipt_app

    receipt_app = ReceiptBotApp()

    application = ApplicationBuilder().token(BOT_TOKEN).post_shutdown(on_shutdown).build()
    register_handlers(application, receipt_app)

    if WEBHOOK_DOMAIN:
        domain = WEBHOOK_DOMAIN.rstrip('/')
        if not domain.startswith('http'):
            domain = f"https://{domain}"
        logger.info(f"Starting receipt bot in webhook mode on port {PORT}...")
        application.run_webhook(
            listen="0.0.0.0",
            port=PORT,
            url_path=WEBHOOK_PATH,
            webhook_url=f"{domain}/{WEBHOOK_PATH}",
            secret_token=WEBHOOK_SECRET,
            stop_signals=STOP_SIGNALS,
        )
    else:
        logger.info('Receipt bot is running in polling mode...')
        application.run_polling(stop_signals=STOP_SIGNALS)


if __name__ == '__main__':
    main()

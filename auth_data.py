import os

from dotenv import load_dotenv

load_dotenv()

BOT_TOKEN = os.environ.get('BOT_TOKEN')
if not BOT_TOKEN:
    raise ValueError("BOT_TOKEN environment variable is not set")

# Comma separated Telegram user ids; empty means everyone may use the bot
ALLOWED_USERS = os.environ.get('ALLOWED_USERS', '')

# Google Sheets destination
GOOGLE_SPREADSHEET = os.environ.get('GOOGLE_SPREADSHEET')
if not GOOGLE_SPREADSHEET:
    raise ValueError("GOOGLE_SPREADSHEET environment variable is not set")

SHEET_NAME = os.environ.get('SHEET_NAME', 'JANEIRO')

_start_row_str = os.environ.get('SHEET_START_ROW', '22')
if not _start_row_str.isdigit() or int(_start_row_str) < 1:
    raise ValueError("SHEET_START_ROW environment variable is invalid")
SHEET_START_ROW = int(_start_row_str)

# Tesseract language for photo receipts
OCR_LANGUAGE = os.environ.get('OCR_LANGUAGE', 'eng')

# Transport: webhook when a public domain is known, polling otherwise
PORT = int(os.environ.get('PORT', 3000))
WEBHOOK_DOMAIN = os.environ.get('RENDER_EXTERNAL_URL') or os.environ.get('WEBHOOK_DOMAIN') or ''
WEBHOOK_PATH = os.environ.get('WEBHOOK_PATH', f"tg/{BOT_TOKEN}").lstrip('/')
WEBHOOK_SECRET = os.environ.get('WEBHOOK_SECRET') or None


def get_google_credentials_info() -> dict:
    """Service account credentials assembled from GOOGLE_* environment variables."""
    info = {
        "type": os.environ.get('GOOGLE_TYPE'),
        "project_id": os.environ.get('GOOGLE_PROJECT_ID'),
        "private_key_id": os.environ.get('GOOGLE_PRIVATE_KEY_ID'),
        # Hosting dashboards store the key on one line with literal "\n"
        "private_key": os.environ.get('GOOGLE_PRIVATE_KEY', '').replace('\\n', '\n'),
        "client_email": os.environ.get('GOOGLE_CLIENT_EMAIL'),
        "client_id": os.environ.get('GOOGLE_CLIENT_ID'),
        "auth_uri": os.environ.get('GOOGLE_AUTH_URI'),
        "token_uri": os.environ.get('GOOGLE_TOKEN_URI'),
        "auth_provider_x509_cert_url": os.environ.get('GOOGLE_AUTH_PROVIDER_X509_CERT_URL'),
        "client_x509_cert_url": os.environ.get('GOOGLE_CLIENT_X509_CERT_URL'),
        "universe_domain": os.environ.get('GOOGLE_UNIVERSE_DOMAIN'),
    }
    # Unset fields fall back to google-auth defaults
    return {key: value for key, value in info.items() if value}

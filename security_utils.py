"""
security_utils.py
Security utilities for access control and upload validation.
"""

from typing import Any, Iterable, Optional, Set
from logger_config import logger, security_logger

# Allowed file types
PDF_TYPE = 'application/pdf'
IMAGE_TYPE_PREFIX = 'image/'

ACCESS_DENIED_MESSAGE = "Acesso restrito."
UNSUPPORTED_CONTENT_MESSAGE = "Me manda a nota como PDF ou imagem (PNG/JPEG)."


class SecurityException(Exception):
    """Custom exception that doesn't expose internal details"""
    def __init__(self, user_message: str, internal_details: str = None):
        self.user_message = user_message
        self.internal_details = internal_details
        super().__init__(user_message)
        if internal_details:
            logger.error(f"Security error internal details: {internal_details}")


class AccessGate:
    """Allow-list of Telegram user ids. An empty list lets everyone in."""

    def __init__(self, allowed_users: Iterable[Any] = ()):
        self.allowed_users: Set[str] = {str(user).strip() for user in allowed_users if str(user).strip()}

    @classmethod
    def from_csv(cls, value: Optional[str]) -> "AccessGate":
        """Build the gate from a comma separated list such as '123, 456'."""
        return cls((value or '').split(','))

    def is_allowed(self, user_id: Any) -> bool:
        if not self.allowed_users:
            return True
        return str(user_id) in self.allowed_users

    def check(self, user_id: Any, username: str = None, interaction: str = "message") -> bool:
        """Like is_allowed, but records refused attempts."""
        allowed = self.is_allowed(user_id)
        if not allowed:
            security_logger.log_access_denied(user_id, username, interaction)
        return allowed


class InputValidator:
    """Input validation"""

    @staticmethod
    def is_supported_content_type(mime_type: Optional[str]) -> bool:
        """PDFs and any image type are accepted."""
        mime_type = (mime_type or '').lower()
        return mime_type == PDF_TYPE or mime_type.startswith(IMAGE_TYPE_PREFIX)

    @staticmethod
    def validate_content_type(mime_type: Optional[str]) -> str:
        """Return the normalized MIME type or raise SecurityException for unsupported uploads."""
        if not InputValidator.is_supported_content_type(mime_type):
            security_logger.log_validation_error(0, "content_type", f"Unsupported MIME type: {mime_type!r}")
            raise SecurityException(UNSUPPORTED_CONTENT_MESSAGE)
        return mime_type.lower()

    @staticmethod
    def validate_user_id(user_id: Any) -> int:
        """Validate Telegram user ID"""
        try:
            uid = int(user_id)
            if uid <= 0 or uid > 2**63:  # Telegram user ID constraints
                raise SecurityException("Invalid user ID")
            return uid
        except (ValueError, TypeError):
            raise SecurityException("Invalid user ID format")

"""Classification of Telegram errors and mapping of failures to user text keys"""
from typing import Optional

from aiogram.exceptions import (
    TelegramAPIError,
    TelegramBadRequest,
    TelegramEntityTooLarge,
    TelegramForbiddenError,
)

from utils.errors import MediaError
from utils.logger import logger

# Platform rejected a file_id / file reference we sent
_STALE_HANDLE_MARKERS = (
    "wrong file identifier",
    "wrong remote file identifier",
    "file reference",
    "file_reference_expired",
    "media_empty",
    "wrong type of the web page content",
)

# Bot cannot post to the archive channel at all
_CHANNEL_UNREACHABLE_MARKERS = (
    "chat not found",
    "bot is not a member",
    "bot is not a participant",
    "not enough rights",
    "need administrator rights",
    "channel_private",
    "chat_write_forbidden",
    "have no rights to send",
)

# Inline placeholder is gone or frozen
_PLACEHOLDER_GONE_MARKERS = (
    "message to edit not found",
    "message can't be edited",
    "message_id_invalid",
    "inline_message_id_invalid",
    "message_edit_time_expired",
)

# Expected during normal operation, never worth alerting about
_TRANSIENT_MARKERS = (
    "message is not modified",
    "message_not_modified",
    "query is too old",
    "query_too_old",
    "query_id_invalid",
    "message_id_invalid",
    "inline_message_id_invalid",
    "message_edit_time_expired",
    "message to edit not found",
    "bot was blocked by the user",
    "bot_blocked",
    "user is deactivated",
    "user_deactivated",
    "chat not found",
    "chat_not_found",
)


def error_text(error: BaseException) -> str:
    """Lower-cased Telegram description (or str() for anything else)"""
    return str(getattr(error, "message", None) or error).lower()


def _has_marker(error: BaseException, markers) -> bool:
    text = error_text(error)
    return any(marker in text for marker in markers)


def is_stale_handle_error(error: BaseException) -> bool:
    return isinstance(error, TelegramBadRequest) and _has_marker(error, _STALE_HANDLE_MARKERS)


def is_too_large_error(error: BaseException) -> bool:
    if isinstance(error, TelegramEntityTooLarge):
        return True
    return isinstance(error, TelegramAPIError) and (
        "too large" in error_text(error) or "too big" in error_text(error)
    )


def is_channel_unreachable_error(error: BaseException) -> bool:
    if not isinstance(error, (TelegramBadRequest, TelegramForbiddenError)):
        return False
    return _has_marker(error, _CHANNEL_UNREACHABLE_MARKERS)


def is_placeholder_gone_error(error: BaseException) -> bool:
    return isinstance(error, TelegramBadRequest) and _has_marker(error, _PLACEHOLDER_GONE_MARKERS)


def is_not_found_error(error: BaseException) -> bool:
    return isinstance(error, TelegramAPIError) and "not found" in error_text(error)


def is_not_modified_error(error: BaseException) -> bool:
    return isinstance(error, TelegramAPIError) and "not modified" in error_text(error)


def is_user_blocked_error(error: BaseException) -> bool:
    if not isinstance(error, TelegramForbiddenError):
        return False
    text = error_text(error)
    return "blocked" in text or "deactivated" in text


def is_transient_noise(error: BaseException) -> bool:
    """Errors expected during normal operation (logged, never alerted)"""
    return isinstance(error, TelegramAPIError) and _has_marker(error, _TRANSIENT_MARKERS)


class ErrorHandler:
    """Maps failures to the text keys shown to users"""

    @staticmethod
    def text_key_for(error: BaseException, default: str = "general_error") -> str:
        """
        Pick the user-facing text key for a failure.

        Pipeline errors carry their own key; raw platform errors are
        classified by description.
        """
        if isinstance(error, MediaError):
            return error.text_key
        if is_too_large_error(error):
            return "error_telegram_size"
        if is_stale_handle_error(error):
            return "inline_cache_upload_failed"
        return default

    @staticmethod
    def log(error: BaseException, context: str, user_id: Optional[int] = None) -> None:
        """Log a failure once, at a level matching how surprising it is"""
        prefix = f"[{context}] User {user_id}" if user_id else f"[{context}]"
        if is_transient_noise(error):
            logger.info(f"{prefix}: ignoring expected Telegram error: {error_text(error)}")
        elif isinstance(error, MediaError):
            logger.warning(f"{prefix}: {type(error).__name__}: {error}")
        else:
            logger.error(f"{prefix}: {type(error).__name__}: {error}", exc_info=error)


# Global error handler instance
error_handler = ErrorHandler()

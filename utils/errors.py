"""
Failure kinds of the download pipeline.

Each error carries the text key shown to the user. Only UploadFailed is an
operator problem (archive channel gone or misconfigured) and asks for an
admin alert.
"""
from typing import Optional


class MediaError(Exception):
    """Base class for request-terminal pipeline failures"""

    text_key = "general_error"
    notify_admin = False

    def __init__(self, message: str = "", text_key: Optional[str] = None):
        super().__init__(message or self.__class__.__name__)
        if text_key:
            self.text_key = text_key


class MetadataUnavailable(MediaError):
    """Provider could not describe the media"""


class ContentTooLarge(MediaError):
    """File exceeds the platform upload limit"""

    text_key = "error_telegram_size"


class ContentTooLong(ContentTooLarge):
    """Download service refused the media for its duration"""

    text_key = "length_limit_error"


class ProviderDownloadFailed(MediaError):
    """Download service error while fetching the bytes"""

    text_key = "api_error_fetch"

    def __init__(self, message: str = "", text_key: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message, text_key)
        self.status = status


class UploadFailed(MediaError):
    """Archive channel unreachable, affects every user"""

    text_key = "inline_error_general"
    notify_admin = True


class ArchiveSendFailed(MediaError):
    """Archive upload failed for a reason local to this request"""

    text_key = "inline_cache_upload_failed"


class MissingMediaError(ArchiveSendFailed):
    """Archive message came back without the expected audio/video"""


class StaleHandle(MediaError):
    """Platform rejected a cached handle"""

    text_key = "inline_cache_upload_failed"


class PlaceholderExpired(MediaError):
    """Inline placeholder can no longer be edited"""

    text_key = "inline_error_general"

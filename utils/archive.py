"""
Archive channel upload. Turns downloaded bytes into a reusable handle.

Every fresh file is sent once, silently, to a private archive channel. The
message stays there for good; what we keep is the handle of its audio/video,
which any later request can resend without uploading again.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp
from aiogram.exceptions import TelegramAPIError, TelegramNetworkError
from aiogram.types import Message

from utils.error_handler import is_channel_unreachable_error, is_too_large_error
from utils.errors import ArchiveSendFailed, ContentTooLarge, MissingMediaError, UploadFailed
from utils.file_handle import DeliveryHandle
from utils.logger import logger


@dataclass
class ArchiveUploadResult:
    message: Message
    media: Any
    handle: DeliveryHandle


class ArchiveUploader:
    """Uploads media to the archive channel and extracts its handle"""

    def __init__(self, transport, channel_id: int):
        self.transport = transport
        self.channel_id = channel_id

    async def upload(
        self,
        kind: str,
        response,
        filename: str,
        caption: str,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> ArchiveUploadResult:
        """
        Send one downloaded file to the archive channel.

        Args:
            kind: "audio" or "video"
            response: DownloadResponse to stream from
            filename: Upload filename (already sanitized)
            caption: Archive caption (plain text)
            attributes: duration/performer/title/width/height/thumbnail...

        Raises:
            ContentTooLarge: platform refused the size
            UploadFailed: archive channel unreachable or misconfigured
            ArchiveSendFailed: any other send failure, or no media in the reply
        """
        input_file = self.transport.stream_file(response, filename)
        try:
            message = await self.transport.send_media(
                self.channel_id,
                kind,
                input_file,
                caption=caption,
                disable_notification=True,
                **(attributes or {}),
            )
        except TelegramAPIError as e:
            if is_too_large_error(e):
                raise ContentTooLarge(f"Archive upload too large: {e}") from e
            if is_channel_unreachable_error(e):
                logger.critical(f"Archive channel {self.channel_id} unreachable: {e}")
                raise UploadFailed(f"Archive channel {self.channel_id} unreachable: {e}") from e
            if isinstance(e, TelegramNetworkError):
                raise ArchiveSendFailed(f"Network error during archive upload: {e}") from e
            raise ArchiveSendFailed(f"Archive upload failed: {e}") from e
        except aiohttp.ClientError as e:
            # Download stream broke while Telegram was reading it
            raise ArchiveSendFailed(f"Download stream failed during archive upload: {e}") from e

        media = message.audio if kind == "audio" else message.video
        handle = self.transport.extract_handle(message, kind)
        if media is None or handle is None:
            raise MissingMediaError(
                f"Archive message {message.message_id} has no {kind} (filename {filename})"
            )

        logger.info(f"Archived {kind} '{filename}' as message {message.message_id} in {self.channel_id}")
        return ArchiveUploadResult(message=message, media=media, handle=handle)


# Global archive uploader (initialized after transport is created)
archive_uploader: Optional[ArchiveUploader] = None


def init_archive_uploader(transport, channel_id: int) -> ArchiveUploader:
    """Initialize archive uploader with transport instance"""
    global archive_uploader
    archive_uploader = ArchiveUploader(transport, channel_id)
    logger.info(f"✓ Archive channel: {channel_id}")
    return archive_uploader

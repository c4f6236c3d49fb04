"""
Inline media editor: turns an inline placeholder into the actual audio/video.

The placeholder is a text message created by Telegram from the chosen inline
result. Once a delivery handle exists, the placeholder's content is swapped
for the media (caption + attributes) and its keyboard removed.
"""
from functools import partial
from typing import Optional

from aiogram.exceptions import TelegramAPIError

from downloaders.base import MediaProvider
from downloaders.models import DeliveryOutcome, MediaDetails, MediaRequest
from utils.errors import PlaceholderExpired, StaleHandle
from utils.file_handle import DeliveryHandle
from utils.logger import logger


class InlineMediaEditor:
    def __init__(self, transport, translator):
        self.transport = transport
        self.translator = translator

    async def _set_error(self, inline_message_id: str, text: str) -> None:
        try:
            await self.transport.edit_inline_text(inline_message_id, text + self.translator.suffix())
        except PlaceholderExpired:
            logger.info(f"Inline message {inline_message_id} is gone, nothing to update")
        except TelegramAPIError as e:
            logger.error(f"Failed to set inline message {inline_message_id} text: {e}")

    async def edit(
        self,
        inline_message_id: str,
        handle: DeliveryHandle,
        request: MediaRequest,
        details: Optional[MediaDetails],
        lang: str,
        provider: MediaProvider,
    ) -> DeliveryOutcome:
        """
        Replace the placeholder with the media behind `handle`.

        Returns:
            DELIVERED on success, STALE when Telegram rejected the handle,
            FAILED otherwise (the placeholder then shows an error text)
        """
        t = partial(self.translator.t, lang)

        if details is None:
            logger.error(f"Cannot edit inline message {inline_message_id}: no metadata for {request.cache_key}")
            await self._set_error(inline_message_id, t(provider.metadata_error_key))
            return DeliveryOutcome.FAILED

        caption = provider.build_caption(request, details, t, self.translator.suffix())
        attributes = provider.build_delivery_attributes(request, details, t)

        try:
            await self.transport.edit_inline_media(
                inline_message_id,
                request.media_kind,
                handle,
                caption,
                **attributes,
            )
            logger.info(f"Inline message {inline_message_id} now shows {request.cache_key}")
            return DeliveryOutcome.DELIVERED
        except StaleHandle as e:
            logger.warning(f"Cached handle for {request.cache_key} rejected: {e}")
            await self._set_error(inline_message_id, t("inline_edit_failed"))
            return DeliveryOutcome.STALE
        except PlaceholderExpired as e:
            logger.info(f"Inline message {inline_message_id} expired before delivery: {e}")
            return DeliveryOutcome.FAILED
        except TelegramAPIError as e:
            logger.error(f"Editing inline message {inline_message_id} with media failed: {e}")
            await self._set_error(inline_message_id, t("inline_edit_failed"))
            return DeliveryOutcome.FAILED

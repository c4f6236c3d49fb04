"""
Delivery targets of the pipeline.

  ChatDelivery    a status message in a chat: edited while working,
                  deleted once the media is sent as a new message
  InlineDelivery  an inline placeholder: edited while working, then
                  replaced in place by the media

Both expose the same three calls: progress(text), deliver(...), fail(text).
Progress edits are cosmetic; their failures never stop a request.
"""
from functools import partial
from typing import Optional

from aiogram.exceptions import TelegramAPIError

from downloaders.base import MediaProvider
from downloaders.inline_media import InlineMediaEditor
from downloaders.models import DeliveryOutcome, MediaDetails, MediaRequest
from ui.formatting import processing_keyboard
from utils.error_handler import is_not_found_error, is_not_modified_error, is_user_blocked_error
from utils.errors import PlaceholderExpired, StaleHandle
from utils.file_handle import DeliveryHandle
from utils.logger import logger


class ChatDelivery:
    def __init__(self, transport, translator, chat_id: int, status_message_id: Optional[int]):
        self.transport = transport
        self.translator = translator
        self.chat_id = chat_id
        self.status_message_id = status_message_id

    @property
    def label(self) -> str:
        return f"chat {self.chat_id}"

    async def progress(self, text: str) -> None:
        if self.status_message_id is None:
            return
        try:
            await self.transport.edit_text(self.chat_id, self.status_message_id, text)
        except TelegramAPIError as e:
            if is_not_modified_error(e):
                return
            if is_not_found_error(e):
                # Deleted by the user; stop editing it
                logger.info(f"Status message {self.status_message_id} in {self.chat_id} is gone")
                self.status_message_id = None
                return
            logger.warning(f"Status edit in {self.chat_id} failed: {e}")

    async def _drop_status(self) -> None:
        if self.status_message_id is None:
            return
        message_id, self.status_message_id = self.status_message_id, None
        try:
            await self.transport.delete_message(self.chat_id, message_id)
        except TelegramAPIError as e:
            logger.debug(f"Could not delete status message {message_id} in {self.chat_id}: {e}")

    async def deliver(
        self,
        request: MediaRequest,
        details: MediaDetails,
        handle: DeliveryHandle,
        lang: str,
        provider: MediaProvider,
    ) -> DeliveryOutcome:
        t = partial(self.translator.t, lang)
        caption = provider.build_caption(request, details, t, self.translator.suffix())
        attributes = provider.build_delivery_attributes(request, details, t)

        try:
            await self.transport.send_media(self.chat_id, request.media_kind, handle, caption=caption, **attributes)
        except StaleHandle as e:
            logger.warning(f"Cached handle for {request.cache_key} rejected in {self.chat_id}: {e}")
            await self.fail(t("inline_cache_upload_failed"))
            return DeliveryOutcome.STALE
        except TelegramAPIError as e:
            if is_user_blocked_error(e):
                logger.info(f"User {self.chat_id} blocked the bot, dropping {request.cache_key}")
                return DeliveryOutcome.FAILED
            logger.error(f"Sending {request.cache_key} to {self.chat_id} failed: {e}")
            await self.fail(t("inline_cache_upload_failed"))
            return DeliveryOutcome.FAILED

        await self._drop_status()
        logger.info(f"Delivered {request.cache_key} to {self.chat_id}")
        return DeliveryOutcome.DELIVERED

    async def fail(self, text: str) -> None:
        """Show an error: on the status message if it still exists, else as a new message"""
        text = text + self.translator.suffix()
        if self.status_message_id is not None:
            try:
                await self.transport.edit_text(self.chat_id, self.status_message_id, text)
                return
            except TelegramAPIError as e:
                logger.info(f"Status message {self.status_message_id} not editable ({e}), replying instead")
        try:
            await self.transport.send_text(self.chat_id, text)
        except TelegramAPIError as e:
            if not is_user_blocked_error(e):
                logger.error(f"Failed to send error text to {self.chat_id}: {e}")


class InlineDelivery:
    def __init__(self, transport, translator, editor: InlineMediaEditor, inline_message_id: str):
        self.transport = transport
        self.translator = translator
        self.editor = editor
        self.inline_message_id = inline_message_id
        self.gone = False

    @property
    def label(self) -> str:
        return f"inline {self.inline_message_id}"

    async def progress(self, text: str) -> None:
        if self.gone:
            return
        try:
            await self.transport.edit_inline_text(self.inline_message_id, text, reply_markup=processing_keyboard())
        except PlaceholderExpired:
            logger.info(f"Inline message {self.inline_message_id} is gone")
            self.gone = True
        except TelegramAPIError as e:
            logger.warning(f"Inline progress edit failed for {self.inline_message_id}: {e}")

    async def deliver(
        self,
        request: MediaRequest,
        details: MediaDetails,
        handle: DeliveryHandle,
        lang: str,
        provider: MediaProvider,
    ) -> DeliveryOutcome:
        return await self.editor.edit(self.inline_message_id, handle, request, details, lang, provider)

    async def fail(self, text: str) -> None:
        if self.gone:
            return
        try:
            await self.transport.edit_inline_text(self.inline_message_id, text + self.translator.suffix())
        except PlaceholderExpired:
            self.gone = True
        except TelegramAPIError as e:
            logger.error(f"Failed to set inline message {self.inline_message_id} to error state: {e}")

"""
Telegram transport: thin layer over aiogram.Bot used by the pipeline.

Keeps aiogram types out of the orchestration code and turns the two
platform errors the pipeline reacts to into typed ones:

  handle rejected on send/edit   → StaleHandle
  inline placeholder gone        → PlaceholderExpired

Every other TelegramAPIError propagates unchanged.
"""
from typing import Any, AsyncGenerator, Dict, List, Optional, Union

from aiogram import Bot
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import (
    InlineKeyboardMarkup,
    InlineQueryResultsButton,
    InputFile,
    InputMediaAudio,
    InputMediaVideo,
    Message,
    URLInputFile,
)

from utils.error_handler import is_not_modified_error, is_placeholder_gone_error, is_stale_handle_error
from utils.errors import PlaceholderExpired, StaleHandle
from utils.file_handle import DeliveryHandle, FileToken
from utils.logger import logger

_AUDIO_ATTRS = ("duration", "performer", "title", "thumbnail")
_VIDEO_ATTRS = ("duration", "width", "height", "supports_streaming", "thumbnail")


class StreamInputFile(InputFile):
    """Upload straight from a download-service response, chunk by chunk"""

    def __init__(self, response, filename: str, chunk_size: int = 64 * 1024):
        super().__init__(filename=filename, chunk_size=chunk_size)
        self.response = response

    async def read(self, bot: Bot) -> AsyncGenerator[bytes, None]:
        async for chunk in self.response.iter_chunks(self.chunk_size):
            yield chunk


def _media_attributes(kind: str, attributes: Dict[str, Any], allow_thumbnail: bool) -> Dict[str, Any]:
    allowed = _AUDIO_ATTRS if kind == "audio" else _VIDEO_ATTRS
    result = {}
    for name in allowed:
        value = attributes.get(name)
        if value in (None, ""):
            continue
        if name == "thumbnail":
            # Thumbnails only go along with a fresh upload
            if not allow_thumbnail:
                continue
            value = URLInputFile(value) if isinstance(value, str) else value
        result[name] = value
    return result


class BotApiTransport:
    """Bot API transport: delivery handles are plain file_id tokens"""

    def __init__(self, bot: Bot):
        self.bot = bot
        self._username: Optional[str] = None

    # ─── Handles ──────────────────────────────────────────────────────────────

    def accepts(self, handle: DeliveryHandle) -> bool:
        """Only file_id tokens can be redeemed through the Bot API"""
        return isinstance(handle, FileToken)

    def extract_handle(self, message: Message, kind: str) -> Optional[FileToken]:
        """Pull the file_id of the audio/video a message carries"""
        media = message.audio if kind == "audio" else message.video
        if media is None or not media.file_id:
            return None
        return FileToken(media.file_id)

    def stream_file(self, response, filename: str) -> InputFile:
        return StreamInputFile(response, filename)

    # ─── Identity ─────────────────────────────────────────────────────────────

    async def get_username(self) -> str:
        if self._username is None:
            me = await self.bot.get_me()
            self._username = me.username or ""
        return self._username

    # ─── Chat messages ────────────────────────────────────────────────────────

    async def send_text(
        self,
        chat_id: int,
        text: str,
        reply_markup: Optional[InlineKeyboardMarkup] = None,
        reply_to_message_id: Optional[int] = None,
    ) -> Message:
        return await self.bot.send_message(
            chat_id,
            text,
            reply_markup=reply_markup,
            reply_to_message_id=reply_to_message_id,
        )

    async def edit_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        reply_markup: Optional[InlineKeyboardMarkup] = None,
    ) -> None:
        await self.bot.edit_message_text(
            text,
            chat_id=chat_id,
            message_id=message_id,
            reply_markup=reply_markup,
        )

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        await self.bot.delete_message(chat_id, message_id)

    async def send_chat_action(self, chat_id: int, action: str) -> None:
        await self.bot.send_chat_action(chat_id, action)

    async def send_media(
        self,
        chat_id: int,
        kind: str,
        media: Union[DeliveryHandle, InputFile],
        caption: Optional[str] = None,
        disable_notification: bool = False,
        **attributes,
    ) -> Message:
        """
        Send audio or video, either as a fresh upload (InputFile) or by
        re-using a delivery handle.

        Raises StaleHandle when the platform rejects the handle.
        """
        by_handle = not isinstance(media, InputFile)
        if by_handle:
            if not self.accepts(media):
                raise StaleHandle(f"Handle {type(media).__name__} not usable with the Bot API")
            source = media.file_id
        else:
            source = media

        extra = _media_attributes(kind, attributes, allow_thumbnail=not by_handle)
        try:
            if kind == "audio":
                return await self.bot.send_audio(
                    chat_id, source, caption=caption, disable_notification=disable_notification, **extra
                )
            return await self.bot.send_video(
                chat_id, source, caption=caption, disable_notification=disable_notification, **extra
            )
        except TelegramBadRequest as e:
            if by_handle and is_stale_handle_error(e):
                raise StaleHandle(e.message) from e
            raise

    # ─── Inline placeholders ──────────────────────────────────────────────────

    async def edit_inline_text(
        self,
        inline_message_id: str,
        text: str,
        reply_markup: Optional[InlineKeyboardMarkup] = None,
    ) -> None:
        """
        Rewrite the text of an inline placeholder.

        "Not modified" is ignored; a vanished placeholder raises
        PlaceholderExpired.
        """
        try:
            await self.bot.edit_message_text(
                text,
                inline_message_id=inline_message_id,
                reply_markup=reply_markup,
            )
        except TelegramBadRequest as e:
            if is_not_modified_error(e):
                return
            if is_placeholder_gone_error(e):
                raise PlaceholderExpired(e.message) from e
            raise

    async def edit_inline_media(
        self,
        inline_message_id: str,
        kind: str,
        handle: DeliveryHandle,
        caption: str,
        **attributes,
    ) -> None:
        """Replace an inline placeholder with cached media, dropping its keyboard"""
        if not self.accepts(handle):
            raise StaleHandle(f"Handle {type(handle).__name__} not usable with the Bot API")

        extra = _media_attributes(kind, attributes, allow_thumbnail=False)
        if kind == "audio":
            media = InputMediaAudio(media=handle.file_id, caption=caption, **extra)
        else:
            media = InputMediaVideo(media=handle.file_id, caption=caption, **extra)

        try:
            await self.bot.edit_message_media(
                media=media,
                inline_message_id=inline_message_id,
                reply_markup=InlineKeyboardMarkup(inline_keyboard=[]),
            )
        except TelegramBadRequest as e:
            if is_stale_handle_error(e):
                raise StaleHandle(e.message) from e
            if is_placeholder_gone_error(e):
                raise PlaceholderExpired(e.message) from e
            raise

    async def answer_inline_query(
        self,
        inline_query_id: str,
        results: List[Any],
        cache_time: int = 60,
        button: Optional[InlineQueryResultsButton] = None,
    ) -> None:
        await self.bot.answer_inline_query(
            inline_query_id,
            results,
            cache_time=cache_time,
            button=button,
        )


# Global transport (initialized after bot is created)
transport: Optional[BotApiTransport] = None


def init_transport(bot: Bot) -> BotApiTransport:
    """Initialize transport with bot instance"""
    global transport
    transport = BotApiTransport(bot)
    logger.info("✓ Bot API transport ready")
    return transport

"""
Chat router: commands, links sent in chat, format/quality callbacks.

Design:
  - A YouTube link gets a format keyboard, then a quality keyboard; the
    keyboard message becomes the status message of the download
  - A Spotify link starts right away under a "processing" status message
  - A TikTok link is looked up first (its id comes from metadata), then
    gets a format keyboard
  - Callback payloads carry the whole choice (ui.callbacks)
  - Global error handler: never crash polling, tell the user once
"""
from functools import partial

from aiogram import Bot, F
from aiogram.exceptions import TelegramAPIError
from aiogram.filters import Command, CommandStart
from aiogram.types import CallbackQuery, ErrorEvent, Message

from core.bot import dp
from core.config import config
from downloaders.classifier import classify, extract_url, is_tiktok_url
from downloaders.models import MediaRequest
from downloaders.pipeline import pipelines
from downloaders.tiktok import fallback_url, lookup_tiktok
from downloaders.youtube import canonical_url
from downloaders.spotify import track_url
from ui.callbacks import CANCEL, FormatChoice, LanguageChoice, QualityChoice
from ui import i18n
from ui.formatting import (
    article,
    escape_html,
    format_keyboard,
    language_keyboard,
    quality_keyboard,
    truncate,
)
from ui.i18n import Translator
from ui.texts import LANGUAGES
from utils.cache import AUDIO_QUALITIES, VIDEO_QUALITIES
from utils.error_handler import error_handler, is_not_found_error, is_not_modified_error, is_transient_noise
from utils.logger import logger
from workers.inflight import inflight_registry


# ─── Global error handler ─────────────────────────────────────────────────────

@dp.errors()
async def global_error_handler(event: ErrorEvent, bot: Bot, translator: Translator = None) -> bool:
    """
    Catches everything a handler let through.
    Logs it, then tells the user in the place they are looking at.
    Returns True to suppress the exception.
    """
    exception = event.exception
    update = event.update
    user = None
    for source in (update.message, update.callback_query, update.inline_query, update.chosen_inline_result):
        if source is not None and source.from_user is not None:
            user = source.from_user
            break
    user_id = user.id if user else None

    error_handler.log(exception, f"update {update.update_id}", user_id)
    if is_transient_noise(exception):
        return True
    translator = translator or i18n.translator
    if translator is None:
        return True

    lang = translator.language_of(user_id)
    suffix = translator.suffix()
    chat_text = translator.t(lang, "error_occurred_try_again") + suffix
    inline_text = translator.t(lang, "inline_error_general")

    try:
        if update.inline_query is not None:
            await update.inline_query.answer(
                [article("bot_error", translator.plain(lang, "inline_error_general"), inline_text)],
                cache_time=5,
            )
        elif update.chosen_inline_result is not None or (
            update.callback_query is not None and update.callback_query.inline_message_id
        ):
            inline_message_id = (
                update.chosen_inline_result.inline_message_id
                if update.chosen_inline_result is not None
                else update.callback_query.inline_message_id
            )
            if inline_message_id:
                await bot.edit_message_text(inline_text, inline_message_id=inline_message_id)
            else:
                logger.error(f"Error in update {update.update_id} but no inline_message_id to report it on")
        elif update.callback_query is not None and update.callback_query.message is not None:
            message = update.callback_query.message
            try:
                await message.edit_text(chat_text)
            except TelegramAPIError as e:
                if is_not_found_error(e) or is_not_modified_error(e):
                    return True
                await message.answer(chat_text)
        elif update.message is not None:
            await update.message.reply(chat_text)
        else:
            logger.error(f"Cannot notify about error in update {update.update_id}: no chat context")
    except TelegramAPIError as e:
        logger.error(f"Failed to notify user {user_id} about an error: {e}")
    return True


# ─── /start and language ──────────────────────────────────────────────────────

@dp.message(CommandStart())
async def start_command(m: Message, translator: Translator):
    logger.info(f"/start from {m.from_user.id}")
    await m.answer(translator.t("en", "language_select"), reply_markup=language_keyboard())


@dp.callback_query(LanguageChoice.filter())
async def set_language(callback: CallbackQuery, callback_data: LanguageChoice, translator: Translator):
    code = callback_data.code
    if code not in LANGUAGES:
        await callback.answer()
        return
    await translator.set_language(callback.from_user.id, code)
    logger.info(f"User {callback.from_user.id} set language {code}")

    await callback.answer(translator.plain(code, "language_set", language=LANGUAGES[code]))
    try:
        await callback.message.edit_text(translator.t(code, "welcome") + translator.suffix())
    except TelegramAPIError as e:
        if not (is_not_modified_error(e) or is_not_found_error(e)):
            raise


# ─── /stats (admin) ───────────────────────────────────────────────────────────

@dp.message(Command("stats"))
async def cmd_stats(m: Message, lang: str, translator: Translator):
    if not config.is_admin(m.from_user.id):
        logger.info(f"/stats denied for {m.from_user.id}")
        await m.answer(translator.t(lang, "access_denied"))
        return

    pipeline = next(iter(pipelines.values()), None)
    file_ids = len(pipeline.file_cache) if pipeline else 0
    await m.answer(translator.t(
        lang,
        "stats",
        file_ids=file_ids,
        languages=len(translator.user_languages),
        inflight=len(inflight_registry),
    ))


# ─── Links ────────────────────────────────────────────────────────────────────

@dp.message(F.text & ~F.text.startswith("/"))
async def handle_text(m: Message, lang: str, translator: Translator):
    """Classify a text message and start the matching flow"""
    t = partial(translator.t, lang)
    request = classify(m.text)

    if request is None:
        await m.reply(t("invalid_url"))
        return

    logger.info(f"LINK [{request.provider}] {request.url[:60]} from {m.from_user.id}")

    if request.provider == "yt":
        await m.reply(t("choose_format"), reply_markup=format_keyboard(t, "yt", request.media_id))
        return

    if request.provider == "spotify":
        status = await m.reply(t("processing_spotify"))
        await m.bot.send_chat_action(m.chat.id, "upload_document")
        media = MediaRequest("spotify", request.media_id, track_url(request.media_id), fmt="mp3")
        await pipelines["spotify"].download_and_cache_chat(media, m.chat.id, status.message_id, lang)
        return

    details = await lookup_tiktok(request.url)
    if details is None:
        await m.reply(t("tiktok_metadata_failed") + translator.suffix())
        return
    if details.description:
        title = escape_html(f"\"{truncate(details.description, 50)}\"")
    else:
        title = t("fallback_tiktok_title")
    await m.reply(
        f"{t('choose_format_tiktok')} ({title})",
        reply_markup=format_keyboard(t, "tk", details.media_id),
    )


# ─── Format / quality choice ──────────────────────────────────────────────────

@dp.callback_query(FormatChoice.filter(F.provider == "yt"))
async def choose_youtube_format(callback: CallbackQuery, callback_data: FormatChoice, lang: str, translator: Translator):
    await callback.answer()
    t = partial(translator.t, lang)
    audio = callback_data.fmt == "mp3"
    prompt = t("choose_quality_audio") if audio else t("choose_quality_video")
    keyboard = quality_keyboard(
        t,
        partial(translator.quality_name, lang),
        callback_data.media_id,
        callback_data.fmt,
        AUDIO_QUALITIES if audio else VIDEO_QUALITIES,
    )
    try:
        await callback.message.edit_text(prompt, reply_markup=keyboard)
    except TelegramAPIError as e:
        if not is_not_modified_error(e):
            raise


@dp.callback_query(QualityChoice.filter())
async def choose_youtube_quality(callback: CallbackQuery, callback_data: QualityChoice, lang: str):
    await callback.answer()
    message = callback.message
    if message is None:
        logger.error(f"Quality callback from {callback.from_user.id} without a message")
        return

    request = MediaRequest(
        "yt",
        callback_data.media_id,
        canonical_url(callback_data.media_id),
        fmt=callback_data.fmt,
        quality=callback_data.quality,
    )
    await pipelines["yt"].download_and_cache_chat(request, message.chat.id, message.message_id, lang)


@dp.callback_query(FormatChoice.filter(F.provider == "tk"))
async def choose_tiktok_format(callback: CallbackQuery, callback_data: FormatChoice, lang: str, translator: Translator):
    message = callback.message
    if message is None:
        await callback.answer(translator.plain(lang, "error_unexpected_action"), show_alert=True)
        return
    await callback.answer()

    # The keyboard replies to the user's link; fall back to the canonical URL
    original = extract_url(message.reply_to_message.text) if message.reply_to_message else None
    url = original if original and is_tiktok_url(original) else fallback_url(callback_data.media_id)

    request = MediaRequest("tk", callback_data.media_id, url, fmt=callback_data.fmt)
    await pipelines["tk"].download_and_cache_chat(request, message.chat.id, message.message_id, lang)


@dp.callback_query(F.data == CANCEL)
async def cancel_action(callback: CallbackQuery, lang: str, translator: Translator):
    await callback.answer()
    try:
        await callback.message.edit_text(translator.t(lang, "action_cancelled"))
    except TelegramAPIError as e:
        if not (is_not_modified_error(e) or is_not_found_error(e)):
            raise


def register_download_handlers():
    """Handlers register on import; called from bot.py to make that explicit"""
    logger.info("Chat handlers registered")

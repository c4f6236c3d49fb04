"""
Inline mode: @bot <link | search query> in any chat.

Flow:
  inline_query          link → one article per format/quality, each with a
                        processing keyboard so Telegram hands back an
                        inline_message_id; free text → YouTube search hits
                        carrying a format/quality keyboard
  chosen_inline_result  placeholder posted → pipeline fills it with media
  InlineDownload        quality tapped under a search hit → same pipeline
"""
from functools import partial

from aiogram import F
from aiogram.types import CallbackQuery, ChosenInlineResult, InlineQuery, InlineQueryResultsButton

from core import transport as core_transport
from core.bot import dp
from core.config import config
from downloaders.classifier import classify, is_tiktok_url
from downloaders.models import MediaRequest
from downloaders.pipeline import pipelines
from downloaders.spotify import track_url
from downloaders.tiktok import fallback_url, lookup_tiktok
from downloaders.youtube import canonical_url, lookup_youtube, search_videos
from ui.callbacks import (
    INLINE_IGNORE,
    SEARCH_RESULT_RE,
    InlineDownload,
    download_result_id,
    parse_result_id,
    search_result_id,
)
from ui.formatting import article, format_duration, inline_download_keyboard, processing_keyboard, truncate
from ui.i18n import Translator
from utils.cache import AUDIO_QUALITIES, VIDEO_QUALITIES
from utils.errors import PlaceholderExpired
from utils.logger import logger


async def _answer(query: InlineQuery, results, cache_time: int, button=None) -> None:
    await core_transport.transport.answer_inline_query(query.id, results, cache_time=cache_time, button=button)


async def _answer_error(query: InlineQuery, result_id: str, text: str, plain: str) -> None:
    await _answer(query, [article(result_id, plain, text)], cache_time=5)


# ─── Inline query ─────────────────────────────────────────────────────────────

@dp.inline_query()
async def inline_query(query: InlineQuery, lang: str, translator: Translator):
    text = (query.query or "").strip()
    user_id = query.from_user.id
    t = partial(translator.t, lang)
    plain = partial(translator.plain, lang)
    quality_name = partial(translator.quality_name, lang)

    if not text:
        await _answer(
            query,
            [],
            cache_time=10,
            button=InlineQueryResultsButton(text=plain("inline_search_prompt"), start_parameter="inline_help"),
        )
        return

    request = classify(text)

    if request is not None and request.provider == "yt":
        details = await lookup_youtube(request.media_id)
        if details is None:
            logger.warning(f"[Inline {user_id}] No YT details for {request.media_id}")
            await _answer_error(query, f"error_yt:{request.media_id}", t("error_fetching_title"), plain("error_fetching_title"))
            return

        title = details.title or plain("fallback_video_title")
        results = []
        for fmt, qualities in (("mp3", AUDIO_QUALITIES), ("mp4", VIDEO_QUALITIES)):
            for quality in qualities:
                results.append(article(
                    download_result_id("yt", request.media_id, fmt, quality),
                    plain("inline_result_title", format=fmt.upper(), quality=quality_name(quality)),
                    t("inline_processing"),
                    description=plain("inline_description_direct", title=title, format=fmt.upper(), quality=quality_name(quality)),
                    thumbnail_url=details.thumbnail,
                    reply_markup=processing_keyboard(),
                ))
        await _answer(query, results, cache_time=60)
        logger.info(f"[Inline {user_id}] Sent {len(results)} YT results for {request.media_id}")
        return

    if request is not None and request.provider == "spotify":
        provider = pipelines["spotify"].provider
        details = await provider.fetch_details(MediaRequest("spotify", request.media_id, track_url(request.media_id)))
        if details is None:
            await _answer_error(query, f"error_spotify:{request.media_id}", t("spotify_metadata_failed"), plain("spotify_metadata_failed"))
            return

        title = details.title or plain("fallback_track_title")
        result = article(
            download_result_id("spotify", request.media_id),
            title,
            t("inline_processing"),
            description=plain("inline_description_spotify", title=title, artist=details.author or plain("unknown_artist")),
            thumbnail_url=details.thumbnail,
            reply_markup=processing_keyboard(),
        )
        await _answer(query, [result], cache_time=60)
        logger.info(f"[Inline {user_id}] Sent Spotify result for {request.media_id}")
        return

    if request is not None and request.provider == "tk":
        details = await lookup_tiktok(request.url)
        if details is None:
            await _answer_error(query, f"error_tk:{query.id}", t("tiktok_metadata_failed"), plain("tiktok_metadata_failed"))
            return

        title = truncate(details.description, 70) if details.description else plain("fallback_tiktok_title")
        results = [
            article(
                download_result_id("tk", details.media_id, fmt),
                plain("inline_result_title_tiktok", format=fmt.upper()),
                t("inline_processing"),
                description=plain("inline_description_tiktok", title=title, format=fmt.upper()),
                thumbnail_url=details.thumbnail,
                reply_markup=processing_keyboard(),
            )
            for fmt in ("mp3", "mp4")
        ]
        await _answer(query, results, cache_time=60)
        logger.info(f"[Inline {user_id}] Sent TikTok results for {details.media_id}")
        return

    # Free text: YouTube search
    hits = await search_videos(text, config.INLINE_SEARCH_LIMIT)
    if hits is None:
        await _answer_error(query, "search_error", t("inline_search_error"), plain("inline_search_error"))
        return
    if not hits:
        await _answer(
            query,
            [article("no_results", plain("inline_search_no_results", query=text), t("inline_search_no_results", query=text))],
            cache_time=10,
        )
        return

    results = []
    for hit in hits[:config.INLINE_SEARCH_LIMIT]:
        title = hit.title or plain("fallback_video_title")
        results.append(article(
            search_result_id(hit.video_id),
            title,
            t("inline_search_select_final", title=title),
            description=plain(
                "inline_search_result_description",
                author=hit.author or "Unknown",
                views=hit.views if hit.views is not None else "?",
                duration=format_duration(hit.duration),
            ),
            thumbnail_url=hit.thumbnail,
            reply_markup=inline_download_keyboard(quality_name, hit.video_id, AUDIO_QUALITIES, VIDEO_QUALITIES),
        ))
    await _answer(query, results, cache_time=30)
    logger.info(f"[Inline {user_id}] Sent {len(results)} search results for \"{text[:40]}\"")


# ─── Chosen result ────────────────────────────────────────────────────────────

@dp.chosen_inline_result()
async def chosen_inline_result(chosen: ChosenInlineResult, lang: str, translator: Translator):
    user_id = chosen.from_user.id
    inline_message_id = chosen.inline_message_id
    logger.info(f"[Chosen {user_id}] {chosen.result_id} → {inline_message_id}")

    if not inline_message_id:
        logger.error(f"[Chosen {user_id}] No inline_message_id for {chosen.result_id}, cannot deliver")
        return

    if SEARCH_RESULT_RE.match(chosen.result_id):
        # The placeholder shows the format/quality keyboard; nothing to do yet
        return

    choice = parse_result_id(chosen.result_id)
    if choice is None:
        logger.error(f"[Chosen {user_id}] Unexpected result id {chosen.result_id}")
        try:
            await core_transport.transport.edit_inline_text(
                inline_message_id,
                translator.t(lang, "error_unexpected_action"),
            )
        except PlaceholderExpired:
            pass
        return

    if choice.provider == "yt":
        url = canonical_url(choice.media_id)
    elif choice.provider == "spotify":
        url = track_url(choice.media_id)
    else:
        url = chosen.query if is_tiktok_url(chosen.query) else fallback_url(choice.media_id)

    request = MediaRequest(choice.provider, choice.media_id, url, fmt=choice.fmt, quality=choice.quality)
    await pipelines[choice.provider].download_and_cache_inline(request, inline_message_id, lang)


# ─── Search hit keyboard ──────────────────────────────────────────────────────

@dp.callback_query(InlineDownload.filter())
async def inline_download(callback: CallbackQuery, callback_data: InlineDownload, lang: str, translator: Translator):
    inline_message_id = callback.inline_message_id
    if not inline_message_id:
        await callback.answer(translator.plain(lang, "error_unexpected_action"), show_alert=True)
        return

    await callback.answer(translator.plain(lang, "requesting_download"))
    logger.info(
        f"[Inline download {callback.from_user.id}] {callback_data.media_id} "
        f"{callback_data.fmt} {callback_data.quality} → {inline_message_id}"
    )
    request = MediaRequest(
        "yt",
        callback_data.media_id,
        canonical_url(callback_data.media_id),
        fmt=callback_data.fmt,
        quality=callback_data.quality,
    )
    await pipelines["yt"].download_and_cache_inline(request, inline_message_id, lang)


@dp.callback_query(F.data == INLINE_IGNORE)
async def inline_ignore(callback: CallbackQuery):
    await callback.answer()


def register_inline_handlers():
    """Handlers register on import; called from bot.py to make that explicit"""
    logger.info("Inline handlers registered")

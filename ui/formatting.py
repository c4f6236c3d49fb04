"""
UI formatting: captions, keyboards and inline results.

Design principles:
  - All parse_mode = HTML, every external string escaped with escape_html()
  - Captions end with the bot attribution suffix (\n\n@botname)
  - Keyboards carry structured callback payloads (ui.callbacks)
"""
from __future__ import annotations

import html
import re
from typing import List, Optional

from aiogram.types import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    InlineQueryResultArticle,
    InputTextMessageContent,
    LinkPreviewOptions,
)

from ui.callbacks import CANCEL, INLINE_IGNORE, FormatChoice, InlineDownload, LanguageChoice, QualityChoice
from ui.texts import LANGUAGES

# ─── Telegram limits ──────────────────────────────────────────────────────────

TG_CAPTION_LIMIT = 1024   # Telegram hard cap for captions
TG_MESSAGE_LIMIT = 4096   # Telegram hard cap for messages

_NO_PREVIEW = LinkPreviewOptions(is_disabled=True)


def escape_html(text) -> str:
    """HTML-escape a plain-text string for Telegram HTML captions"""
    return html.escape(str(text), quote=True)


def safe_caption(text: str, limit: int = TG_CAPTION_LIMIT) -> str:
    """
    Final caption sanitizer.

    Removes control characters (except newline/tab) and trims to `limit`
    without leaving a dangling HTML tag or entity at the cut.
    """
    if not text:
        return ""
    text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", str(text))
    if len(text) > limit:
        text = text[:limit]
        text = re.sub(r"<[^>]*$", "", text)
        text = re.sub(r"&[^;\s]*$", "", text)
    return text


def truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 1].rstrip() + "…"


# ─── Media captions ───────────────────────────────────────────────────────────

def format_track_caption(title: str, artist: str, suffix: str) -> str:
    """Spotify: <title> - <artist>@bot"""
    return safe_caption(f"{escape_html(truncate(title, 300))} - {escape_html(truncate(artist, 200))}{suffix}")


def format_link_caption(title: str, url: str, suffix: str) -> str:
    """YouTube / TikTok: <title>\\n<url>@bot"""
    return safe_caption(f"{escape_html(truncate(title, 700))}\n{escape_html(url)}{suffix}")


def format_archive_caption(label: str, *parts: Optional[str]) -> str:
    """Plain caption of an archive-channel upload: 'Cache YT: id | mp3 | 320kbps'"""
    return f"Cache {label}: " + " | ".join(p for p in parts if p)


def format_duration(seconds: Optional[int]) -> str:
    if not seconds:
        return "?:??"
    seconds = int(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


# ─── Keyboards ────────────────────────────────────────────────────────────────

def _rows(buttons: List[InlineKeyboardButton], per_row: int = 2) -> List[List[InlineKeyboardButton]]:
    return [buttons[i:i + per_row] for i in range(0, len(buttons), per_row)]


def cancel_button(t) -> InlineKeyboardButton:
    return InlineKeyboardButton(text=t("button_cancel"), callback_data=CANCEL)


def format_keyboard(t, provider: str, media_id: str) -> InlineKeyboardMarkup:
    """[MP3] [MP4] / [Cancel]"""
    return InlineKeyboardMarkup(inline_keyboard=[
        [
            InlineKeyboardButton(
                text=t("button_mp3"),
                callback_data=FormatChoice(provider=provider, media_id=media_id, fmt="mp3").pack(),
            ),
            InlineKeyboardButton(
                text=t("button_mp4"),
                callback_data=FormatChoice(provider=provider, media_id=media_id, fmt="mp4").pack(),
            ),
        ],
        [cancel_button(t)],
    ])


def quality_keyboard(t, quality_name, media_id: str, fmt: str, qualities: List[str]) -> InlineKeyboardMarkup:
    """Two qualities per row, lowest first, then Cancel"""
    buttons = [
        InlineKeyboardButton(
            text=quality_name(q),
            callback_data=QualityChoice(media_id=media_id, fmt=fmt, quality=q).pack(),
        )
        for q in sorted(qualities, key=lambda q: int(re.sub(r"\D", "", q) or 0))
    ]
    return InlineKeyboardMarkup(inline_keyboard=_rows(buttons) + [[cancel_button(t)]])


def processing_keyboard() -> InlineKeyboardMarkup:
    """Inline placeholders need a keyboard for Telegram to report an inline_message_id"""
    return InlineKeyboardMarkup(inline_keyboard=[[
        InlineKeyboardButton(text="⏳", callback_data=INLINE_IGNORE),
    ]])


def inline_download_keyboard(quality_name, media_id: str, audio: List[str], video: List[str]) -> InlineKeyboardMarkup:
    """Format+quality grid shown under an inline search result"""
    buttons = [
        InlineKeyboardButton(
            text=f"MP3 {quality_name(q)}",
            callback_data=InlineDownload(media_id=media_id, fmt="mp3", quality=q).pack(),
        )
        for q in audio
    ] + [
        InlineKeyboardButton(
            text=f"MP4 {quality_name(q)}",
            callback_data=InlineDownload(media_id=media_id, fmt="mp4", quality=q).pack(),
        )
        for q in video
    ]
    return InlineKeyboardMarkup(inline_keyboard=_rows(buttons))


def language_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[[
        InlineKeyboardButton(text=label, callback_data=LanguageChoice(code=code).pack())
        for code, label in LANGUAGES.items()
    ]])


# ─── Inline query results ─────────────────────────────────────────────────────

def article(
    result_id: str,
    title: str,
    message_text: str,
    description: Optional[str] = None,
    thumbnail_url: Optional[str] = None,
    reply_markup: Optional[InlineKeyboardMarkup] = None,
) -> InlineQueryResultArticle:
    """Inline article result; message_text is HTML"""
    return InlineQueryResultArticle(
        id=result_id,
        title=truncate(title, 200),
        description=truncate(description, 300) if description else None,
        thumbnail_url=thumbnail_url or None,
        reply_markup=reply_markup,
        input_message_content=InputTextMessageContent(
            message_text=message_text[:TG_MESSAGE_LIMIT],
            link_preview_options=_NO_PREVIEW,
        ),
    )

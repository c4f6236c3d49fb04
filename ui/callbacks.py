"""
Callback payloads.

The payload is the whole state of a multi-step choice
(format → quality → download); nothing is kept server-side between taps.

    fmt:yt:dQw4w9WgXcQ:mp4          FormatChoice
    q:dQw4w9WgXcQ:mp4:720p          QualityChoice
    idl:dQw4w9WgXcQ:mp3:320kbps     InlineDownload (inline search results)
    lang:ru                         LanguageChoice
"""
import re
from dataclasses import dataclass
from typing import Optional

from aiogram.filters.callback_data import CallbackData

CANCEL = "cancel"
INLINE_IGNORE = "inline_ignore"


class FormatChoice(CallbackData, prefix="fmt"):
    provider: str     # yt | tk
    media_id: str
    fmt: str


class QualityChoice(CallbackData, prefix="q"):
    media_id: str
    fmt: str
    quality: str


class InlineDownload(CallbackData, prefix="idl"):
    media_id: str
    fmt: str
    quality: str


class LanguageChoice(CallbackData, prefix="lang"):
    code: str


# ─── Inline result ids ────────────────────────────────────────────────────────
#
#   dl_yt:<id>:<fmt>:<quality>   dl_spotify:<id>   dl_tk:<id>:<fmt>
#   srch_res_yt:<id>             (search hit; the keyboard does the rest)

_RESULT_ID_RE = {
    "yt": re.compile(r"^dl_yt:([A-Za-z0-9_-]{11}):(mp3|mp4):([A-Za-z0-9]+(?:kbps|p))$"),
    "spotify": re.compile(r"^dl_spotify:([A-Za-z0-9]+)$"),
    "tk": re.compile(r"^dl_tk:([A-Za-z0-9_]+):(mp3|mp4)$"),
}
SEARCH_RESULT_RE = re.compile(r"^srch_res_yt:([A-Za-z0-9_-]{11})$")


@dataclass(frozen=True)
class ResultChoice:
    provider: str
    media_id: str
    fmt: str = "mp3"
    quality: Optional[str] = None


def download_result_id(provider: str, media_id: str, fmt: Optional[str] = None, quality: Optional[str] = None) -> str:
    if provider == "spotify":
        return f"dl_spotify:{media_id}"
    if provider == "tk":
        return f"dl_tk:{media_id}:{fmt}"
    return f"dl_yt:{media_id}:{fmt}:{quality}"


def search_result_id(video_id: str) -> str:
    return f"srch_res_yt:{video_id}"


def parse_result_id(result_id: str) -> Optional[ResultChoice]:
    """Decode a dl_* inline result id; None for search hits and unknown ids"""
    for provider, pattern in _RESULT_ID_RE.items():
        match = pattern.match(result_id or "")
        if not match:
            continue
        if provider == "yt":
            return ResultChoice("yt", match.group(1), match.group(2), match.group(3))
        if provider == "tk":
            return ResultChoice("tk", match.group(1), match.group(2))
        return ResultChoice("spotify", match.group(1))
    return None

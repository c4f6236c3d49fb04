"""
YouTube provider.

Metadata and inline search go through yt-dlp (metadata only, nothing is
downloaded locally); the bytes come from the YouTube download service.

Cache:
  yt:<video id>:<mp3|mp4>:<quality> → delivery handle
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from yt_dlp import YoutubeDL

from core.config import config
from downloaders.base import MediaProvider, TextFn
from downloaders.models import MediaDetails, MediaRequest
from downloaders.service import DownloadResponse
from utils.helpers import first_non_empty, sanitize_filename
from utils.logger import logger


def canonical_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


# ─── yt-dlp option builders ───────────────────────────────────────────────────

def base_opts() -> dict:
    return {
        "quiet": True,
        "no_warnings": True,
        "skip_download": True,
        "proxy": config.pick_proxy(),
        "http_headers": {"User-Agent": config.pick_user_agent()},
        "socket_timeout": 30,
        "retries": 2,
    }


def _search_opts() -> dict:
    opts = base_opts()
    opts["extract_flat"] = "in_playlist"
    return opts


def _extract(url: str, opts: dict) -> Optional[Dict[str, Any]]:
    with YoutubeDL(opts) as ydl:
        return ydl.extract_info(url, download=False)


async def extract_info(url: str, opts: dict) -> Optional[Dict[str, Any]]:
    """
    yt-dlp metadata lookup in a worker thread.

    Returns None on any failure; yt-dlp raises a wide range of
    extractor errors and none of them is fatal to the bot.
    """
    try:
        return await asyncio.wait_for(asyncio.to_thread(_extract, url, opts), timeout=config.METADATA_TIMEOUT)
    except asyncio.TimeoutError:
        logger.warning(f"yt-dlp metadata timed out after {config.METADATA_TIMEOUT}s for {url[:80]}")
        return None
    except Exception as e:
        logger.debug(f"yt-dlp metadata failed: {type(e).__name__}: {str(e)[:100]}")
        return None


def best_thumbnail(info: Dict[str, Any]) -> Optional[str]:
    if info.get("thumbnail"):
        return info["thumbnail"]
    thumbnails = info.get("thumbnails") or []
    return thumbnails[-1].get("url") if thumbnails else None


async def lookup_youtube(video_id: str) -> Optional[MediaDetails]:
    """Video metadata by id (before a request exists, e.g. for inline results)"""
    info = await extract_info(canonical_url(video_id), base_opts())
    if not info or not info.get("id"):
        return None
    return MediaDetails(
        media_id=info["id"],
        title=info.get("title") or "",
        author=first_non_empty(info.get("channel"), info.get("uploader")),
        duration=int(info["duration"]) if info.get("duration") else None,
        thumbnail=best_thumbnail(info),
        description=(info.get("description") or "")[:500],
        url=canonical_url(info["id"]),
    )


# ─── Inline search ────────────────────────────────────────────────────────────

@dataclass
class SearchResult:
    video_id: str
    title: str
    author: str
    duration: Optional[int]
    views: Optional[int]
    thumbnail: Optional[str]


async def search_videos(query: str, limit: int) -> Optional[List[SearchResult]]:
    """YouTube search for inline mode; None when the search itself failed"""
    info = await extract_info(f"ytsearch{limit}:{query}", _search_opts())
    if not info:
        return None

    results = []
    for entry in info.get("entries") or []:
        if not entry or not entry.get("id"):
            continue
        results.append(SearchResult(
            video_id=entry["id"],
            title=entry.get("title") or entry["id"],
            author=first_non_empty(entry.get("channel"), entry.get("uploader")),
            duration=int(entry["duration"]) if entry.get("duration") else None,
            views=entry.get("view_count"),
            thumbnail=best_thumbnail(entry),
        ))
    logger.info(f"YouTube search '{query[:40]}' → {len(results)} results")
    return results


# ─── Provider ─────────────────────────────────────────────────────────────────

class YouTubeProvider(MediaProvider):
    tag = "yt"
    label = "YT"
    metadata_error_key = "error_fetching_title"
    download_error_key = "api_error_fetch"
    fallback_title_key = "fallback_video_title"

    def service_params(self, request: MediaRequest) -> Dict[str, str]:
        params = super().service_params(request)
        params["url"] = canonical_url(request.media_id)
        return params

    async def fetch_details(self, request: MediaRequest) -> Optional[MediaDetails]:
        details = await lookup_youtube(request.media_id)
        self._log_details(request, details)
        return details

    def upload_filename(self, request: MediaRequest, details: MediaDetails, response: DownloadResponse) -> str:
        suggested = response.filename()
        if not suggested:
            base = (details.title or request.media_id)[:100]
            suggested = f"{base}_{request.fmt}_{request.quality}.{request.fmt}"
        return sanitize_filename(suggested)

    def inline_processing_text(self, request: MediaRequest, details: MediaDetails, t: TextFn, quality_name) -> str:
        return t(
            "inline_processing_final",
            title=self.display_title(details, t),
            format=request.fmt.upper(),
            quality=quality_name(request.quality),
        )

"""
TikTok provider.

The video id is only known after metadata lookup (short links redirect),
so TikTok requests are built from the metadata:

  tk:<video id>:<mp3|mp4> → delivery handle
"""
from typing import Optional

from downloaders.base import MediaProvider, TextFn
from downloaders.models import MediaDetails, MediaRequest
from downloaders.service import DownloadResponse
from downloaders.youtube import base_opts, best_thumbnail, extract_info
from utils.helpers import first_non_empty, sanitize_filename


def fallback_url(video_id: str) -> str:
    return f"https://www.tiktok.com/video/{video_id}"


async def lookup_tiktok(url: str) -> Optional[MediaDetails]:
    """TikTok metadata by URL (before a request exists)"""
    info = await extract_info(url, base_opts())
    if not info or not info.get("id"):
        return None
    description = first_non_empty(info.get("description"), info.get("title"))
    return MediaDetails(
        media_id=str(info["id"]),
        title=description[:150],
        author=first_non_empty(info.get("uploader"), info.get("creator"), info.get("channel")),
        duration=int(info["duration"]) if info.get("duration") else None,
        thumbnail=best_thumbnail(info),
        description=description,
        url=info.get("webpage_url") or url,
        width=info.get("width"),
        height=info.get("height"),
    )


class TikTokProvider(MediaProvider):
    tag = "tk"
    label = "TikTok"
    metadata_error_key = "tiktok_metadata_failed"
    download_error_key = "tiktok_download_failed"
    fallback_title_key = "fallback_tiktok_title"

    async def fetch_details(self, request: MediaRequest) -> Optional[MediaDetails]:
        details = await lookup_tiktok(request.url or fallback_url(request.media_id))
        self._log_details(request, details)
        return details

    def public_url(self, request: MediaRequest, details: MediaDetails) -> str:
        return fallback_url(details.media_id or request.media_id)

    def upload_filename(self, request: MediaRequest, details: MediaDetails, response: DownloadResponse) -> str:
        base = (details.description or f"tiktok_{request.media_id}")[:100]
        return sanitize_filename(f"{sanitize_filename(base)}.{request.fmt}")

    def inline_processing_text(self, request: MediaRequest, details: MediaDetails, t: TextFn, quality_name) -> str:
        return t(
            "inline_processing_tiktok",
            title=self.display_title(details, t),
            format=request.fmt.upper(),
        )

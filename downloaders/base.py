"""
Provider capabilities used by the pipeline.

A provider knows how to describe a media item (metadata), how to ask its
download service for the bytes, and how the result should be named and
captioned. Everything else (cache, archive upload, delivery) is shared.
"""
import asyncio
from typing import Any, Callable, Dict, Optional

import aiohttp

from downloaders.models import MediaDetails, MediaRequest
from downloaders.service import DownloadResponse, DownloadServiceClient
from ui.formatting import format_archive_caption, format_link_caption
from utils.errors import ContentTooLarge, ContentTooLong, ProviderDownloadFailed
from utils.logger import logger

# Bound translator: t(key, **data) -> str
TextFn = Callable[..., str]


class MediaProvider:
    """Base capability set, one subclass per provider"""

    tag = ""                                 # cache key prefix: yt | spotify | tk
    label = ""                               # archive caption label
    metadata_error_key = "general_error"
    download_error_key = "api_error_fetch"
    fallback_title_key = "fallback_video_title"

    def __init__(self, client: DownloadServiceClient, service_url: str):
        self.client = client
        self.service_url = service_url

    # ─── Metadata ─────────────────────────────────────────────────────────────

    async def fetch_details(self, request: MediaRequest) -> Optional[MediaDetails]:
        """Metadata for `request`, or None when the provider can't describe it"""
        raise NotImplementedError

    # ─── Download ─────────────────────────────────────────────────────────────

    def service_params(self, request: MediaRequest) -> Dict[str, str]:
        params = {"url": request.url, "format": request.fmt}
        if request.quality:
            params["quality"] = request.quality
        return params

    async def fetch_stream(self, request: MediaRequest) -> DownloadResponse:
        """
        Ask the download service for the file.

        Returns an unread, successful response; the caller releases it.

        Raises:
            ContentTooLong: service refused the media for its duration
            ContentTooLarge: service refused the media for its size
            ProviderDownloadFailed: any other service or connection failure
        """
        try:
            response = await self.client.open_stream(self.service_url, self.service_params(request))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderDownloadFailed(
                f"{self.label} download service unreachable: {type(e).__name__}: {e}",
                text_key=self.download_error_key,
            ) from e

        if response.ok:
            return response

        try:
            body = await response.error_text()
        finally:
            await response.release()

        detail = f"{self.label} download service failed. Status: {response.status}, Body: {body[:100]}"
        lowered = body.lower()
        if "too long" in lowered:
            raise ContentTooLong(detail)
        if response.status == 413 or "too large" in lowered:
            raise ContentTooLarge(detail)
        raise ProviderDownloadFailed(detail, text_key=self.download_error_key, status=response.status)

    # ─── Naming ───────────────────────────────────────────────────────────────

    def upload_filename(self, request: MediaRequest, details: MediaDetails, response: DownloadResponse) -> str:
        raise NotImplementedError

    def archive_caption(self, request: MediaRequest) -> str:
        return format_archive_caption(self.label, request.media_id, request.fmt, request.quality)

    def display_title(self, details: MediaDetails, t: TextFn) -> str:
        return details.title or t(self.fallback_title_key)

    def public_url(self, request: MediaRequest, details: MediaDetails) -> str:
        return details.url or request.url

    def build_caption(self, request: MediaRequest, details: MediaDetails, t: TextFn, suffix: str) -> str:
        """User-facing HTML caption: title, link and the bot attribution"""
        return format_link_caption(self.display_title(details, t), self.public_url(request, details), suffix)

    # ─── Telegram attributes ──────────────────────────────────────────────────

    def build_upload_attributes(self, request: MediaRequest, details: MediaDetails, t: TextFn) -> Dict[str, Any]:
        """Attributes of the archive upload (thumbnail included)"""
        attributes = self.build_delivery_attributes(request, details, t)
        if request.media_kind == "video" and details.thumbnail:
            attributes["thumbnail"] = details.thumbnail
        return attributes

    def build_delivery_attributes(self, request: MediaRequest, details: MediaDetails, t: TextFn) -> Dict[str, Any]:
        """Attributes sent along with a cached handle"""
        if request.media_kind == "audio":
            return {
                "duration": details.duration,
                "performer": details.author or None,
                "title": self.display_title(details, t),
            }
        return {
            "duration": details.duration,
            "width": details.width,
            "height": details.height,
            "supports_streaming": True,
        }

    # ─── Progress texts ───────────────────────────────────────────────────────

    def inline_processing_text(self, request: MediaRequest, details: MediaDetails, t: TextFn, quality_name: Callable[[str], str]) -> str:
        return t("inline_processing")

    async def close(self) -> None:
        """Release provider-owned sessions (shutdown)"""

    def _log_details(self, request: MediaRequest, details: Optional[MediaDetails]) -> None:
        if details is None:
            logger.warning(f"[{self.label}] No metadata for {request.media_id} ({request.url})")
        else:
            logger.info(f"[{self.label}] Metadata for {request.media_id}: \"{details.title[:60]}\" by {details.author or '?'}")

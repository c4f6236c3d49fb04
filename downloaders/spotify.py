"""
Spotify provider.

Track metadata comes from the Spotify Web API (client-credentials token,
refreshed shortly before it expires). Without credentials the public oEmbed
endpoint is used instead; it has the title and cover but no artist.

Cache:
  spotify:<track id> → delivery handle (always mp3)
"""
import asyncio
import time
from typing import Any, Dict, Optional

import aiohttp

from core.config import config
from downloaders.base import MediaProvider, TextFn
from downloaders.models import MediaDetails, MediaRequest
from downloaders.service import DownloadResponse, DownloadServiceClient
from ui.formatting import format_track_caption
from utils.helpers import sanitize_filename
from utils.logger import logger

TOKEN_URL = "https://accounts.spotify.com/api/token"
TRACK_URL = "https://api.spotify.com/v1/tracks/{track_id}"
OEMBED_URL = "https://open.spotify.com/oembed"


def track_url(track_id: str) -> str:
    return f"https://open.spotify.com/track/{track_id}"


class SpotifyProvider(MediaProvider):
    tag = "spotify"
    label = "Spotify"
    metadata_error_key = "spotify_metadata_failed"
    download_error_key = "spotify_download_failed"
    fallback_title_key = "fallback_track_title"

    def __init__(
        self,
        client: DownloadServiceClient,
        service_url: str,
        client_id: str = "",
        client_secret: str = "",
    ):
        super().__init__(client, service_url)
        self.client_id = client_id
        self.client_secret = client_secret
        self._session: Optional[aiohttp.ClientSession] = None
        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=config.METADATA_TIMEOUT),
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    # ─── Web API ──────────────────────────────────────────────────────────────

    async def _access_token(self) -> Optional[str]:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        session = self._get_session()
        async with session.post(
            TOKEN_URL,
            data={"grant_type": "client_credentials"},
            auth=aiohttp.BasicAuth(self.client_id, self.client_secret),
        ) as resp:
            if resp.status != 200:
                logger.error(f"Spotify token request failed with status {resp.status}")
                return None
            payload = await resp.json()

        self._token = payload.get("access_token")
        # Refresh a minute early
        self._token_expires_at = time.monotonic() + max(int(payload.get("expires_in", 3600)) - 60, 0)
        return self._token

    async def _track_from_api(self, track_id: str) -> Optional[Dict[str, Any]]:
        token = await self._access_token()
        if not token:
            return None
        session = self._get_session()
        async with session.get(
            TRACK_URL.format(track_id=track_id),
            headers={"Authorization": f"Bearer {token}"},
        ) as resp:
            if resp.status == 401:
                # Revoked early; next lookup fetches a new one
                self._token = None
            if resp.status != 200:
                logger.warning(f"Spotify track {track_id}: API status {resp.status}")
                return None
            return await resp.json()

    async def _track_from_oembed(self, track_id: str) -> Optional[Dict[str, Any]]:
        session = self._get_session()
        async with session.get(OEMBED_URL, params={"url": track_url(track_id)}) as resp:
            if resp.status != 200:
                logger.warning(f"Spotify track {track_id}: oEmbed status {resp.status}")
                return None
            return await resp.json(content_type=None)

    async def fetch_details(self, request: MediaRequest) -> Optional[MediaDetails]:
        details = None
        try:
            if self.client_id and self.client_secret:
                track = await self._track_from_api(request.media_id)
                if track and track.get("name"):
                    artists = [a.get("name") for a in track.get("artists") or [] if a.get("name")]
                    images = (track.get("album") or {}).get("images") or []
                    details = MediaDetails(
                        media_id=request.media_id,
                        title=track["name"],
                        author=", ".join(artists),
                        duration=int(track["duration_ms"] / 1000) if track.get("duration_ms") else None,
                        thumbnail=images[0].get("url") if images else None,
                        url=track_url(request.media_id),
                    )
            else:
                track = await self._track_from_oembed(request.media_id)
                if track and track.get("title"):
                    details = MediaDetails(
                        media_id=request.media_id,
                        title=track["title"],
                        thumbnail=track.get("thumbnail_url"),
                        url=track_url(request.media_id),
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Spotify metadata failed for {request.media_id}: {type(e).__name__}: {e}")
            details = None

        self._log_details(request, details)
        return details

    # ─── Naming ───────────────────────────────────────────────────────────────

    def archive_caption(self, request: MediaRequest) -> str:
        return f"Cache {self.label}: {request.media_id}"

    def _artist(self, details: MediaDetails, t: TextFn) -> str:
        return details.author or t("unknown_artist")

    def upload_filename(self, request: MediaRequest, details: MediaDetails, response: DownloadResponse) -> str:
        title = sanitize_filename(details.title or request.media_id)[:100]
        artist = sanitize_filename(details.author or "Unknown Artist")[:50]
        return f"{artist} - {title}.mp3"

    def build_caption(self, request: MediaRequest, details: MediaDetails, t: TextFn, suffix: str) -> str:
        return format_track_caption(self.display_title(details, t), self._artist(details, t), suffix)

    def build_delivery_attributes(self, request: MediaRequest, details: MediaDetails, t: TextFn) -> Dict[str, Any]:
        return {
            "duration": details.duration,
            "performer": self._artist(details, t),
            "title": self.display_title(details, t),
        }

    def inline_processing_text(self, request: MediaRequest, details: MediaDetails, t: TextFn, quality_name) -> str:
        return t("inline_processing_spotify", title=self.display_title(details, t))

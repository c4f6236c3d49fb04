"""
HTTP client for the external download services.

Each provider has its own service base URL. A request is a plain GET

    <base>?url=<media url>&format=mp3|mp4[&quality=320kbps]

answered with the transcoded file as a streamed body (or an error status
with a short text body). The response is handed out unread so the archive
upload can stream it; whoever obtains a DownloadResponse must release() it.
"""
import re
from typing import AsyncIterator, Dict, Optional
from urllib.parse import unquote

import aiohttp

from core.config import config
from utils.logger import logger

_FILENAME_UTF8_RE = re.compile(r"filename\*=UTF-8''([^;]+)", re.IGNORECASE)
_FILENAME_RE = re.compile(r'filename="?([^";]+)"?', re.IGNORECASE)


def parse_content_disposition(header: Optional[str]) -> Optional[str]:
    """Suggested filename from a Content-Disposition header (RFC 5987 form first)"""
    if not header:
        return None
    match = _FILENAME_UTF8_RE.search(header)
    if match:
        try:
            return unquote(match.group(1), errors="strict")
        except UnicodeDecodeError:
            pass
    match = _FILENAME_RE.search(header)
    if match:
        return match.group(1).strip()
    return None


class DownloadResponse:
    """Streamed answer of a download service"""

    def __init__(self, response: aiohttp.ClientResponse):
        self._response = response
        self.status = response.status
        self.headers = response.headers
        self._released = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def filename(self) -> Optional[str]:
        return parse_content_disposition(self.headers.get("Content-Disposition"))

    async def error_text(self, limit: int = 200) -> str:
        """First bytes of an error body, for logs and limit detection"""
        try:
            body = await self._response.content.read(limit)
            return body.decode("utf-8", errors="replace")
        except (aiohttp.ClientError, ValueError) as e:
            return f"<unreadable body: {e}>"

    async def iter_chunks(self, chunk_size: int = 64 * 1024) -> AsyncIterator[bytes]:
        async for chunk in self._response.content.iter_chunked(chunk_size):
            yield chunk

    async def release(self) -> None:
        """Close the body; safe to call more than once"""
        if self._released:
            return
        self._released = True
        self._response.close()


class DownloadServiceClient:
    """Shared aiohttp session for all download services"""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout or config.DOWNLOAD_TIMEOUT
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=None, sock_connect=30, sock_read=self.timeout),
                headers={"User-Agent": config.pick_user_agent()},
            )
        return self._session

    async def open_stream(self, base_url: str, params: Dict[str, str]) -> DownloadResponse:
        """
        Start a download and return the unread response.

        Raises aiohttp.ClientError on connection failures; HTTP error
        statuses are returned for the caller to classify.
        """
        session = self._get_session()
        logger.info(f"Download service request: {base_url} {params}")
        response = await session.get(base_url, params=params)
        logger.info(f"Download service answered {response.status} for {params.get('url', '')[:80]}")
        return DownloadResponse(response)

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()


# Global client instance
download_client = DownloadServiceClient()

"""
Request classifier: which provider a piece of user text belongs to.

Precedence is YouTube, then Spotify track, then TikTok. The first match wins
even when the text would match a later provider as well.
"""
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, urlparse

_YOUTUBE_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")
_YOUTUBE_HOSTS = (
    "youtube.com",
    "www.youtube.com",
    "m.youtube.com",
    "music.youtube.com",
    "youtube-nocookie.com",
    "www.youtube-nocookie.com",
)
_YOUTUBE_PATH_PREFIXES = ("/shorts/", "/embed/", "/live/", "/v/")
_URL_IN_TEXT_RE = re.compile(r"https?://[^\s<>\"']+", re.IGNORECASE)


@dataclass(frozen=True)
class ClassifiedRequest:
    provider: str              # yt | spotify | tk
    url: str
    media_id: Optional[str]    # None for TikTok until metadata is known


def _parse(url: str):
    url = (url or "").strip()
    if not url:
        return None
    if "://" not in url:
        url = "https://" + url
    try:
        parsed = urlparse(url)
        # Accessing .port validates it
        parsed.port
    except ValueError:
        return None
    if not parsed.hostname:
        return None
    return parsed


def _valid_youtube_id(candidate: Optional[str]) -> Optional[str]:
    if candidate and _YOUTUBE_ID_RE.match(candidate):
        return candidate
    return None


def get_youtube_video_id(url: str) -> Optional[str]:
    """11-character video id of a YouTube watch/short/embed/live/youtu.be link"""
    parsed = _parse(url)
    if parsed is None:
        return None
    host = parsed.hostname.lower()

    if host in ("youtu.be", "www.youtu.be"):
        return _valid_youtube_id(parsed.path.lstrip("/").split("/")[0])

    if host not in _YOUTUBE_HOSTS:
        return None

    if parsed.path in ("/watch", "/watch/"):
        return _valid_youtube_id(parse_qs(parsed.query).get("v", [None])[0])

    for prefix in _YOUTUBE_PATH_PREFIXES:
        if parsed.path.startswith(prefix):
            return _valid_youtube_id(parsed.path[len(prefix):].split("/")[0])
    return None


def get_spotify_track_id(url: str) -> Optional[str]:
    """Track id of an open.spotify.com/track/<id> link"""
    parsed = _parse(url)
    if parsed is None or parsed.hostname.lower() != "open.spotify.com":
        return None
    parts = parsed.path.split("/")
    # Localized links look like /intl-de/track/<id>
    if len(parts) > 1 and parts[1].startswith("intl-"):
        parts = parts[:1] + parts[2:]
    if len(parts) >= 3 and parts[1] == "track" and parts[2]:
        return parts[2]
    return None


def is_tiktok_url(url: str) -> bool:
    parsed = _parse(url)
    if parsed is None:
        return False
    host = parsed.hostname.lower()
    return host == "tiktok.com" or host.endswith(".tiktok.com")


def extract_url(text: str) -> Optional[str]:
    """First http(s) link in a message, or the whole text when it has none"""
    if not text:
        return None
    match = _URL_IN_TEXT_RE.search(text)
    return match.group(0) if match else text.strip()


def classify(text: str) -> Optional[ClassifiedRequest]:
    """Map user text to a provider request, or None when nothing matches"""
    url = extract_url(text)
    if not url:
        return None

    video_id = get_youtube_video_id(url)
    if video_id:
        return ClassifiedRequest("yt", url, video_id)

    track_id = get_spotify_track_id(url)
    if track_id:
        return ClassifiedRequest("spotify", url, track_id)

    if is_tiktok_url(url):
        return ClassifiedRequest("tk", url, None)

    return None

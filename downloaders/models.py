"""Request and metadata types shared by the providers and the pipeline"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from utils.cache import make_cache_key


@dataclass(frozen=True)
class MediaRequest:
    """One logical request: provider + media id + format (+ quality)"""

    provider: str            # yt | spotify | tk
    media_id: str
    url: str
    fmt: str = "mp3"         # mp3 | mp4
    quality: Optional[str] = None

    @property
    def cache_key(self) -> str:
        return make_cache_key(self.provider, self.media_id, self.fmt, self.quality)

    @property
    def media_kind(self) -> str:
        return "video" if self.fmt == "mp4" else "audio"

    @property
    def format_tag(self) -> str:
        """yt_mp3, yt_mp4, spotify, tk_mp3, tk_mp4"""
        if self.provider == "spotify":
            return "spotify"
        return f"{self.provider}_{self.fmt}"


@dataclass
class MediaDetails:
    """Human metadata used for captions and filenames (never cached)"""

    media_id: str
    title: str = ""
    author: str = ""
    duration: Optional[int] = None
    thumbnail: Optional[str] = None
    description: str = ""
    url: str = ""
    width: Optional[int] = None
    height: Optional[int] = None


class DeliveryOutcome(Enum):
    DELIVERED = "delivered"
    STALE = "stale"            # platform rejected the handle
    FAILED = "failed"          # anything else, already reported to the user

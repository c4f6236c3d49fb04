"""
File-id cache: instant re-delivery of media we already uploaded.

Strategy:
  key = provider tag + media id (+ format, + quality for YouTube)
  value = serialized delivery handle (see utils.file_handle)
  If a usable handle is cached → resend it, no download, no upload.
  Entries never expire; they are dropped only when the platform rejects
  them or they no longer decode.

Usage:
    handle = await file_cache.get(request.cache_key)
    if handle:
        ...resend...
        return

    # ... download + archive upload ...

    await file_cache.set(request.cache_key, handle)
"""
from typing import Callable, Optional

from utils import file_handle
from utils.file_handle import DeliveryHandle
from utils.json_store import JsonStore
from utils.logger import logger

PROVIDERS = ("yt", "spotify", "tk")
FORMATS = ("mp3", "mp4")

AUDIO_QUALITIES = ["96kbps", "128kbps", "256kbps", "320kbps"]
VIDEO_QUALITIES = ["360p", "480p", "720p", "1080p"]


def make_cache_key(provider: str, media_id: str, fmt: Optional[str] = None, quality: Optional[str] = None) -> str:
    """
    Deterministic cache key for one transcoded variant.

    yt:<id>:<fmt>:<quality>   spotify:<id>   tk:<id>:<fmt>
    """
    if provider not in PROVIDERS:
        raise ValueError(f"Unknown provider tag: {provider}")
    if not media_id:
        raise ValueError("media_id is required")
    if provider == "spotify":
        return f"spotify:{media_id}"
    if fmt not in FORMATS:
        raise ValueError(f"{provider} key needs a format, got {fmt!r}")
    if provider == "tk":
        return f"tk:{media_id}:{fmt}"
    if not quality:
        raise ValueError("yt key needs a quality")
    return f"yt:{media_id}:{fmt}:{quality}"


class FileIdCache:
    """Delivery-handle cache on top of a JsonStore"""

    def __init__(self, store: JsonStore, accepts: Optional[Callable[[DeliveryHandle], bool]] = None):
        self.store = store
        # Transport filter: a handle it cannot redeem is as good as missing
        self.accepts = accepts or (lambda handle: True)

    def __len__(self) -> int:
        return len(self.store)

    def __contains__(self, key: str) -> bool:
        return key in self.store.get_cache()

    def raw(self, key: str) -> Optional[str]:
        return self.store.get_cache().get(key)

    async def get(self, key: str) -> Optional[DeliveryHandle]:
        """
        Look up a usable handle.

        A stored value that does not decode, or decodes to a handle the
        active transport cannot use, is deleted and reported as a miss.
        """
        value = self.store.get_cache().get(key)
        if value is None:
            return None

        handle = file_handle.decode(value)
        if handle is not None and self.accepts(handle):
            logger.debug(f"Cache HIT: {key}")
            return handle

        logger.warning(f"Cache entry {key} is unusable ({str(value)[:40]!r}), dropping it")
        await self.invalidate(key)
        return None

    async def set(self, key: str, handle: DeliveryHandle) -> bool:
        """
        Store a handle and persist the cache file.

        The in-memory entry is kept even if writing the file fails.
        """
        self.store.get_cache()[key] = file_handle.encode(handle)
        ok = await self.store.save()
        if ok:
            logger.debug(f"Cache SET: {key}")
        else:
            logger.warning(f"Cache SET: {key} kept in memory only, file write failed")
        return ok

    async def invalidate(self, key: str) -> bool:
        """Remove an entry; False if there was nothing to remove"""
        if self.store.get_cache().pop(key, None) is None:
            return False
        await self.store.save()
        logger.info(f"Cache DEL: {key}")
        return True

"""
Download pipeline: one class, one instance per provider.

Flow (both entry points):
  1. Metadata        provider.fetch_details; missing → MetadataUnavailable
  2. Cache check     file_cache.get(key); unusable entries drop out as a miss
  3. Hit             resend the handle; STALE outcome deletes the entry
  4. Miss            single-flight per key: download service → archive
                     channel upload → file_cache.set
  5. Deliver         resend the fresh handle to the target

Targets:
  download_and_cache_chat    status message in a chat (edited, then deleted)
  download_and_cache_inline  inline placeholder (edited in place)
"""
import asyncio
from functools import partial
from typing import Dict, Optional

from core.config import config
from downloaders.base import MediaProvider, TextFn
from downloaders.delivery import ChatDelivery, InlineDelivery
from downloaders.inline_media import InlineMediaEditor
from downloaders.models import DeliveryOutcome, MediaDetails, MediaRequest
from utils.archive import ArchiveUploader
from utils.cache import FileIdCache
from utils.error_handler import error_handler
from utils.errors import MediaError, MetadataUnavailable, ProviderDownloadFailed, UploadFailed
from utils.file_handle import DeliveryHandle
from utils.log_channel import AdminNotifier
from utils.logger import logger
from workers.inflight import InflightRegistry
from workers.task_queue import download_semaphore, with_timeout


class MediaPipeline:
    def __init__(
        self,
        provider: MediaProvider,
        transport,
        file_cache: FileIdCache,
        archive: ArchiveUploader,
        translator,
        notifier: AdminNotifier,
        inflight: InflightRegistry,
        download_timeout: Optional[float] = None,
    ):
        self.provider = provider
        self.transport = transport
        self.file_cache = file_cache
        self.archive = archive
        self.translator = translator
        self.notifier = notifier
        self.inflight = inflight
        self.download_timeout = download_timeout or config.DOWNLOAD_TIMEOUT
        self.editor = InlineMediaEditor(transport, translator)

    # ─── Entry points ─────────────────────────────────────────────────────────

    async def download_and_cache_inline(
        self,
        request: MediaRequest,
        inline_message_id: str,
        lang: str,
        details: Optional[MediaDetails] = None,
    ) -> DeliveryOutcome:
        """Fill an inline placeholder with the requested media"""
        target = InlineDelivery(self.transport, self.translator, self.editor, inline_message_id)
        return await self._run(request, target, lang, details, verbose=False)

    async def download_and_cache_chat(
        self,
        request: MediaRequest,
        chat_id: int,
        message_id: Optional[int],
        lang: str,
        details: Optional[MediaDetails] = None,
    ) -> DeliveryOutcome:
        """Send the requested media to a chat; `message_id` is the status message to edit"""
        target = ChatDelivery(self.transport, self.translator, chat_id, message_id)
        return await self._run(request, target, lang, details, verbose=True)

    # ─── Shared sequence ──────────────────────────────────────────────────────

    async def _run(self, request: MediaRequest, target, lang: str, details: Optional[MediaDetails], verbose: bool) -> DeliveryOutcome:
        t = partial(self.translator.t, lang)
        key = request.cache_key
        logger.info(f"[{self.provider.label}] {key} requested for {target.label}")

        try:
            if details is None:
                details = await self.provider.fetch_details(request)
            if details is None:
                raise MetadataUnavailable(
                    f"No metadata for {key}",
                    text_key=self.provider.metadata_error_key,
                )

            handle = await self.file_cache.get(key)
            if handle is not None:
                logger.info(f"Cache hit for {key}, resending")
                outcome = await target.deliver(request, details, handle, lang, self.provider)
                if outcome is DeliveryOutcome.STALE:
                    await self.file_cache.invalidate(key)
                return outcome

            if verbose:
                if request.quality:
                    await target.progress(t(
                        "processing_detailed",
                        format=request.fmt.upper(),
                        quality=self.translator.quality_name(lang, request.quality),
                    ))
                await target.progress(t("requesting_download"))
            else:
                await target.progress(self.provider.inline_processing_text(
                    request, details, t, partial(self.translator.quality_name, lang),
                ))

            handle = await self.inflight.run(key, partial(self._download_and_archive, request, details, t))

            if verbose:
                await target.progress(t("sending_file"))
            # A fresh handle failing here is a delivery problem, not a cache one
            return await target.deliver(request, details, handle, lang, self.provider)

        except MediaError as e:
            error_handler.log(e, f"{self.provider.label} {target.label}")
            await target.fail(t(e.text_key))
            return DeliveryOutcome.FAILED

    async def _download_and_archive(self, request: MediaRequest, details: MediaDetails, t: TextFn) -> DeliveryHandle:
        """Leader side of a flight: download, archive, cache. Followers share the result."""
        key = request.cache_key
        # A flight for this key may have finished while the caller was still on progress edits
        handle = await self.file_cache.get(key)
        if handle is not None:
            logger.info(f"{key} cached by an earlier flight, skipping download")
            return handle

        try:
            async with download_semaphore:
                handle = await with_timeout(
                    self._transfer(request, details, t),
                    self.download_timeout,
                    job_id=key,
                )
        except asyncio.TimeoutError as e:
            raise ProviderDownloadFailed(
                f"{key} not done after {self.download_timeout}s",
                text_key=self.provider.download_error_key,
            ) from e
        except UploadFailed as e:
            await self.notifier.archive_unreachable(self.archive.channel_id, key, e)
            raise

        await self.file_cache.set(key, handle)
        logger.info(f"Cached {key}")
        return handle

    async def _transfer(self, request: MediaRequest, details: MediaDetails, t: TextFn) -> DeliveryHandle:
        response = None
        try:
            response = await self.provider.fetch_stream(request)
            filename = self.provider.upload_filename(request, details, response)
            result = await self.archive.upload(
                request.media_kind,
                response,
                filename,
                caption=self.provider.archive_caption(request),
                attributes=self.provider.build_upload_attributes(request, details, t),
            )
            return result.handle
        finally:
            if response is not None:
                await response.release()


# Global pipelines by provider tag (initialized at startup)
pipelines: Dict[str, MediaPipeline] = {}


def init_pipelines(providers, transport, file_cache, archive, translator, notifier, inflight) -> Dict[str, MediaPipeline]:
    """Build one pipeline per provider, sharing cache, archive and in-flight table"""
    pipelines.clear()
    for provider in providers:
        pipelines[provider.tag] = MediaPipeline(
            provider, transport, file_cache, archive, translator, notifier, inflight,
        )
    logger.info(f"✓ Pipelines ready: {', '.join(pipelines)}")
    return pipelines

"""
RELAY DOWNLOADER BOT: cache-backed YouTube / Spotify / TikTok delivery

Features:
- Chat mode: link → format/quality keyboard → file
- Inline mode: @bot <link> or @bot <search query> in any chat
- Every file is uploaded once to an archive channel; its file_id is cached
  and resent instantly for every later request
- Concurrent identical requests share one download
- JSON file caches (file ids, user languages), saved on every change
- Health endpoint
- Graceful shutdown
"""
import asyncio
import atexit
import signal
import traceback

from aiohttp import web

from core.bot import bot, dp
from core.config import config
from core.transport import init_transport
from downloaders.inline import register_inline_handlers
from downloaders.pipeline import init_pipelines
from downloaders.router import register_download_handlers
from downloaders.service import download_client
from downloaders.spotify import SpotifyProvider
from downloaders.tiktok import TikTokProvider
from downloaders.youtube import YouTubeProvider
from ui.i18n import LanguageMiddleware, init_translator
from utils.archive import init_archive_uploader
from utils.cache import FileIdCache
from utils.json_store import create_caches
from utils.log_channel import init_admin_notifier
from utils.logger import logger
from workers.inflight import inflight_registry

# ─── Health endpoint ──────────────────────────────────────────────────────────

async def health_handler(request):
    """Simple health check endpoint for uptime monitors"""
    return web.Response(text="OK", status=200)


async def status_handler(request):
    """Cache sizes and in-flight downloads"""
    caches = request.app["caches"]
    return web.json_response({
        "status": "ok",
        "file_ids": len(caches.file_ids),
        "user_languages": len(caches.user_languages),
        "inflight": len(inflight_registry),
    })


async def start_health_server(caches):
    """Start lightweight HTTP health server"""
    app = web.Application()
    app["caches"] = caches
    app.router.add_get("/", health_handler)
    app.router.add_get("/health", health_handler)
    app.router.add_get("/status", status_handler)

    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, "0.0.0.0", config.HEALTH_PORT)
    await site.start()
    logger.info(f"✓ Health server running on port {config.HEALTH_PORT}")
    return runner

# ─── Graceful shutdown ────────────────────────────────────────────────────────

_shutdown_event = asyncio.Event()


def _handle_signal(sig):
    logger.info(f"Received signal {sig.name}, initiating graceful shutdown...")
    _shutdown_event.set()


async def _close_resources(caches, health_runner, providers):
    if not await caches.save():
        logger.error("Final cache save failed")

    try:
        await health_runner.cleanup()
    except Exception as e:
        logger.warning(f"Health server cleanup failed: {e}")

    for provider in providers:
        await provider.close()
    await download_client.close()
    await bot.session.close()

# ─── Main ─────────────────────────────────────────────────────────────────────

async def main():
    """Main entry point"""
    logger.info("=" * 60)
    logger.info("RELAY DOWNLOADER BOT - STARTING")
    logger.info("=" * 60)

    # Validate configuration
    try:
        config.validate()
        logger.info("✓ Configuration validated")
    except ValueError as e:
        logger.error(f"✗ Configuration error: {e}")
        return

    # Load caches
    caches = create_caches(config.FILE_CACHE_PATH, config.LANG_CACHE_PATH)
    await caches.load()
    atexit.register(caches.flush)
    logger.info(f"✓ Caches loaded: {len(caches.file_ids)} file ids, {len(caches.user_languages)} languages")

    # Telegram side
    transport = init_transport(bot)
    translator = init_translator(caches.user_languages, config.DEFAULT_LOCALE)
    translator.bot_username = await transport.get_username()
    logger.info(f"✓ Running as @{translator.bot_username}")

    archive = init_archive_uploader(transport, config.ARCHIVE_CHANNEL_ID)
    notifier = init_admin_notifier(transport, config.BOT_ADMIN_ID)
    file_cache = FileIdCache(caches.file_ids, accepts=transport.accepts)

    # Providers and pipelines
    providers = [
        YouTubeProvider(download_client, config.YOUTUBE_DL_API),
        SpotifyProvider(
            download_client,
            config.SPOTIFY_DL_API,
            config.SPOTIFY_CLIENT_ID,
            config.SPOTIFY_CLIENT_SECRET,
        ),
        TikTokProvider(download_client, config.TIKTOK_DL_API),
    ]
    init_pipelines(providers, transport, file_cache, archive, translator, notifier, inflight_registry)

    # Log configuration
    logger.info(f"✓ Max concurrent downloads: {config.MAX_CONCURRENT_DOWNLOADS}")
    logger.info(f"✓ Download timeout: {config.DOWNLOAD_TIMEOUT}s")
    logger.info(f"✓ Proxies configured: {len(config.PROXIES)}")
    if not (config.SPOTIFY_CLIENT_ID and config.SPOTIFY_CLIENT_SECRET):
        logger.warning("⚠ Spotify API credentials not set, track metadata falls back to oEmbed (no artist)")

    # Register handlers
    dp.update.outer_middleware(LanguageMiddleware(translator))
    register_download_handlers()
    register_inline_handlers()
    logger.info("✓ All handlers registered")

    # Start health server
    health_runner = await start_health_server(caches)

    # Register signal handlers for graceful shutdown
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda s=sig: _handle_signal(s))
        except NotImplementedError:
            pass  # Windows doesn't support add_signal_handler

    logger.info("=" * 60)
    logger.info("BOT IS READY - Starting polling...")
    logger.info("=" * 60)

    async def _polling_with_restart():
        """Polling wrapper: restarts on unexpected errors, never crashes"""
        while not _shutdown_event.is_set():
            try:
                await dp.start_polling(
                    bot,
                    allowed_updates=dp.resolve_used_update_types(),
                    handle_signals=False,
                    close_bot_session=False,
                )
                break
            except asyncio.CancelledError:
                break
            except Exception as e:
                tb = traceback.format_exc()
                logger.error(f"Polling crashed: {e}\n{tb}")
                if not _shutdown_event.is_set():
                    logger.info("Restarting polling in 5 seconds...")
                    await asyncio.sleep(5)

    # Start polling in background
    polling_task = asyncio.create_task(_polling_with_restart())

    # Wait for shutdown signal
    try:
        await _shutdown_event.wait()
    except asyncio.CancelledError:
        pass

    # Graceful shutdown sequence
    logger.info("Shutting down gracefully...")

    # Stop polling
    polling_task.cancel()
    try:
        await polling_task
    except asyncio.CancelledError:
        pass

    try:
        await asyncio.wait_for(
            _close_resources(caches, health_runner, providers),
            timeout=config.SHUTDOWN_GRACE_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Shutdown did not finish within {config.SHUTDOWN_GRACE_SECONDS}s, exiting anyway")

    logger.info("Shutdown complete.")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass

"""Concurrency limits and timeouts for download jobs"""
import asyncio
from typing import Awaitable, Optional, TypeVar

from core.config import config
from utils.logger import logger

T = TypeVar("T")

# Download + archive upload slots shared by all providers
download_semaphore = asyncio.Semaphore(config.MAX_CONCURRENT_DOWNLOADS)


async def with_timeout(coro: Awaitable[T], timeout_seconds: float, job_id: Optional[str] = None) -> T:
    """
    Run a coroutine with a timeout.
    Raises asyncio.TimeoutError if exceeded.
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning(f"Job {job_id or 'unknown'} timed out after {timeout_seconds}s")
        raise
    except asyncio.CancelledError:
        logger.info(f"Job {job_id or 'unknown'} was cancelled")
        raise

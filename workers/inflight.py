"""In-flight registry: one download+upload per cache key at a time"""
import asyncio
from typing import Awaitable, Callable, Dict, TypeVar

from utils.logger import logger

T = TypeVar("T")


class InflightRegistry:
    """
    Single-flight table keyed by cache key.

    The first caller for a key runs the factory; callers arriving while it
    runs await the same future and get the same result or exception. The
    key is freed as soon as the flight settles, so a later request starts a
    fresh one.
    """

    def __init__(self):
        self._flights: Dict[str, asyncio.Future] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._flights

    def __len__(self) -> int:
        return len(self._flights)

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        existing = self._flights.get(key)
        if existing is not None:
            logger.info(f"Joining in-flight download for {key}")
            # A follower being cancelled must not cancel the leader's work
            return await asyncio.shield(existing)

        future = asyncio.get_running_loop().create_future()
        self._flights[key] = future
        try:
            result = await factory()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Retrieved here so a flight without followers does not warn
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._flights.pop(key, None)


# Global registry shared by all pipelines
inflight_registry = InflightRegistry()

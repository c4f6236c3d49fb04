"""
JSON-backed key/value store.

Used for two process-wide maps:
  file_id_cache.json   CacheKey → serialized delivery handle
  user_languages.json  user id → language code

The whole map lives in memory. Callers mutate get_cache() in place and then
await save(), which rewrites the file. There is no locking: one process owns
the file, and the last save wins.
"""
import asyncio
import json
from pathlib import Path
from typing import Dict

from utils.logger import logger


class JsonStore:
    """Load/save a flat JSON object from/to one file"""

    def __init__(self, path: str, label: str):
        self.path = Path(path)
        self.label = label
        self._cache: Dict[str, str] = {}

    async def load(self) -> None:
        """
        Read the backing file into memory.

        Never raises: a missing file starts an empty map, an unreadable or
        malformed one is logged and replaced by an empty map.
        """
        try:
            raw = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        except FileNotFoundError:
            logger.info(f"[{self.label}] {self.path} not found, starting empty")
            self._cache = {}
            return
        except OSError as e:
            logger.error(f"[{self.label}] Could not read {self.path}: {e}")
            self._cache = {}
            return

        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.error(f"[{self.label}] Corrupt cache file {self.path}: {e}")
            self._cache = {}
            return

        if not isinstance(data, dict):
            logger.error(f"[{self.label}] {self.path} is not a JSON object, ignoring it")
            self._cache = {}
            return

        self._cache = {str(k): v for k, v in data.items()}
        logger.info(f"[{self.label}] Loaded {len(self._cache)} entries from {self.path}")

    def _dump(self) -> str:
        return json.dumps(self._cache, indent=2, ensure_ascii=False)

    async def save(self) -> bool:
        """
        Rewrite the backing file with the current map.

        Returns False (after logging) if the write failed; the in-memory map
        is left untouched either way.
        """
        payload = self._dump()
        try:
            await asyncio.to_thread(self.path.write_text, payload, encoding="utf-8")
            return True
        except OSError as e:
            logger.error(f"[{self.label}] Error saving {self.path}: {e}")
            return False

    def flush(self) -> None:
        """Synchronous save for interpreter exit"""
        try:
            self.path.write_text(self._dump(), encoding="utf-8")
        except OSError as e:
            logger.error(f"[{self.label}] Final flush of {self.path} failed: {e}")

    def get_cache(self) -> Dict[str, str]:
        return self._cache

    def set_cache(self, cache: Dict[str, str]) -> None:
        self._cache = cache

    def __len__(self) -> int:
        return len(self._cache)


class Caches:
    """The two stores the bot keeps on disk"""

    def __init__(self, file_cache_path: str, lang_cache_path: str):
        self.file_ids = JsonStore(file_cache_path, "File Cache")
        self.user_languages = JsonStore(lang_cache_path, "Lang Cache")

    async def load(self) -> None:
        await asyncio.gather(self.file_ids.load(), self.user_languages.load())

    async def save(self) -> bool:
        results = await asyncio.gather(self.file_ids.save(), self.user_languages.save())
        return all(results)

    def flush(self) -> None:
        self.file_ids.flush()
        self.user_languages.flush()


def create_caches(file_cache_path: str, lang_cache_path: str) -> Caches:
    """Build the file-id and user-language stores"""
    return Caches(file_cache_path, lang_cache_path)

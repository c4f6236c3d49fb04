import json

from utils.json_store import Caches, JsonStore


async def test_missing_file_starts_empty(tmp_path):
    store = JsonStore(str(tmp_path / "missing.json"), "Test")
    await store.load()
    assert store.get_cache() == {}


async def test_load_existing_file(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text(json.dumps({"spotify:a": "AgADcachedFileId000001", "123": "ru"}), encoding="utf-8")
    store = JsonStore(str(path), "Test")

    await store.load()

    assert store.get_cache() == {"spotify:a": "AgADcachedFileId000001", "123": "ru"}
    assert len(store) == 2


async def test_corrupt_file_is_replaced_by_empty_map(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text('{"spotify:a": "AgAD', encoding="utf-8")
    store = JsonStore(str(path), "Test")
    store.get_cache()["stale"] = "value"

    await store.load()

    assert store.get_cache() == {}


async def test_non_object_json_is_ignored(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text('["a", "b"]', encoding="utf-8")
    store = JsonStore(str(path), "Test")

    await store.load()

    assert store.get_cache() == {}


async def test_save_then_load(tmp_path):
    path = tmp_path / "cache.json"
    store = JsonStore(str(path), "Test")
    store.get_cache()["42"] = "Русский"

    assert await store.save() is True

    fresh = JsonStore(str(path), "Test")
    await fresh.load()
    assert fresh.get_cache() == {"42": "Русский"}
    # Written pretty-printed, non-ASCII kept as is
    assert "Русский" in path.read_text(encoding="utf-8")


async def test_failed_save_returns_false(tmp_path):
    store = JsonStore(str(tmp_path), "Test")
    store.get_cache()["k"] = "v"

    assert await store.save() is False
    assert store.get_cache() == {"k": "v"}


async def test_caches_load_and_save_both_files(tmp_path):
    caches = Caches(str(tmp_path / "files.json"), str(tmp_path / "langs.json"))
    await caches.load()
    caches.file_ids.get_cache()["spotify:a"] = "AgADcachedFileId000001"
    caches.user_languages.get_cache()["1"] = "en"

    assert await caches.save() is True

    reloaded = Caches(str(tmp_path / "files.json"), str(tmp_path / "langs.json"))
    await reloaded.load()
    assert len(reloaded.file_ids) == 1
    assert reloaded.user_languages.get_cache() == {"1": "en"}


def test_flush_writes_synchronously(tmp_path):
    path = tmp_path / "cache.json"
    store = JsonStore(str(path), "Test")
    store.set_cache({"a": "b"})

    store.flush()

    assert json.loads(path.read_text(encoding="utf-8")) == {"a": "b"}

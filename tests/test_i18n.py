from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from ui.i18n import LanguageMiddleware


def test_placeholders_are_escaped(translator):
    text = translator.t("en", "inline_search_select_final", title="<Tom & Jerry>")
    assert "&lt;Tom &amp; Jerry&gt;" in text
    assert text.startswith("🎬 <b>")


def test_plain_does_not_escape(translator):
    assert translator.plain("en", "inline_search_no_results", query="a&b") == 'Nothing found for "a&b"'


def test_bot_username_is_filled_in(translator):
    assert "@relaybot" in translator.t("en", "welcome")
    assert translator.suffix() == "\n\n@relaybot"


def test_missing_key_is_visible(translator):
    assert translator.t("en", "no_such_key") == "[no_such_key]"


def test_unknown_language_falls_back_to_default(translator):
    assert translator.t("de", "invalid_url") == translator.t("en", "invalid_url")


def test_quality_names(translator):
    assert translator.quality_name("en", "720p") == "720p HD"
    assert translator.quality_name("ru", "320kbps") == "320 кбит/с"
    assert translator.quality_name("en", "144p") == "144p"


def test_russian_view_counts(translator):
    description = translator.plain("ru", "inline_search_result_description", author="A", views=1021, duration="3:00")
    assert "1 021 просмотр" in description
    assert "5 просмотров" in translator.plain("ru", "inline_search_result_description", author="A", views=5, duration="1:00")
    assert "1,021" in translator.plain("en", "inline_search_result_description", author="A", views=1021, duration="3:00")


async def test_language_by_user_id(translator):
    await translator.set_language(99, "ru")

    assert translator.language_of(99) == "ru"
    assert translator.t(99, "invalid_url") == translator.t("ru", "invalid_url")
    assert translator.user_languages.get_cache() == {"99": "ru"}


async def test_unsupported_language_is_rejected(translator):
    with pytest.raises(ValueError):
        await translator.set_language(1, "xx")


async def test_client_language_is_remembered_on_first_contact(translator):
    assert await translator.resolve(SimpleNamespace(id=5, language_code="ru-RU")) == "ru"
    assert translator.user_languages.get_cache()["5"] == "ru"

    assert await translator.resolve(SimpleNamespace(id=6, language_code="fr")) == "en"
    assert "6" not in translator.user_languages.get_cache()
    assert await translator.resolve(None) == "en"


async def test_middleware_injects_language_and_translator(translator):
    await translator.set_language(7, "ru")
    middleware = LanguageMiddleware(translator)
    handler = AsyncMock(return_value="handled")
    data = {"event_from_user": SimpleNamespace(id=7, language_code="en")}

    assert await middleware(handler, object(), data) == "handled"
    assert data["lang"] == "ru"
    assert data["translator"] is translator

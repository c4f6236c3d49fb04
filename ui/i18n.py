"""Translation lookup, per-user language memory and the aiogram middleware feeding it"""
import html
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, User

from ui.texts import LANGUAGES, TEXTS
from utils.json_store import JsonStore
from utils.logger import logger


def _format_views(views: int, lang: str) -> str:
    if lang != "ru":
        return f"{views:,}"
    word = "просмотров"
    if views % 10 == 1 and views % 100 != 11:
        word = "просмотр"
    elif views % 10 in (2, 3, 4) and views % 100 not in (12, 13, 14):
        word = "просмотра"
    return f"{views:,}".replace(",", " ") + f" {word}"


class Translator:
    """
    Resolves text keys for a language or a user id.

    Placeholder values are HTML-escaped; {botUsername} is always available.
    Unknown keys render as [key] so a missing string is visible, not fatal.
    """

    def __init__(self, user_languages: JsonStore, default_locale: str = "en"):
        self.user_languages = user_languages
        self.default_locale = default_locale if default_locale in TEXTS else "en"
        self.bot_username = ""

    def language_of(self, lang_or_user_id: Union[str, int, None]) -> str:
        if lang_or_user_id is None:
            return self.default_locale
        stored = self.user_languages.get_cache().get(str(lang_or_user_id))
        if stored in TEXTS:
            return stored
        if lang_or_user_id in TEXTS:
            return lang_or_user_id
        return self.default_locale

    def t(self, lang_or_user_id: Union[str, int, None], key: str, **data: Any) -> str:
        return self._render(lang_or_user_id, key, data, escape=True)

    def plain(self, lang_or_user_id: Union[str, int, None], key: str, **data: Any) -> str:
        """Same as t() without HTML escaping, for inline result titles and alerts"""
        return self._render(lang_or_user_id, key, data, escape=False)

    def _render(self, lang_or_user_id, key: str, data: Dict[str, Any], escape: bool) -> str:
        lang = self.language_of(lang_or_user_id)
        strings = TEXTS.get(lang, TEXTS[self.default_locale])
        text = strings.get(key) or TEXTS[self.default_locale].get(key) or f"[{key}]"

        if key == "inline_search_result_description" and isinstance(data.get("views"), int):
            data["views"] = _format_views(data["views"], lang)

        if self.bot_username:
            text = text.replace("{botUsername}", self.bot_username)
        for name, value in data.items():
            safe = "" if value is None else str(value)
            if escape:
                safe = html.escape(safe, quote=False)
            text = text.replace("{" + name + "}", safe)
        return text

    def quality_name(self, lang: str, quality: str) -> str:
        """Display name of a quality string, falling back to the string itself"""
        strings = TEXTS.get(self.language_of(lang), {})
        return strings.get(quality, quality)

    def suffix(self) -> str:
        """Bot attribution appended to every final message"""
        return f"\n\n@{self.bot_username}" if self.bot_username else ""

    async def set_language(self, user_id: int, lang: str) -> None:
        if lang not in LANGUAGES:
            raise ValueError(f"Unsupported language: {lang}")
        self.user_languages.get_cache()[str(user_id)] = lang
        await self.user_languages.save()

    async def resolve(self, user: Optional[User]) -> str:
        """
        Language for an incoming update.

        First contact: the Telegram client language is remembered when we
        have texts for it.
        """
        if user is None:
            return self.default_locale
        stored = self.user_languages.get_cache().get(str(user.id))
        if stored in TEXTS:
            return stored
        client_lang = (user.language_code or "")[:2]
        if client_lang in LANGUAGES:
            logger.debug(f"Remembering language {client_lang} for user {user.id}")
            await self.set_language(user.id, client_lang)
            return client_lang
        return self.default_locale


class LanguageMiddleware(BaseMiddleware):
    """Puts `lang` and `translator` into handler data"""

    def __init__(self, translator: Translator):
        self.translator = translator

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        data["lang"] = await self.translator.resolve(data.get("event_from_user"))
        data["translator"] = self.translator
        return await handler(event, data)


# Global translator (initialized once the language cache is loaded)
translator: Optional[Translator] = None


def init_translator(user_languages: JsonStore, default_locale: str) -> Translator:
    """Initialize translator with the user-language store"""
    global translator
    translator = Translator(user_languages, default_locale)
    return translator

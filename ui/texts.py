"""
User-facing text tables.

Keys are shared by all languages; {placeholders} are filled by
ui.i18n.Translator. Everything here is sent with parse_mode=HTML.
"""

LANGUAGES = {
    "en": "English 🇬🇧",
    "ru": "Русский 🇷🇺",
}

TEXTS = {
    "en": {
        # ─── Start / settings ───
        "language_select": "Please choose your language:",
        "language_set": "Language set to {language}",
        "welcome": (
            "👋 Send me a YouTube, Spotify or TikTok link and I will send the file back.\n\n"
            "You can also use me inline: type @{botUsername} and a link or a search query in any chat."
        ),
        "invalid_url": "⚠️ Send a YouTube, Spotify track or TikTok link.",
        "access_denied": "⛔️ Access denied.",

        # ─── Format / quality choice ───
        "choose_format": "Choose a format:",
        "choose_format_tiktok": "Choose a format for this TikTok",
        "choose_quality_audio": "Choose audio quality:",
        "choose_quality_video": "Choose video quality:",
        "button_mp3": "🎧 MP3",
        "button_mp4": "🎬 MP4",
        "button_cancel": "✖️ Cancel",
        "action_cancelled": "Cancelled.",
        "96kbps": "96 kbps",
        "128kbps": "128 kbps",
        "256kbps": "256 kbps",
        "320kbps": "320 kbps",
        "360p": "360p",
        "480p": "480p",
        "720p": "720p HD",
        "1080p": "1080p Full HD",

        # ─── Progress ───
        "processing_spotify": "⏳ Processing Spotify track...",
        "processing_tiktok": "⏳ Processing TikTok...",
        "processing_detailed": "⏳ Preparing {format} ({quality})...",
        "requesting_download": "📥 Requesting download...",
        "sending_file": "📤 Sending file...",

        # ─── Fallback titles ───
        "fallback_video_title": "YouTube video",
        "fallback_track_title": "Spotify track",
        "fallback_tiktok_title": "TikTok video",
        "unknown_artist": "Unknown Artist",

        # ─── Errors ───
        "error_fetching_title": "❌ Could not get information about this video.",
        "spotify_metadata_failed": "❌ Could not get information about this Spotify track.",
        "tiktok_metadata_failed": "❌ Could not get information about this TikTok.",
        "api_error_fetch": "❌ The download service failed. Please try again later.",
        "spotify_download_failed": "❌ Could not download this Spotify track. Please try again later.",
        "tiktok_download_failed": "❌ Could not download this TikTok. Please try again later.",
        "spotify_api_error": "❌ Spotify is not responding right now.",
        "tiktok_api_error": "❌ TikTok is not responding right now.",
        "length_limit_error": "❌ This media is too long to download.",
        "error_telegram_size": "❌ The file is too large for Telegram (max 50 MB). Try a lower quality.",
        "inline_cache_upload_failed": "❌ Could not send the file. Please try again.",
        "inline_error_general": "❌ Something went wrong. Please try again.",
        "inline_edit_failed": "❌ Could not attach the file to this message. Please try again.",
        "general_error": "❌ An error occurred. Please try again.",
        "error_occurred_try_again": "❌ An error occurred. Please try again.",
        "error_unexpected_action": "⚠️ This button is no longer valid. Send the link again.",

        # ─── Inline mode ───
        "inline_processing": "⏳ Processing...",
        "inline_processing_final": "⏳ Preparing <b>{title}</b>\n{format} · {quality}",
        "inline_processing_spotify": "⏳ Preparing <b>{title}</b>",
        "inline_processing_tiktok": "⏳ Preparing <b>{title}</b>\n{format}",
        "inline_result_title": "{format} · {quality}",
        "inline_result_title_tiktok": "TikTok {format}",
        "inline_description_direct": "{title} ({format}, {quality})",
        "inline_description_spotify": "{title} - {artist}",
        "inline_description_tiktok": "{title} ({format})",
        "inline_search_prompt": "Type a link or a search query",
        "inline_search_no_results": "Nothing found for \"{query}\"",
        "inline_search_error": "Search failed, try again",
        "inline_search_result_description": "{author} · {views} views · {duration}",
        "inline_search_select_final": "🎬 <b>{title}</b>\nChoose format and quality:",

        # ─── Admin ───
        "stats": (
            "<b>📊 Bot statistics</b>\n\n"
            "<b>🗄 Cache</b>\n"
            "  - File IDs: {file_ids}\n"
            "  - User languages: {languages}\n"
            "  - Downloads in flight: {inflight}"
        ),
    },
    "ru": {
        "language_select": "Пожалуйста, выберите язык:",
        "language_set": "Язык: {language}",
        "welcome": (
            "👋 Пришлите ссылку на YouTube, Spotify или TikTok, и я отправлю файл.\n\n"
            "Меня можно использовать в любом чате: напишите @{botUsername} и ссылку или запрос."
        ),
        "invalid_url": "⚠️ Пришлите ссылку на YouTube, трек Spotify или TikTok.",
        "access_denied": "⛔️ Доступ запрещён.",

        "choose_format": "Выберите формат:",
        "choose_format_tiktok": "Выберите формат для этого TikTok",
        "choose_quality_audio": "Выберите качество аудио:",
        "choose_quality_video": "Выберите качество видео:",
        "button_mp3": "🎧 MP3",
        "button_mp4": "🎬 MP4",
        "button_cancel": "✖️ Отмена",
        "action_cancelled": "Отменено.",
        "96kbps": "96 кбит/с",
        "128kbps": "128 кбит/с",
        "256kbps": "256 кбит/с",
        "320kbps": "320 кбит/с",
        "360p": "360p",
        "480p": "480p",
        "720p": "720p HD",
        "1080p": "1080p Full HD",

        "processing_spotify": "⏳ Обрабатываю трек Spotify...",
        "processing_tiktok": "⏳ Обрабатываю TikTok...",
        "processing_detailed": "⏳ Готовлю {format} ({quality})...",
        "requesting_download": "📥 Запрашиваю загрузку...",
        "sending_file": "📤 Отправляю файл...",

        "fallback_video_title": "Видео YouTube",
        "fallback_track_title": "Трек Spotify",
        "fallback_tiktok_title": "Видео TikTok",
        "unknown_artist": "Неизвестный исполнитель",

        "error_fetching_title": "❌ Не удалось получить информацию о видео.",
        "spotify_metadata_failed": "❌ Не удалось получить информацию о треке Spotify.",
        "tiktok_metadata_failed": "❌ Не удалось получить информацию о TikTok.",
        "api_error_fetch": "❌ Сервис загрузки не ответил. Попробуйте позже.",
        "spotify_download_failed": "❌ Не удалось скачать трек Spotify. Попробуйте позже.",
        "tiktok_download_failed": "❌ Не удалось скачать TikTok. Попробуйте позже.",
        "spotify_api_error": "❌ Spotify сейчас не отвечает.",
        "tiktok_api_error": "❌ TikTok сейчас не отвечает.",
        "length_limit_error": "❌ Слишком длинное видео для загрузки.",
        "error_telegram_size": "❌ Файл слишком большой для Telegram (макс. 50 МБ). Выберите качество ниже.",
        "inline_cache_upload_failed": "❌ Не удалось отправить файл. Попробуйте ещё раз.",
        "inline_error_general": "❌ Что-то пошло не так. Попробуйте ещё раз.",
        "inline_edit_failed": "❌ Не удалось прикрепить файл к сообщению. Попробуйте ещё раз.",
        "general_error": "❌ Произошла ошибка. Попробуйте ещё раз.",
        "error_occurred_try_again": "❌ Произошла ошибка. Попробуйте ещё раз.",
        "error_unexpected_action": "⚠️ Кнопка устарела. Пришлите ссылку заново.",

        "inline_processing": "⏳ Обработка...",
        "inline_processing_final": "⏳ Готовлю <b>{title}</b>\n{format} · {quality}",
        "inline_processing_spotify": "⏳ Готовлю <b>{title}</b>",
        "inline_processing_tiktok": "⏳ Готовлю <b>{title}</b>\n{format}",
        "inline_result_title": "{format} · {quality}",
        "inline_result_title_tiktok": "TikTok {format}",
        "inline_description_direct": "{title} ({format}, {quality})",
        "inline_description_spotify": "{title} - {artist}",
        "inline_description_tiktok": "{title} ({format})",
        "inline_search_prompt": "Введите ссылку или запрос",
        "inline_search_no_results": "По запросу \"{query}\" ничего не найдено",
        "inline_search_error": "Поиск не удался, попробуйте ещё раз",
        "inline_search_result_description": "{author} · {views} · {duration}",
        "inline_search_select_final": "🎬 <b>{title}</b>\nВыберите формат и качество:",

        "stats": (
            "<b>📊 Статистика бота</b>\n\n"
            "<b>🗄 Кэш</b>\n"
            "  - File ID: {file_ids}\n"
            "  - Языки пользователей: {languages}\n"
            "  - Загрузок в процессе: {inflight}"
        ),
    },
}

import asyncio
import os
from types import SimpleNamespace
from typing import Optional

import pytest
from aiogram.exceptions import TelegramBadRequest
from aiogram.methods import EditMessageText, SendAudio, SendVideo

# core.bot builds a Bot at import time and validates the token format
os.environ.setdefault("BOT_TOKEN", "123456:TEST")

from downloaders.base import MediaProvider
from downloaders.models import MediaDetails, MediaRequest
from downloaders.pipeline import MediaPipeline
from ui.i18n import Translator
from utils.archive import ArchiveUploader
from utils.cache import FileIdCache
from utils.errors import PlaceholderExpired, StaleHandle
from utils.file_handle import FileToken
from utils.json_store import JsonStore
from utils.log_channel import AdminNotifier
from workers.inflight import InflightRegistry

ARCHIVE_CHANNEL = -100123
ADMIN_ID = 777
CHAT_ID = 42
STATUS_MESSAGE_ID = 10
INLINE_ID = "AgAAAInlineMsg"
BOT_USERNAME = "relaybot"


def bad_request(message: str, kind: str = "audio") -> TelegramBadRequest:
    method = SendAudio(chat_id=1, audio="x") if kind == "audio" else SendVideo(chat_id=1, video="x")
    return TelegramBadRequest(method=method, message=message)


def edit_bad_request(message: str) -> TelegramBadRequest:
    return TelegramBadRequest(method=EditMessageText(text="x", inline_message_id=INLINE_ID), message=message)


class FakeResponse:
    """Stand-in for downloaders.service.DownloadResponse"""

    def __init__(self, status: int = 200, body: bytes = b"media-bytes", filename: Optional[str] = None):
        self.status = status
        self.body = body
        self._filename = filename
        self.released = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def filename(self):
        return self._filename

    async def error_text(self, limit: int = 200) -> str:
        return self.body[:limit].decode("utf-8", errors="replace")

    async def iter_chunks(self, chunk_size: int = 64 * 1024):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i:i + chunk_size]

    async def release(self) -> None:
        self.released = True


class FakeUpload:
    def __init__(self, response, filename: str):
        self.response = response
        self.filename = filename


class FakeTransport:
    """Records every platform call; mirrors BotApiTransport's error contract"""

    def __init__(self):
        self.uploads = []
        self.sent = []
        self.edits = []
        self.inline_edits = []
        self.inline_media = []
        self.texts = []
        self.deleted = []
        self.inline_answers = []
        self.rejected = set()
        self.upload_error: Optional[Exception] = None
        self.upload_without_media = False
        self._next_file = 0
        self._next_message = 100

    # Handles
    def accepts(self, handle) -> bool:
        return isinstance(handle, FileToken)

    def extract_handle(self, message, kind: str):
        media = message.audio if kind == "audio" else message.video
        if media is None:
            return None
        return FileToken(media.file_id)

    def stream_file(self, response, filename: str):
        return FakeUpload(response, filename)

    def _message(self, kind: str, file_id: Optional[str]):
        self._next_message += 1
        media = SimpleNamespace(file_id=file_id) if file_id else None
        return SimpleNamespace(
            message_id=self._next_message,
            audio=media if kind == "audio" else None,
            video=media if kind == "video" else None,
        )

    # Chat
    async def send_media(self, chat_id, kind, media, caption=None, disable_notification=False, **attributes):
        if isinstance(media, FakeUpload):
            async for _ in media.response.iter_chunks():
                pass
            self.uploads.append(SimpleNamespace(
                chat_id=chat_id, kind=kind, filename=media.filename, caption=caption, attributes=attributes,
            ))
            if self.upload_error is not None:
                raise self.upload_error
            if self.upload_without_media:
                return self._message(kind, None)
            self._next_file += 1
            return self._message(kind, f"AgADfreshFileId{self._next_file:06d}")

        if not self.accepts(media) or media.file_id in self.rejected:
            raise StaleHandle(f"rejected {media}")
        self.sent.append(SimpleNamespace(chat_id=chat_id, kind=kind, handle=media, caption=caption, attributes=attributes))
        return self._message(kind, media.file_id)

    async def send_text(self, chat_id, text, reply_markup=None, reply_to_message_id=None):
        self.texts.append((chat_id, text))
        return self._message("audio", None)

    async def edit_text(self, chat_id, message_id, text, reply_markup=None):
        self.edits.append((chat_id, message_id, text))

    async def delete_message(self, chat_id, message_id):
        self.deleted.append((chat_id, message_id))

    async def send_chat_action(self, chat_id, action):
        pass

    # Inline
    async def edit_inline_text(self, inline_message_id, text, reply_markup=None):
        self.inline_edits.append((inline_message_id, text))

    async def edit_inline_media(self, inline_message_id, kind, handle, caption, **attributes):
        if not self.accepts(handle) or handle.file_id in self.rejected:
            raise StaleHandle(f"rejected {handle}")
        self.inline_media.append(SimpleNamespace(
            inline_message_id=inline_message_id, kind=kind, handle=handle, caption=caption, attributes=attributes,
        ))

    async def answer_inline_query(self, inline_query_id, results, cache_time=60, button=None):
        self.inline_answers.append((inline_query_id, results, cache_time, button))

    def admin_texts(self):
        return [text for chat_id, text in self.texts if chat_id == ADMIN_ID]


class GoneTransport(FakeTransport):
    """Every inline edit hits a placeholder that no longer exists"""

    async def edit_inline_text(self, inline_message_id, text, reply_markup=None):
        raise PlaceholderExpired("message to edit not found")

    async def edit_inline_media(self, inline_message_id, kind, handle, caption, **attributes):
        raise PlaceholderExpired("message to edit not found")


class FakeProvider(MediaProvider):
    """YouTube-shaped provider with scripted metadata and download results"""

    tag = "yt"
    label = "YT"
    metadata_error_key = "error_fetching_title"
    download_error_key = "api_error_fetch"
    fallback_title_key = "fallback_video_title"

    def __init__(self):
        super().__init__(client=None, service_url="http://downloader.local/yt")
        self.details: Optional[MediaDetails] = MediaDetails(
            media_id="abc12345678",
            title="Test Clip",
            author="Someone",
            duration=212,
            url="https://www.youtube.com/watch?v=abc12345678",
        )
        self.detail_calls = 0
        self.stream_calls = 0
        self.stream_error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None
        self.responses = []

    async def fetch_details(self, request):
        self.detail_calls += 1
        return self.details

    async def fetch_stream(self, request):
        self.stream_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.stream_error is not None:
            raise self.stream_error
        response = FakeResponse()
        self.responses.append(response)
        return response

    def upload_filename(self, request, details, response):
        return f"{details.title}_{request.fmt}_{request.quality}.{request.fmt}"


def yt_request(fmt: str = "mp4", quality: str = "720p") -> MediaRequest:
    return MediaRequest(
        "yt",
        "abc12345678",
        "https://www.youtube.com/watch?v=abc12345678",
        fmt=fmt,
        quality=quality,
    )


@pytest.fixture
def file_store(tmp_path):
    return JsonStore(str(tmp_path / "file_id_cache.json"), "File Cache")


@pytest.fixture
def translator(tmp_path):
    tr = Translator(JsonStore(str(tmp_path / "user_languages.json"), "Lang Cache"), "en")
    tr.bot_username = BOT_USERNAME
    return tr


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def file_cache(file_store, transport):
    return FileIdCache(file_store, accepts=transport.accepts)


@pytest.fixture
def make_pipeline(provider, file_cache, translator):
    def _make(transport):
        return MediaPipeline(
            provider,
            transport,
            file_cache,
            ArchiveUploader(transport, ARCHIVE_CHANNEL),
            translator,
            AdminNotifier(transport, ADMIN_ID),
            InflightRegistry(),
            download_timeout=5,
        )
    return _make


@pytest.fixture
def pipeline(make_pipeline, transport):
    return make_pipeline(transport)

import pytest
from aiogram.exceptions import TelegramForbiddenError
from aiogram.methods import SendAudio

from conftest import CHAT_ID, INLINE_ID, STATUS_MESSAGE_ID, FakeProvider, GoneTransport, bad_request, yt_request
from downloaders.delivery import ChatDelivery, InlineDelivery
from downloaders.inline_media import InlineMediaEditor
from downloaders.models import DeliveryOutcome
from utils.file_handle import FileToken

TOKEN = FileToken("AgADcachedFileId000001")


@pytest.fixture
def details(provider):
    return provider.details


class EditFails:
    """Wraps a transport so chat edits raise a given error"""

    def __init__(self, transport, error):
        self._transport = transport
        self._error = error

    def __getattr__(self, name):
        return getattr(self._transport, name)

    async def edit_text(self, chat_id, message_id, text, reply_markup=None):
        raise self._error


class SendFails(EditFails):
    async def edit_text(self, chat_id, message_id, text, reply_markup=None):
        await self._transport.edit_text(chat_id, message_id, text, reply_markup)

    async def send_media(self, *args, **kwargs):
        raise self._error


# ─── Chat ─────────────────────────────────────────────────────────────────────

async def test_chat_delivery_sends_then_drops_status(transport, translator, provider, details):
    target = ChatDelivery(transport, translator, CHAT_ID, STATUS_MESSAGE_ID)

    outcome = await target.deliver(yt_request(), details, TOKEN, "en", provider)

    assert outcome is DeliveryOutcome.DELIVERED
    assert transport.sent[0].handle == TOKEN
    assert transport.sent[0].attributes["supports_streaming"] is True
    assert transport.deleted == [(CHAT_ID, STATUS_MESSAGE_ID)]


async def test_progress_stops_after_status_is_deleted(transport, translator):
    gone = EditFails(transport, bad_request("Bad Request: message to edit not found"))
    target = ChatDelivery(gone, translator, CHAT_ID, STATUS_MESSAGE_ID)

    await target.progress("working")
    assert target.status_message_id is None

    await target.fail("boom")
    assert transport.texts == [(CHAT_ID, "boom" + translator.suffix())]


async def test_blocked_user_gets_no_error_text(transport, translator, provider, details):
    blocked = TelegramForbiddenError(method=SendAudio(chat_id=CHAT_ID, audio="x"), message="Forbidden: bot was blocked by the user")
    target = ChatDelivery(SendFails(transport, blocked), translator, CHAT_ID, STATUS_MESSAGE_ID)

    outcome = await target.deliver(yt_request(), details, TOKEN, "en", provider)

    assert outcome is DeliveryOutcome.FAILED
    assert transport.edits == []
    assert transport.texts == []


async def test_send_failure_is_reported_on_status(transport, translator, provider, details):
    target = ChatDelivery(SendFails(transport, bad_request("Bad Request: VIDEO_CONTENT_TYPE_INVALID")), translator, CHAT_ID, STATUS_MESSAGE_ID)

    outcome = await target.deliver(yt_request(), details, TOKEN, "en", provider)

    assert outcome is DeliveryOutcome.FAILED
    assert transport.edits == [
        (CHAT_ID, STATUS_MESSAGE_ID, translator.t("en", "inline_cache_upload_failed") + translator.suffix()),
    ]


# ─── Inline ───────────────────────────────────────────────────────────────────

async def test_inline_editor_without_metadata(transport, translator, provider):
    editor = InlineMediaEditor(transport, translator)

    outcome = await editor.edit(INLINE_ID, TOKEN, yt_request(), None, "en", provider)

    assert outcome is DeliveryOutcome.FAILED
    assert transport.inline_media == []
    assert transport.inline_edits == [(INLINE_ID, translator.t("en", "error_fetching_title") + translator.suffix())]


async def test_inline_editor_caption_and_kind(transport, translator, details):
    provider = FakeProvider()
    editor = InlineMediaEditor(transport, translator)

    outcome = await editor.edit(INLINE_ID, TOKEN, yt_request(fmt="mp3", quality="128kbps"), details, "ru", provider)

    assert outcome is DeliveryOutcome.DELIVERED
    media = transport.inline_media[0]
    assert media.kind == "audio"
    assert media.caption.startswith("Test Clip\nhttps://www.youtube.com/watch?v=abc12345678")
    assert media.caption.endswith("@relaybot")


async def test_inline_editor_expired_placeholder(translator, provider, details):
    editor = InlineMediaEditor(GoneTransport(), translator)
    assert await editor.edit(INLINE_ID, TOKEN, yt_request(), details, "en", provider) is DeliveryOutcome.FAILED


async def test_inline_target_stops_editing_once_gone(translator):
    transport = GoneTransport()
    target = InlineDelivery(transport, translator, InlineMediaEditor(transport, translator), INLINE_ID)

    await target.progress("working")
    assert target.gone
    await target.fail("boom")
    assert transport.inline_edits == []


async def test_inline_progress_keeps_processing_keyboard(transport, translator):
    calls = []

    async def edit_inline_text(inline_message_id, text, reply_markup=None):
        calls.append(reply_markup)

    transport.edit_inline_text = edit_inline_text
    target = InlineDelivery(transport, translator, InlineMediaEditor(transport, translator), INLINE_ID)

    await target.progress("working")

    assert calls[0].inline_keyboard[0][0].callback_data == "inline_ignore"

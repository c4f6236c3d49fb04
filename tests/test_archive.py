import aiohttp
import pytest
from aiogram.exceptions import TelegramEntityTooLarge, TelegramForbiddenError, TelegramNetworkError
from aiogram.methods import SendAudio

from conftest import ARCHIVE_CHANNEL, FakeResponse, FakeTransport, bad_request
from utils.archive import ArchiveUploader
from utils.errors import ArchiveSendFailed, ContentTooLarge, MissingMediaError, UploadFailed
from utils.file_handle import FileToken


def _method():
    return SendAudio(chat_id=ARCHIVE_CHANNEL, audio="x")


@pytest.fixture
def uploader(transport):
    return ArchiveUploader(transport, ARCHIVE_CHANNEL)


async def test_upload_returns_handle(uploader, transport):
    result = await uploader.upload(
        "audio",
        FakeResponse(),
        "Artist - Song.mp3",
        caption="Cache Spotify: abc",
        attributes={"performer": "Artist", "title": "Song"},
    )

    assert result.handle == FileToken("AgADfreshFileId000001")
    assert result.media.file_id == "AgADfreshFileId000001"
    upload = transport.uploads[0]
    assert upload.chat_id == ARCHIVE_CHANNEL
    assert upload.filename == "Artist - Song.mp3"
    assert upload.attributes == {"performer": "Artist", "title": "Song"}


async def test_reply_without_media(uploader, transport):
    transport.upload_without_media = True
    with pytest.raises(MissingMediaError):
        await uploader.upload("video", FakeResponse(), "clip.mp4", caption="Cache YT: x")


@pytest.mark.parametrize("error, expected", [
    (TelegramEntityTooLarge(method=_method(), message="Request Entity Too Large"), ContentTooLarge),
    (bad_request("Bad Request: file is too big"), ContentTooLarge),
    (bad_request("Bad Request: chat not found"), UploadFailed),
    (TelegramForbiddenError(method=_method(), message="Forbidden: bot is not a member of the channel chat"), UploadFailed),
    (bad_request("Bad Request: not enough rights to send audios to the chat"), UploadFailed),
    (TelegramNetworkError(method=_method(), message="HTTP Client says - ServerDisconnectedError"), ArchiveSendFailed),
    (bad_request("Bad Request: audio_invalid"), ArchiveSendFailed),
    (aiohttp.ClientPayloadError("Response payload is not completed"), ArchiveSendFailed),
])
async def test_upload_errors(uploader, transport, error, expected):
    transport.upload_error = error
    with pytest.raises(expected):
        await uploader.upload("audio", FakeResponse(), "a.mp3", caption="Cache")


async def test_only_channel_faults_are_upload_failed():
    transport = FakeTransport()
    transport.upload_error = TelegramEntityTooLarge(method=_method(), message="Request Entity Too Large")
    uploader = ArchiveUploader(transport, ARCHIVE_CHANNEL)

    with pytest.raises(ContentTooLarge) as info:
        await uploader.upload("audio", FakeResponse(), "a.mp3", caption="Cache")
    assert not isinstance(info.value, UploadFailed)
    assert not info.value.notify_admin

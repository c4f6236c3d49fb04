import pytest

from downloaders.classifier import (
    ClassifiedRequest,
    classify,
    extract_url,
    get_spotify_track_id,
    get_youtube_video_id,
    is_tiktok_url,
)
from ui.callbacks import ResultChoice, download_result_id, parse_result_id, search_result_id


@pytest.mark.parametrize("url", [
    "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
    "https://youtube.com/watch?v=dQw4w9WgXcQ&list=PL123&index=2",
    "https://m.youtube.com/watch?v=dQw4w9WgXcQ",
    "https://music.youtube.com/watch?v=dQw4w9WgXcQ",
    "https://youtu.be/dQw4w9WgXcQ?t=42",
    "https://www.youtube.com/shorts/dQw4w9WgXcQ",
    "https://www.youtube.com/embed/dQw4w9WgXcQ",
    "https://www.youtube.com/live/dQw4w9WgXcQ?feature=share",
    "https://www.youtube-nocookie.com/embed/dQw4w9WgXcQ",
    "youtu.be/dQw4w9WgXcQ",
])
def test_youtube_ids(url):
    assert get_youtube_video_id(url) == "dQw4w9WgXcQ"


@pytest.mark.parametrize("url", [
    "https://www.youtube.com/watch?v=tooShort",
    "https://www.youtube.com/channel/UC38IQsAvIsxxjztdMZQtwHA",
    "https://notyoutube.com/watch?v=dQw4w9WgXcQ",
    "https://youtube.com.evil.example/watch?v=dQw4w9WgXcQ",
    "https://www.youtube.com:99999/watch?v=dQw4w9WgXcQ",
    "",
])
def test_not_youtube(url):
    assert get_youtube_video_id(url) is None


def test_spotify_track_ids():
    assert get_spotify_track_id("https://open.spotify.com/track/4uLU6hMCjMI75M1A2tKUQC?si=abc") == "4uLU6hMCjMI75M1A2tKUQC"
    assert get_spotify_track_id("https://open.spotify.com/intl-de/track/4uLU6hMCjMI75M1A2tKUQC") == "4uLU6hMCjMI75M1A2tKUQC"
    assert get_spotify_track_id("https://open.spotify.com/album/4uLU6hMCjMI75M1A2tKUQC") is None
    assert get_spotify_track_id("https://spotify.com/track/4uLU6hMCjMI75M1A2tKUQC") is None


def test_tiktok_urls():
    assert is_tiktok_url("https://www.tiktok.com/@someone/video/7301234567890123456")
    assert is_tiktok_url("https://vm.tiktok.com/ZMabcdef/")
    assert is_tiktok_url("https://tiktok.com/@someone/video/7301234567890123456")
    assert not is_tiktok_url("https://tiktok.com.example.org/video/1")
    assert not is_tiktok_url("https://nottiktok.com/video/1")
    assert not is_tiktok_url("not a url at all")


def test_extract_url_from_message_text():
    assert extract_url("look https://youtu.be/dQw4w9WgXcQ cool") == "https://youtu.be/dQw4w9WgXcQ"
    assert extract_url("  youtu.be/dQw4w9WgXcQ  ") == "youtu.be/dQw4w9WgXcQ"
    assert extract_url("") is None


def test_classify():
    assert classify("https://youtu.be/dQw4w9WgXcQ") == ClassifiedRequest("yt", "https://youtu.be/dQw4w9WgXcQ", "dQw4w9WgXcQ")
    assert classify("https://open.spotify.com/track/4uLU6hMCjMI75M1A2tKUQC").provider == "spotify"

    tiktok = classify("https://vm.tiktok.com/ZMabcdef/")
    assert tiktok.provider == "tk"
    assert tiktok.media_id is None


def test_classify_first_link_wins():
    text = "https://youtu.be/dQw4w9WgXcQ and https://open.spotify.com/track/4uLU6hMCjMI75M1A2tKUQC"
    assert classify(text).provider == "yt"


@pytest.mark.parametrize("text", ["hello there", "https://example.com/watch?v=dQw4w9WgXcQ", "", "   "])
def test_classify_nothing(text):
    assert classify(text) is None


def test_result_ids():
    assert parse_result_id(download_result_id("yt", "dQw4w9WgXcQ", "mp4", "720p")) == ResultChoice("yt", "dQw4w9WgXcQ", "mp4", "720p")
    assert parse_result_id(download_result_id("yt", "dQw4w9WgXcQ", "mp3", "320kbps")) == ResultChoice("yt", "dQw4w9WgXcQ", "mp3", "320kbps")
    assert parse_result_id(download_result_id("spotify", "4uLU6hMCjMI75M1A2tKUQC")) == ResultChoice("spotify", "4uLU6hMCjMI75M1A2tKUQC")
    assert parse_result_id(download_result_id("tk", "7301234567890123456", "mp4")) == ResultChoice("tk", "7301234567890123456", "mp4")


@pytest.mark.parametrize("result_id", [
    search_result_id("dQw4w9WgXcQ"),
    "dl_yt:dQw4w9WgXcQ:mp4",
    "dl_yt:dQw4w9WgXcQ:flac:720p",
    "dl_tk:123",
    "no_results",
    "",
])
def test_unknown_result_ids(result_id):
    assert parse_result_id(result_id) is None

"""
Tests for media intake helpers and playlist expansion.
"""

from pathlib import Path

import httpx
import pytest
from yt_dlp.utils import DownloadError

from relaybot.errors import InputValidationFailure
from relaybot.services import playlist
from relaybot.services.media import (
    check_file_size,
    check_mp3_link,
    download_mp3,
    is_youtube_link,
    new_temp_path,
    parse_time,
    parse_youtube_request,
    remove_quietly,
)


class TestLinksAndSizes:
    def test_mp3_link_must_use_allowed_server(self):
        check_mp3_link("http://files/a.mp3", "http://files")

        with pytest.raises(InputValidationFailure) as exc_info:
            check_mp3_link("http://elsewhere/a.mp3", "http://files")
        assert exc_info.value.user_message.startswith("Only the direct links to audio files are allowed")

        with pytest.raises(InputValidationFailure, match="Url is empty"):
            check_mp3_link("", "http://files")

    def test_file_size(self):
        check_file_size(19 * 1024 * 1024, 19)

        with pytest.raises(InputValidationFailure, match="The audio file is too big"):
            check_file_size(19 * 1024 * 1024 + 1, 19)
        with pytest.raises(InputValidationFailure, match="Unable to determine the file size"):
            check_file_size(None, 19)

    def test_youtube_prefixes(self):
        assert is_youtube_link("https://youtu.be/abc")
        assert is_youtube_link("https://www.youtube.com/watch?v=abc")
        assert not is_youtube_link("http://youtube.com/watch?v=abc")


class TestTimeRanges:
    def test_parse_time(self):
        assert parse_time("01:02:03") == "01:02:03"
        assert parse_time("1:02:03") is None
        assert parse_time("00:60:00") is None

    def test_range_needs_both_bounds(self):
        url = "https://youtu.be/abc"
        assert parse_youtube_request(f"{url} 00:01:00 00:02:30") == (url, "00:01:00", "00:02:30")
        assert parse_youtube_request(f"{url} 00:01:00 later") == (url, None, None)
        assert parse_youtube_request(f"{url} 00:01:00") == (url, None, None)
        assert parse_youtube_request(url) == (url, None, None)


class TestDownloadMp3:
    @pytest.mark.asyncio
    async def test_downloads_audio(self, tmp_path: Path):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, headers={"content-type": "audio/mpeg"}, content=b"ID3")
        )
        dest = tmp_path / "a.mp3"
        async with httpx.AsyncClient(transport=transport) as client:
            await download_mp3(client, "http://files/a.mp3", dest)

        assert dest.read_bytes() == b"ID3"

    @pytest.mark.asyncio
    async def test_rejects_other_content_types(self, tmp_path: Path):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, headers={"content-type": "text/html"}, content=b"<html>")
        )
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(InputValidationFailure, match="Only the direct mp3 file links are allowed"):
                await download_mp3(client, "http://files/a.mp3", tmp_path / "a.mp3")

    @pytest.mark.asyncio
    async def test_rejects_empty_file(self, tmp_path: Path):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, headers={"content-type": "audio/mpeg"}, content=b"")
        )
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(InputValidationFailure, match="File is empty"):
                await download_mp3(client, "http://files/a.mp3", tmp_path / "a.mp3")


class TestTempFiles:
    def test_new_temp_path_is_unique(self):
        assert new_temp_path(".htm") != new_temp_path(".htm")
        assert new_temp_path(".htm").suffix == ".htm"

    def test_remove_quietly(self, tmp_path: Path):
        path = tmp_path / "x.htm"
        path.write_text("x")
        remove_quietly(path)
        remove_quietly(path)
        remove_quietly(None)
        assert not path.exists()


class FakeYoutubeDL:
    info = None
    error = None

    def __init__(self, options):
        self.options = options

    def __enter__(self):
        return self

    def __exit__(self, *args):
        return False

    def extract_info(self, url, download=True):
        if self.error:
            raise self.error
        return self.info


class TestPlaylist:
    @pytest.mark.asyncio
    async def test_entries_in_playlist_order(self, monkeypatch):
        FakeYoutubeDL.info = {
            "title": "Mix",
            "entries": [
                {"id": "a1", "title": "First", "url": "https://music.youtube.com/watch?v=a1"},
                None,
                {"id": "b2", "title": None},
                {"title": "no id"},
            ],
        }
        FakeYoutubeDL.error = None
        monkeypatch.setattr(playlist.yt_dlp, "YoutubeDL", FakeYoutubeDL)

        items = await playlist.fetch_playlist_items("https://music.youtube.com/playlist?list=PL1")

        assert items == [
            playlist.PlaylistItem("https://music.youtube.com/watch?v=a1", "First"),
            playlist.PlaylistItem("https://www.youtube.com/watch?v=b2", "https://www.youtube.com/watch?v=b2"),
        ]

    @pytest.mark.asyncio
    async def test_only_playlist_links(self):
        with pytest.raises(InputValidationFailure, match="Only the direct links on youtube playlist"):
            await playlist.fetch_playlist_items("https://youtu.be/abc")

    @pytest.mark.asyncio
    async def test_extraction_error(self, monkeypatch):
        FakeYoutubeDL.error = DownloadError("private playlist")
        monkeypatch.setattr(playlist.yt_dlp, "YoutubeDL", FakeYoutubeDL)

        with pytest.raises(InputValidationFailure, match="Unable to read the playlist"):
            await playlist.fetch_playlist_items("https://music.youtube.com/playlist?list=PL1")

        FakeYoutubeDL.error = None

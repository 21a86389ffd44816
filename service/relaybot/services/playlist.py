"""
Playlist expansion with yt-dlp flat extraction.
"""

import asyncio
from dataclasses import dataclass

import yt_dlp
from yt_dlp.utils import DownloadError

from relaybot.errors import InputValidationFailure
from relaybot.logging_config import get_logger

logger = get_logger(__name__)

PLAYLIST_PREFIX = "https://music.youtube.com/playlist"

YDL_OPTIONS = {
    "quiet": True,
    "no_warnings": True,
    "extract_flat": True,  # ids and titles only, no per-video requests
    "skip_download": True,
}


@dataclass(frozen=True)
class PlaylistItem:
    url: str
    title: str


def is_playlist_link(text: str) -> bool:
    return text.startswith(PLAYLIST_PREFIX)


def extract_playlist_items(url: str) -> list[PlaylistItem]:
    """Blocking: list the tracks of a playlist in playlist order."""
    with yt_dlp.YoutubeDL(YDL_OPTIONS) as ydl:
        info = ydl.extract_info(url, download=False)

    if not info:
        return []

    items = []
    for entry in info.get("entries") or []:
        if not entry:
            continue
        video_id = entry.get("id", "")
        entry_url = entry.get("url") or (f"https://www.youtube.com/watch?v={video_id}" if video_id else "")
        if not entry_url:
            continue
        items.append(PlaylistItem(url=entry_url, title=entry.get("title") or entry_url))

    logger.info(f"Playlist '{info.get('title', url)}' has {len(items)} tracks")
    return items


async def fetch_playlist_items(url: str) -> list[PlaylistItem]:
    """Expand a playlist link off the event loop."""
    if not is_playlist_link(url):
        raise InputValidationFailure("Only the direct links on youtube playlist are supported.")
    try:
        return await asyncio.to_thread(extract_playlist_items, url)
    except DownloadError as e:
        logger.warning(f"Unable to read playlist {url}: {e}")
        raise InputValidationFailure("Unable to read the playlist") from e

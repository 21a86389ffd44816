"""
Media intake helpers: temp files, mp3 link downloads, size limits, time ranges.
"""

import re
import tempfile
import uuid
from pathlib import Path
from typing import Optional

import httpx

from relaybot.errors import InputValidationFailure
from relaybot.logging_config import get_logger

logger = get_logger(__name__)

MP3_CONTENT_TYPE = "audio/mpeg"
YOUTUBE_PREFIXES = ("https://youtube.com", "https://www.youtube.com", "https://youtu.be")

_TIME_RE = re.compile(r"^(\d{2}):([0-5]\d):([0-5]\d)$")


def new_temp_path(suffix: str) -> Path:
    """Unique path in the system temp dir. The file is not created."""
    return Path(tempfile.gettempdir()) / f"{uuid.uuid4()}{suffix}"


def remove_quietly(path: Optional[Path]) -> None:
    """Delete a temp file if it exists; log instead of raising."""
    if path is None:
        return
    try:
        Path(path).unlink(missing_ok=True)
        logger.info(f"The file '{path}' was deleted")
    except OSError as e:
        logger.warning(f"Unable to delete '{path}': {e}")


def size_in_mb(size_bytes: int) -> float:
    return size_bytes / (1024 * 1024)


def check_file_size(size_bytes: Optional[int], limit_mb: float, too_big: str = "The audio file is too big") -> None:
    """Reject files Telegram reports without a size, or above limit_mb."""
    if size_bytes is None:
        raise InputValidationFailure("Unable to determine the file size")
    if size_in_mb(size_bytes) > limit_mb:
        raise InputValidationFailure(too_big)


def check_mp3_link(url: str, allowed_prefix: str) -> None:
    if not url:
        raise InputValidationFailure("Url is empty")
    if not allowed_prefix or not url.startswith(allowed_prefix):
        raise InputValidationFailure(
            "Only the direct links to audio files are allowed. Or your file sharing server is not allowed."
        )


async def download_mp3(client: httpx.AsyncClient, url: str, dest: Path) -> Path:
    """
    Download a direct mp3 link into dest.

    The response must be served as audio/mpeg and must not be empty.
    """
    async with client.stream("GET", url) as response:
        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        if not response.is_success or content_type != MP3_CONTENT_TYPE:
            logger.warning(f"mp3 link answered status={response.status_code} content-type={content_type!r}")
            raise InputValidationFailure("Only the direct mp3 file links are allowed")

        with open(dest, "wb") as f:
            async for chunk in response.aiter_bytes():
                f.write(chunk)

    if dest.stat().st_size == 0:
        raise InputValidationFailure("File is empty")

    return dest


def is_youtube_link(text: str) -> bool:
    return text.startswith(YOUTUBE_PREFIXES)


def parse_time(value: str) -> Optional[str]:
    """Normalise hh:mm:ss, or None when value is not in that format."""
    match = _TIME_RE.match(value)
    if not match:
        return None
    return ":".join(match.groups())


def parse_youtube_request(text: str) -> tuple[str, Optional[str], Optional[str]]:
    """
    Split "<url> [hh:mm:ss hh:mm:ss]" into (url, start, end).

    A range is used only when both bounds parse; otherwise the whole track
    is requested.
    """
    args = text.split(" ")
    url = args[0]
    if not url:
        raise InputValidationFailure("Url is empty")

    if len(args) == 3:
        start, end = parse_time(args[1]), parse_time(args[2])
        if start and end:
            return url, start, end

    return url, None, None

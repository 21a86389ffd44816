"""
Result delivery.

Short results go to the chat as a plain message. Anything longer than the
inline limit is wrapped in a minimal HTML page, uploaded to the file sharing
backend and replaced by a hyperlink.

Every step of the upload path fails with its own message: file sharing down,
unable to authorize, upload rejected, unusable upload response.
"""

import html
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol

from relaybot.services.gateway import FileSharingApi
from relaybot.services.media import new_temp_path, remove_quietly
from relaybot.services.token_broker import Credential, TokenBroker
from relaybot.logging_config import get_logger

logger = get_logger(__name__)

INLINE_TEXT_LIMIT = 4000

HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
{head_extra}</head>
<body>
    <main>
{body}
    </main>
</body>
</html>
"""


class TextSender(Protocol):
    async def send_text(self, text: str, parse_mode: Optional[str] = None): ...


class DeliveryMode(str, Enum):
    INLINE = "inline"
    LINK = "link"


@dataclass(frozen=True)
class DeliveryOutcome:
    mode: DeliveryMode
    url: Optional[str] = None


def text_to_html(text: str) -> str:
    """Escape text into a paragraph, keeping line breaks."""
    escaped = html.escape(text).replace("\n", "<br>\n")
    return f"        <p>\n{escaped}\n        </p>"


def render_html_document(body: str, title: str, head_extra: str = "") -> str:
    return HTML_TEMPLATE.format(title=html.escape(title), head_extra=head_extra, body=body)


def html_link(url: str, title: str) -> str:
    return f'<a href="{html.escape(url, quote=True)}">{html.escape(title)}</a>'


class ResultDispatcher:
    def __init__(
        self,
        sender: TextSender,
        file_sharing: FileSharingApi,
        broker: TokenBroker,
        credential: Optional[Credential] = None,
        inline_limit: int = INLINE_TEXT_LIMIT,
        refresh_threshold: int = 30,
    ):
        self.sender = sender
        self.file_sharing = file_sharing
        self.broker = broker
        self.credential = credential
        self.inline_limit = inline_limit
        self.refresh_threshold = refresh_threshold

    async def deliver(self, result: str, *, title: str = "Data", inline_prefix: str = "") -> DeliveryOutcome:
        """
        Inline iff len(result) <= inline_limit, otherwise upload and link.

        inline_prefix is prepended to the inline message only; it does not
        count against the limit.
        """
        if len(result) <= self.inline_limit:
            await self.sender.send_text(f"{inline_prefix}{result}")
            logger.info(f"Delivered {len(result)} chars inline")
            return DeliveryOutcome(DeliveryMode.INLINE)

        document = render_html_document(text_to_html(result), title)
        url = await self.upload_html(document)
        await self.deliver_url(url, title)
        logger.info(f"Delivered {len(result)} chars as a link")
        return DeliveryOutcome(DeliveryMode.LINK, url)

    async def deliver_url(self, url: str, title: str) -> DeliveryOutcome:
        await self.sender.send_text(html_link(url, title), parse_mode="HTML")
        return DeliveryOutcome(DeliveryMode.LINK, url)

    async def deliver_html(self, document: str, title: str) -> DeliveryOutcome:
        """Upload a ready HTML document and send its link."""
        url = await self.upload_html(document)
        return await self.deliver_url(url, title)

    async def upload_html(self, document: str) -> str:
        path = new_temp_path(".htm")
        try:
            path.write_text(document, encoding="utf-8")
            return await self.upload_file(path)
        finally:
            remove_quietly(path)

    async def upload_file(self, path: Path) -> str:
        """
        Health probe, credential refresh, upload. Returns the public URL.

        Raises ServiceUnhealthy, AuthFailure or UploadFailure.
        """
        await self.file_sharing.check_health()
        self.credential = await self.broker.ensure_fresh(self.credential, self.refresh_threshold)
        url = await self.file_sharing.upload(self.credential, path)
        logger.info(f"Uploaded {Path(path).name}")
        return url

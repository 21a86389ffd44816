"""
Language injection: a bilingual English/Italian reading page.

The English text is split into sentences and each sentence is translated to
simple Italian on its own. Sentences that fail to translate are logged and
left without a translation. The page is uploaded and linked; if the upload
path fails the HTML file itself is sent as a document.
"""

import html
import re
from typing import Optional, Protocol

import anthropic

from relaybot.agents.prompts import ITALIAN_TRANSLATION_PROMPT
from relaybot.errors import RelayError
from relaybot.services.media import new_temp_path, remove_quietly
from relaybot.services.result_dispatcher import ResultDispatcher, render_html_document
from relaybot.services.summarization import response_text
from relaybot.logging_config import get_logger

logger = get_logger(__name__)

SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")

DOCUMENT_TITLE = "Translation (English and Italian)"

DOCUMENT_STYLE = """    <style type="text/css">
        .english-text {
            font-style: italic;
            color: #0000FF;
        }
        .italian-text {
            font-weight: bold;
            color: #008000;
        }
    </style>
"""


class DocumentSender(Protocol):
    async def send_text(self, text: str, parse_mode: Optional[str] = None): ...

    async def send_document(self, path, caption: Optional[str] = None): ...


def split_sentences(text: str) -> list[str]:
    return [s for s in SENTENCE_BOUNDARY.split(text) if s.strip()]


class LanguageInjector:
    def __init__(self, api_key: str, model: str, allowed_ids: set[int], client=None):
        self.model = model
        self.allowed_ids = allowed_ids
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key)

    def is_allowed(self, user_id: int) -> bool:
        return user_id in self.allowed_ids

    async def translate_sentence(self, sentence: str) -> str:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=2500,
            messages=[{"role": "user", "content": ITALIAN_TRANSLATION_PROMPT.format(sentence=sentence)}],
        )
        return response_text(response)

    async def build_document(self, text: str) -> str:
        paragraphs = []
        for sentence in split_sentences(text):
            paragraphs.append(
                f'        <p lang="en"><span class="english-text">{html.escape(sentence)}</span></p>'
            )
            try:
                italian = await self.translate_sentence(sentence)
            except anthropic.APIError as e:
                logger.error(f"Error occurred while translating sentence: {sentence!r}: {e}")
                continue
            paragraphs.append(
                f'        <p lang="it"><span class="italian-text">{html.escape(italian)}</span></p>'
            )
        return render_html_document("\n".join(paragraphs), DOCUMENT_TITLE, head_extra=DOCUMENT_STYLE)

    async def inject(
        self,
        user_id: int,
        text: str,
        sender: DocumentSender,
        dispatcher: ResultDispatcher,
    ) -> bool:
        """Build and deliver the bilingual page. Returns False when nothing was sent."""
        if not self.is_allowed(user_id):
            logger.error(f"User {user_id} is not allowed to use language injection")
            return False

        if not text.strip():
            return False

        document = await self.build_document(text)

        try:
            await dispatcher.deliver_html(document, DOCUMENT_TITLE)
            logger.info(f"Bilingual page delivered to {user_id} as a link")
            return True
        except RelayError as e:
            logger.error(f"Error occurred during file upload or authentication: {e.message}")

        path = new_temp_path(".htm")
        try:
            path.write_text(document, encoding="utf-8")
            await sender.send_document(path, caption="Here's the translation file:")
        finally:
            remove_quietly(path)
        return True

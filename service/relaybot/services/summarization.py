"""
Transcript summarization with the Anthropic Messages API.

Each call uses the chat's own Anthropic key.
"""

import anthropic

from relaybot.agents.prompts import DEFAULT_SUMMARY_PROMPT, SUMMARY_USER_TEMPLATE
from relaybot.config import get_settings
from relaybot.errors import RelayError, ErrorCode
from relaybot.logging_config import get_logger

logger = get_logger(__name__)


def response_text(response) -> str:
    """Concatenate the text blocks of a Messages API response."""
    return "".join(block.text for block in response.content if getattr(block, "type", "") == "text").strip()


class SummaryService:
    def __init__(self, api_key: str, model: str | None = None, max_tokens: int | None = None, client=None):
        settings = get_settings()
        self.model = model or settings.summary_model
        self.max_tokens = max_tokens or settings.summary_max_tokens
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key)

    async def summarize(self, transcript: str, prompt: str = "") -> str:
        content = SUMMARY_USER_TEMPLATE.format(
            prompt=prompt or DEFAULT_SUMMARY_PROMPT,
            transcript=transcript,
        )
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": content}],
            )
        except anthropic.APIError as e:
            logger.error(f"Summary request failed: {e}")
            raise RelayError(f"Unable to get the summary: {e}", code=ErrorCode.SUBMISSION_FAILURE) from e

        summary = response_text(response)
        if not summary:
            raise RelayError("The summary is empty", code=ErrorCode.EMPTY_RESULT)

        logger.info(f"Summary of {len(transcript)} chars is {len(summary)} chars")
        return summary

"""
Update and message kinds.

Every incoming update is classified once into a closed set of kinds and
routed on that kind; anything the bots do not handle lands in UNKNOWN.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from telegram import Message, Update


class UpdateKind(str, Enum):
    MESSAGE = "message"
    EDITED_MESSAGE = "edited_message"
    CALLBACK_QUERY = "callback_query"
    INLINE_QUERY = "inline_query"
    CHOSEN_INLINE_RESULT = "chosen_inline_result"
    POLL = "poll"
    UNKNOWN = "unknown"


class MessageKind(str, Enum):
    TEXT = "text"
    AUDIO = "audio"
    VOICE = "voice"
    DOCUMENT = "document"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Command:
    name: str
    argument: str = ""


def classify_update(update: Update) -> UpdateKind:
    if update.message is not None:
        return UpdateKind.MESSAGE
    if update.edited_message is not None:
        return UpdateKind.EDITED_MESSAGE
    if update.callback_query is not None:
        return UpdateKind.CALLBACK_QUERY
    if update.inline_query is not None:
        return UpdateKind.INLINE_QUERY
    if update.chosen_inline_result is not None:
        return UpdateKind.CHOSEN_INLINE_RESULT
    if update.poll is not None:
        return UpdateKind.POLL
    return UpdateKind.UNKNOWN


def classify_message(message: Optional[Message]) -> MessageKind:
    if message is None:
        return MessageKind.UNKNOWN
    if message.text is not None:
        return MessageKind.TEXT
    if message.audio is not None:
        return MessageKind.AUDIO
    if message.voice is not None:
        return MessageKind.VOICE
    if message.document is not None:
        return MessageKind.DOCUMENT
    return MessageKind.UNKNOWN


def parse_command(text: Optional[str]) -> Command:
    """
    First whitespace-separated token is the command, the rest is its argument.

    "/key@MyBot sk-123" -> Command("/key", "sk-123"). Text that does not start
    with "/" yields an empty command name.
    """
    text = (text or "").strip()
    if not text.startswith("/"):
        return Command("", text)

    head, _, rest = text.partition(" ")
    name = head.split("@", 1)[0].lower()
    return Command(name, rest.strip())

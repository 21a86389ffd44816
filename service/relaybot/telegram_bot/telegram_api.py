"""
Telegram Bot API wrapper for replying in a chat.

Every reply is linked to the message that triggered it.
"""

from pathlib import Path
from typing import Optional

from telegram import Bot, Message, ReplyParameters

WAITING_INDICATOR = "⏳"


class ChatReplier:
    """Sends replies to one chat, linked to one incoming message."""

    def __init__(self, bot: Bot, chat_id: int, reply_to: Optional[int] = None):
        self.bot = bot
        self.chat_id = chat_id
        self.reply_to = reply_to

    @classmethod
    def for_message(cls, bot: Bot, message: Message) -> "ChatReplier":
        return cls(bot, message.chat_id, message.message_id)

    def _reply_parameters(self) -> Optional[ReplyParameters]:
        if self.reply_to is None:
            return None
        return ReplyParameters(message_id=self.reply_to, allow_sending_without_reply=True)

    async def send_text(self, text: str, parse_mode: Optional[str] = None, reply_markup=None) -> Message:
        """
        Send a text message.

        Args:
            text: Message text
            parse_mode: Optional parse mode (Markdown, HTML)
            reply_markup: Optional inline keyboard
        """
        return await self.bot.send_message(
            chat_id=self.chat_id,
            text=text,
            parse_mode=parse_mode,
            reply_markup=reply_markup,
            reply_parameters=self._reply_parameters(),
        )

    async def send_waiting(self) -> Message:
        """Hourglass shown while a request is being processed."""
        return await self.bot.send_message(chat_id=self.chat_id, text=WAITING_INDICATOR)

    async def delete(self, message_id: int) -> None:
        await self.bot.delete_message(chat_id=self.chat_id, message_id=message_id)

    async def send_voice(self, path: Path) -> Message:
        with open(path, "rb") as f:
            return await self.bot.send_voice(
                chat_id=self.chat_id,
                voice=f,
                filename=Path(path).name,
                reply_parameters=self._reply_parameters(),
            )

    async def send_audio(self, path: Path) -> Message:
        with open(path, "rb") as f:
            return await self.bot.send_audio(
                chat_id=self.chat_id,
                audio=f,
                filename=Path(path).name,
                reply_parameters=self._reply_parameters(),
            )

    async def send_document(self, path: Path, caption: Optional[str] = None) -> Message:
        with open(path, "rb") as f:
            return await self.bot.send_document(
                chat_id=self.chat_id,
                document=f,
                filename=Path(path).name,
                caption=caption,
                reply_parameters=self._reply_parameters(),
            )

    async def download_file(self, file_id: str, dest: Path) -> Path:
        """Download a Telegram-hosted file into dest."""
        telegram_file = await self.bot.get_file(file_id)
        await telegram_file.download_to_drive(custom_path=dest)
        return dest

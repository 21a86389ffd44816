"""
Transcribe bot: mp3 link or audio attachment -> transcription.
"""

from pathlib import Path
from typing import Optional

from relaybot.errors import InputValidationFailure
from relaybot.services.media import remove_quietly
from relaybot.telegram_bot.deps import BotDeps
from relaybot.telegram_bot.handlers import (
    BotRoutes,
    RequestContext,
    guarded_reply,
    key_setter,
    receive_mp3_link,
    receive_telegram_file,
    run_audio_job,
)
from relaybot.telegram_bot.updates import MessageKind

KEY_COMMAND = "/key"

USAGE = """Send me a direct mp3 link or an audio file and I will transcribe it.

Commands:
/key <OpenAI API key> - set your OpenAI API key (required)"""


def require_openai_key(ctx: RequestContext) -> str:
    key = ctx.user_settings.openai_api_key
    if not key:
        raise InputValidationFailure("You need to setup your OpenAI API key")
    return key


async def transcribe(ctx: RequestContext, path: Path, key: str) -> None:
    await run_audio_job(ctx, path, {"prompt": "", "openaiApiKey": key}, title="Transcription")


async def handle_link(ctx: RequestContext) -> None:
    path: Optional[Path] = None
    async with guarded_reply(ctx.replier):
        key = require_openai_key(ctx)
        try:
            path = await receive_mp3_link(ctx)
            await transcribe(ctx, path, key)
        finally:
            remove_quietly(path)


async def handle_audio(ctx: RequestContext) -> None:
    attachment = ctx.message.audio or ctx.message.voice
    suffix = ".mp3" if ctx.message.audio else ".ogg"
    path: Optional[Path] = None
    async with guarded_reply(ctx.replier):
        key = require_openai_key(ctx)
        try:
            path = await receive_telegram_file(ctx, attachment.file_id, attachment.file_size, suffix)
            await transcribe(ctx, path, key)
        finally:
            remove_quietly(path)


def build_routes(deps: BotDeps) -> BotRoutes:
    return BotRoutes(
        usage=USAGE,
        commands={KEY_COMMAND: key_setter()},
        default_text=handle_link,
        media={MessageKind.AUDIO: handle_audio, MessageKind.VOICE: handle_audio},
    )

"""
Translate bot: mp3 link or audio attachment -> English translation.

With language injection on, the English result is also turned into an
English/Italian reading page in the background.
"""

from pathlib import Path
from typing import Optional

from relaybot.services.media import remove_quietly
from relaybot.logging_config import bot_logger as logger
from relaybot.telegram_bot.deps import BotDeps
from relaybot.telegram_bot.handlers import (
    BotRoutes,
    RequestContext,
    guarded_reply,
    key_setter,
    prompt_setter,
    receive_mp3_link,
    receive_telegram_file,
    run_audio_job,
)
from relaybot.telegram_bot.telegram_api import ChatReplier
from relaybot.telegram_bot.transcribe_handlers import require_openai_key
from relaybot.telegram_bot.updates import MessageKind

KEY_COMMAND = "/key"
PROMPT_COMMAND = "/prompt"
INJECT_COMMAND = "/inject"

USAGE = """Send me a direct mp3 link or an audio file and I will translate it to English.

Commands:
/key <OpenAI API key> - set your OpenAI API key (required)
/prompt <text> - hint for the translation model
/inject - toggle the English/Italian reading page"""


async def toggle_injection(ctx: RequestContext) -> None:
    settings = ctx.user_settings
    settings.inject_language = not settings.inject_language
    await ctx.replier.send_text(f"The language injection was set to: {settings.inject_language}")


async def translate(ctx: RequestContext, path: Path) -> None:
    settings = ctx.user_settings
    key = require_openai_key(ctx)
    result = await run_audio_job(
        ctx, path, {"prompt": settings.prompt, "openaiApiKey": key}, title="Translation"
    )

    if settings.inject_language:
        start_injection(ctx, result)


def start_injection(ctx: RequestContext, text: str) -> None:
    injector = ctx.deps.injector
    if injector is None:
        logger.warning(f"[{ctx.deps.name}] Language injection is not configured")
        return

    sender = ChatReplier(ctx.replier.bot, ctx.chat_id)
    dispatcher = ctx.deps.dispatcher(sender)
    ctx.deps.spawn(run_injection(ctx.deps, ctx.chat_id, text, sender, dispatcher))


async def run_injection(deps: BotDeps, chat_id: int, text: str, sender: ChatReplier, dispatcher) -> None:
    """Background task boundary: failures are logged and reported to the chat."""
    try:
        await deps.injector.inject(chat_id, text, sender, dispatcher)
    except Exception as e:
        logger.error(f"An error occurred during language injection: {e}", exc_info=True)
        await sender.send_text(str(e) or type(e).__name__)


async def handle_link(ctx: RequestContext) -> None:
    path: Optional[Path] = None
    async with guarded_reply(ctx.replier):
        require_openai_key(ctx)
        try:
            path = await receive_mp3_link(ctx)
            await translate(ctx, path)
        finally:
            remove_quietly(path)


async def handle_audio(ctx: RequestContext) -> None:
    attachment = ctx.message.audio or ctx.message.voice
    suffix = ".mp3" if ctx.message.audio else ".ogg"
    path: Optional[Path] = None
    async with guarded_reply(ctx.replier):
        require_openai_key(ctx)
        try:
            path = await receive_telegram_file(ctx, attachment.file_id, attachment.file_size, suffix)
            await translate(ctx, path)
        finally:
            remove_quietly(path)


def build_routes(deps: BotDeps) -> BotRoutes:
    return BotRoutes(
        usage=USAGE,
        commands={
            KEY_COMMAND: key_setter(),
            PROMPT_COMMAND: prompt_setter(),
            INJECT_COMMAND: toggle_injection,
        },
        default_text=handle_link,
        media={MessageKind.AUDIO: handle_audio, MessageKind.VOICE: handle_audio},
    )

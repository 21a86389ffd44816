"""
Recap bot: meeting recording or transcript -> summary.

An mp3 link is transcribed first and the raw transcript is delivered before
the summary; a .txt document is summarized directly.
"""

from pathlib import Path
from typing import Optional

from relaybot.agents.prompts import DEFAULT_SUMMARY_PROMPT
from relaybot.errors import InputValidationFailure
from relaybot.services.media import remove_quietly
from relaybot.logging_config import bot_logger as logger
from relaybot.telegram_bot.context import UserSettings
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
from relaybot.telegram_bot.updates import MessageKind

KEY_OPENAI_COMMAND = "/key-openai"
KEY_ANTHROPIC_COMMAND = "/key-anthropic"
PROMPT_COMMAND = "/prompt"

USAGE = """Send me a direct mp3 link of a meeting recording or a .txt transcript and I will summarize it.

Commands:
/key-openai <key> - set your OpenAI API key (required)
/key-anthropic <key> - set your Anthropic API key (required)
/prompt <text> - replace the summary instructions"""


def default_settings() -> UserSettings:
    return UserSettings(prompt=DEFAULT_SUMMARY_PROMPT)


def require_keys(ctx: RequestContext) -> UserSettings:
    settings = ctx.user_settings
    if not settings.openai_api_key or not settings.anthropic_api_key:
        raise InputValidationFailure("You need to setup your OpenAI API key and Anthropic API key")
    return settings


async def summarize(ctx: RequestContext, transcript: str, settings: UserSettings) -> None:
    summarizer = ctx.deps.summarizer_factory(settings.anthropic_api_key)
    summary = await summarizer.summarize(transcript, settings.prompt)
    await ctx.deps.dispatcher(ctx.replier).deliver(summary, title="Summary")


async def handle_link(ctx: RequestContext) -> None:
    path: Optional[Path] = None
    async with guarded_reply(ctx.replier):
        settings = require_keys(ctx)
        try:
            path = await receive_mp3_link(ctx)
            transcript = await run_audio_job(
                ctx,
                path,
                {"prompt": "", "openaiApiKey": settings.openai_api_key},
                title="Raw data",
                inline_prefix="Raw data:\n\n",
            )
        finally:
            remove_quietly(path)
        await summarize(ctx, transcript, settings)


async def handle_document(ctx: RequestContext) -> None:
    document = ctx.message.document
    path: Optional[Path] = None
    async with guarded_reply(ctx.replier):
        settings = require_keys(ctx)
        if not (document.file_name or "").lower().endswith(".txt"):
            raise InputValidationFailure("We are working only with TXT files")
        try:
            path = await receive_telegram_file(
                ctx, document.file_id, document.file_size, ".txt", too_big="The file is too big"
            )
            transcript = path.read_text(encoding="utf-8", errors="replace")
        finally:
            remove_quietly(path)
        logger.info(f"[{ctx.deps.name}] Summarizing a {len(transcript)} chars document")
        await summarize(ctx, transcript, settings)


def build_routes(deps: BotDeps) -> BotRoutes:
    return BotRoutes(
        usage=USAGE,
        commands={
            KEY_OPENAI_COMMAND: key_setter("openai_api_key"),
            KEY_ANTHROPIC_COMMAND: key_setter("anthropic_api_key"),
            PROMPT_COMMAND: prompt_setter(),
        },
        default_text=handle_link,
        media={MessageKind.DOCUMENT: handle_document},
    )

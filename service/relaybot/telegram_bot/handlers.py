"""
Telegram update routing shared by all bots.

Every update goes through handle_update, which classifies it once and picks
an arm: message, callback query, inline query, chosen inline result, poll,
or unknown. Message handlers come from the bot's BotRoutes; everything else
is common.

Handlers that do remote work run inside guarded_reply: an hourglass is shown
while they run, and any failure becomes exactly one reply to the triggering
message.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Optional

from telegram import (
    CallbackQuery,
    ChosenInlineResult,
    InlineQuery,
    InlineQueryResultArticle,
    InputTextMessageContent,
    Message,
    Poll,
    Update,
)
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from relaybot.errors import InputValidationFailure, RelayError
from relaybot.services.jobs import AudioPayload
from relaybot.services.media import check_file_size, check_mp3_link, download_mp3, new_temp_path, remove_quietly
from relaybot.logging_config import bot_logger as logger
from relaybot.telegram_bot.context import UserSettings
from relaybot.telegram_bot.deps import BotDeps
from relaybot.telegram_bot.telegram_api import ChatReplier
from relaybot.telegram_bot.updates import (
    Command,
    MessageKind,
    UpdateKind,
    classify_message,
    classify_update,
    parse_command,
)


@dataclass
class RequestContext:
    """One incoming message and everything needed to answer it."""
    deps: BotDeps
    message: Message
    replier: ChatReplier
    command: Command

    @property
    def chat_id(self) -> int:
        return self.message.chat_id

    @property
    def user_settings(self) -> UserSettings:
        return self.deps.sessions.get_or_create(self.chat_id)


Handler = Callable[[RequestContext], Awaitable[None]]
CallbackHandler = Callable[[BotDeps, CallbackQuery], Awaitable[None]]


@dataclass
class BotRoutes:
    usage: str
    commands: dict[str, Handler] = field(default_factory=dict)
    default_text: Optional[Handler] = None
    media: dict[MessageKind, Handler] = field(default_factory=dict)
    callback: Optional[CallbackHandler] = None


@asynccontextmanager
async def guarded_reply(replier: ChatReplier):
    """
    Show the waiting indicator around a unit of work.

    RelayError -> its own message; anything else -> "<type>\\n<message>".
    The indicator is always removed.
    """
    waiting = await replier.send_waiting()
    try:
        yield
    except RelayError as e:
        logger.warning(f"{e.code.value}: {e.message}")
        await replier.send_text(e.user_message)
    except Exception as e:
        logger.error(f"Unexpected failure: {e}", exc_info=True)
        await replier.send_text(f"{type(e).__name__}\n{e}")
    finally:
        try:
            await replier.delete(waiting.message_id)
        except TelegramError as e:
            logger.warning(f"Unable to delete the waiting message: {e}")


# Settings commands

def setting_setter(attr: str, ok_text: str, fail_text: str) -> Handler:
    """Handler storing the command argument into UserSettings.<attr>."""

    async def handle(ctx: RequestContext) -> None:
        value = ctx.command.argument.strip()
        if not value:
            await ctx.replier.send_text(fail_text)
            return
        setattr(ctx.user_settings, attr, value)
        logger.info(f"[{ctx.deps.name}] {attr} set for chat {ctx.chat_id}")
        await ctx.replier.send_text(ok_text)

    return handle


def key_setter(attr: str = "openai_api_key") -> Handler:
    return setting_setter(attr, "The key was set", "Unable to set the key")


def prompt_setter() -> Handler:
    return setting_setter("prompt", "The prompt was set", "Unable to set the prompt")


# Media intake and the single-job pipeline

async def receive_mp3_link(ctx: RequestContext) -> Path:
    """Validate and download a direct mp3 link from the message text."""
    url = (ctx.message.text or "").split(" ")[0]
    check_mp3_link(url, ctx.deps.settings.allowed_file_sharing_server)
    path = new_temp_path(".mp3")
    try:
        return await download_mp3(ctx.deps.http, url, path)
    except Exception:
        remove_quietly(path)
        raise


async def receive_telegram_file(
    ctx: RequestContext,
    file_id: str,
    file_size: Optional[int],
    suffix: str,
    too_big: str = "The audio file is too big",
) -> Path:
    """Download a Telegram-hosted attachment within the Telegram size limit."""
    check_file_size(file_size, ctx.deps.settings.max_telegram_file_mb, too_big)
    path = new_temp_path(suffix)
    try:
        await ctx.replier.download_file(file_id, path)
        if not path.exists() or path.stat().st_size == 0:
            raise InputValidationFailure("File is empty")
    except Exception:
        remove_quietly(path)
        raise
    return path


async def run_audio_job(
    ctx: RequestContext,
    path: Path,
    fields: dict[str, str],
    title: str,
    inline_prefix: str = "",
) -> str:
    """Submit one audio file, wait for the result, deliver it. Returns the result."""
    orchestrator = ctx.deps.orchestrator(ctx.deps.audio)
    result, credential = await orchestrator.run(AudioPayload(path, fields), owner_id=ctx.chat_id)
    dispatcher = ctx.deps.dispatcher(ctx.replier, credential)
    await dispatcher.deliver(result, title=title, inline_prefix=inline_prefix)
    return result


# Update arms

async def send_usage(ctx: RequestContext, routes: BotRoutes) -> None:
    await ctx.replier.send_text(routes.usage)


async def on_message(deps: BotDeps, routes: BotRoutes, message: Message, bot) -> None:
    kind = classify_message(message)
    logger.info(f"[{deps.name}] Receive message type: {kind.value}")

    replier = ChatReplier.for_message(bot, message)

    if kind is MessageKind.TEXT:
        command = parse_command(message.text)
        ctx = RequestContext(deps, message, replier, command)
        if command.name in ("/start", "/help"):
            await send_usage(ctx, routes)
            return
        handler = routes.commands.get(command.name) or routes.default_text
    else:
        ctx = RequestContext(deps, message, replier, Command(""))
        handler = routes.media.get(kind)

    if handler is None:
        logger.info(f"[{deps.name}] No handler for {kind.value} message")
        return

    await handler(ctx)


async def on_callback_query(deps: BotDeps, routes: BotRoutes, query: CallbackQuery) -> None:
    logger.info(f"[{deps.name}] Received inline keyboard callback from: {query.id}")
    if routes.callback is None:
        await query.answer()
        return
    await routes.callback(deps, query)


async def on_inline_query(deps: BotDeps, routes: BotRoutes, query: InlineQuery) -> None:
    logger.info(f"[{deps.name}] Received inline query from: {query.from_user.id}")
    results = [
        InlineQueryResultArticle(
            id="usage",
            title="How to use this bot",
            input_message_content=InputTextMessageContent(routes.usage),
        )
    ]
    await query.answer(results, cache_time=0, is_personal=True)


async def on_chosen_inline_result(deps: BotDeps, result: ChosenInlineResult, bot) -> None:
    logger.info(f"[{deps.name}] Received inline result: {result.result_id}")
    await bot.send_message(chat_id=result.from_user.id, text=f"You chose result with Id: {result.result_id}")


async def on_poll(deps: BotDeps, poll: Poll) -> None:
    logger.info(f"[{deps.name}] Received Poll info: {poll.question}")


async def on_unknown(deps: BotDeps, update: Update) -> None:
    logger.info(f"[{deps.name}] Unknown update type: {update.update_id}")


async def handle_update(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Single entry point for every update of a bot."""
    deps: BotDeps = context.bot_data["deps"]
    routes: BotRoutes = context.bot_data["routes"]

    kind = classify_update(update)
    if kind is UpdateKind.MESSAGE:
        await on_message(deps, routes, update.message, context.bot)
    elif kind is UpdateKind.EDITED_MESSAGE:
        await on_message(deps, routes, update.edited_message, context.bot)
    elif kind is UpdateKind.CALLBACK_QUERY:
        await on_callback_query(deps, routes, update.callback_query)
    elif kind is UpdateKind.INLINE_QUERY:
        await on_inline_query(deps, routes, update.inline_query)
    elif kind is UpdateKind.CHOSEN_INLINE_RESULT:
        await on_chosen_inline_result(deps, update.chosen_inline_result, context.bot)
    elif kind is UpdateKind.POLL:
        await on_poll(deps, update.poll)
    else:
        await on_unknown(deps, update)


async def handle_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle errors in handlers."""
    logger.error(f"Bot error: {context.error}", exc_info=context.error)

    if isinstance(update, Update) and update.effective_message:
        await update.effective_message.reply_text(
            "Error processing message.\n"
            "Try again or use /help"
        )

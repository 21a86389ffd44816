"""
YouTube bot: video link (optionally with a time range) -> audio.

Delivery follows the chat's /mode: voice message, audio file, both, or a
file sharing link. Files too big for Telegram always go out as a link.
"""

from pathlib import Path

from telegram import CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup

from relaybot.errors import InputValidationFailure
from relaybot.services.media import (
    is_youtube_link,
    new_temp_path,
    parse_youtube_request,
    remove_quietly,
    size_in_mb,
)
from relaybot.logging_config import bot_logger as logger
from relaybot.telegram_bot.context import AudioMode
from relaybot.telegram_bot.deps import BotDeps
from relaybot.telegram_bot.handlers import BotRoutes, RequestContext, guarded_reply

MODE_COMMAND = "/mode"

USAGE = """Send me a YouTube link and I will send you its audio.

Add a start and end time to cut a part: <link> hh:mm:ss hh:mm:ss

Commands:
/mode - choose how the audio is delivered (voice, audio, both or link)"""


def mode_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(mode.value, callback_data=mode.value) for mode in AudioMode]
    ])


async def send_mode_keyboard(ctx: RequestContext) -> None:
    await ctx.replier.send_text("Select the message mode:", reply_markup=mode_keyboard())


async def handle_mode_selected(deps: BotDeps, query: CallbackQuery) -> None:
    await query.answer()
    if query.message is None or query.data is None:
        return

    chat_id = query.message.chat.id
    mode = AudioMode.parse(query.data) or AudioMode.BOTH
    deps.sessions.get_or_create(chat_id).audio_mode = mode
    logger.info(f"[{deps.name}] Selected message mode: {mode.value}")

    await query.get_bot().send_message(chat_id=chat_id, text=f"Selected message mode: {query.data}")


async def deliver_audio(ctx: RequestContext, path: Path, mode: AudioMode) -> None:
    too_big = size_in_mb(path.stat().st_size) >= ctx.deps.settings.max_inline_audio_mb

    if too_big or mode is AudioMode.LINK:
        dispatcher = ctx.deps.dispatcher(ctx.replier)
        url = await dispatcher.upload_file(path)
        await dispatcher.deliver_url(url, "Audio link")
        return

    if mode in (AudioMode.VOICE, AudioMode.BOTH):
        await ctx.replier.send_voice(path)
    if mode in (AudioMode.AUDIO, AudioMode.BOTH):
        await ctx.replier.send_audio(path)


async def handle_link(ctx: RequestContext) -> None:
    async with guarded_reply(ctx.replier):
        text = ctx.message.text or ""
        if not is_youtube_link(text):
            raise InputValidationFailure("Only the YouTube links are allowed")

        url, start, end = parse_youtube_request(text)
        mode = ctx.user_settings.audio_mode
        logger.info(f"[{ctx.deps.name}] Selected message mode: {mode.value}")

        youtube = ctx.deps.youtube
        await youtube.check_health()
        credential = await ctx.deps.broker.get_credential()
        path = new_temp_path(".mp3")
        try:
            await youtube.download_audio(credential, url, path, start, end)
            await deliver_audio(ctx, path, mode)
        finally:
            remove_quietly(path)


def build_routes(deps: BotDeps) -> BotRoutes:
    return BotRoutes(
        usage=USAGE,
        commands={MODE_COMMAND: send_mode_keyboard},
        default_text=handle_link,
        callback=handle_mode_selected,
    )

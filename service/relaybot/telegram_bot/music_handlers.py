"""
Music bot: playlist link -> archive links, one per chunk of tracks.

Chunks that fail are kept so the user can restart them with /restart <job id>.
"""

from relaybot.errors import InputValidationFailure
from relaybot.services.playlist import fetch_playlist_items, is_playlist_link
from relaybot.logging_config import bot_logger as logger
from relaybot.telegram_bot.deps import BotDeps
from relaybot.telegram_bot.handlers import BotRoutes, RequestContext, guarded_reply

RESTART_COMMAND = "/restart"

USAGE = """Send me a YouTube Music playlist link and I will pack its tracks into archives.

Commands:
/restart <job id> - run a failed archive job again"""


async def handle_playlist(ctx: RequestContext) -> None:
    async with guarded_reply(ctx.replier):
        text = ctx.message.text or ""
        if not is_playlist_link(text):
            raise InputValidationFailure("Only the direct links on youtube playlist are supported.")

        url = text.split(" ")[0]
        items = await fetch_playlist_items(url)
        if not items:
            raise InputValidationFailure("Playlist is empty")

        coordinator = ctx.deps.batch_coordinator(ctx.deps.music)
        failed = await coordinator.run(ctx.chat_id, items, ctx.replier, ctx.deps.dispatcher(ctx.replier))
        logger.info(f"[{ctx.deps.name}] Playlist of {len(items)} tracks done, {len(failed)} chunks failed")


async def handle_restart(ctx: RequestContext) -> None:
    async with guarded_reply(ctx.replier):
        restarter = ctx.deps.restarter(ctx.deps.music)
        job_id = ctx.command.argument.split(" ")[0]
        await restarter.restart(ctx.chat_id, job_id, ctx.replier)


def build_routes(deps: BotDeps) -> BotRoutes:
    return BotRoutes(
        usage=USAGE,
        commands={RESTART_COMMAND: handle_restart},
        default_text=handle_playlist,
    )

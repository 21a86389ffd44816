"""
Telegram bot applications.

One python-telegram-bot Application per configured bot. Each one routes every
update through a single TypeHandler into handle_update; BotDeps and BotRoutes
travel in bot_data.
"""

from types import ModuleType
from typing import Optional

from telegram import Update
from telegram.ext import Application, TypeHandler

from relaybot.config import Settings, get_settings
from relaybot.logging_config import bot_logger as logger
from relaybot.telegram_bot import (
    music_handlers,
    recap_handlers,
    transcribe_handlers,
    translate_handlers,
    youtube_handlers,
)
from relaybot.telegram_bot.context import UserSettings
from relaybot.telegram_bot.deps import build_deps
from relaybot.telegram_bot.handlers import handle_error, handle_update

BOT_MODULES: dict[str, ModuleType] = {
    "transcribe": transcribe_handlers,
    "translate": translate_handlers,
    "recap": recap_handlers,
    "music": music_handlers,
    "youtube": youtube_handlers,
}

# Applications keyed by bot name (initialized once)
_applications: dict[str, Application] = {}


async def close_http_client(application: Application) -> None:
    """post_shutdown hook for polling mode."""
    await application.bot_data["deps"].http.aclose()


def build_application(name: str, token: str, settings: Optional[Settings] = None) -> Application:
    """Create the Application for one bot and register its handlers."""
    settings = settings or get_settings()
    module = BOT_MODULES[name]

    application = (
        Application.builder()
        .token(token)
        .concurrent_updates(True)
        .post_shutdown(close_http_client)
        .build()
    )

    deps = build_deps(name, settings, session_defaults=getattr(module, "default_settings", UserSettings))
    application.bot_data["deps"] = deps
    application.bot_data["routes"] = module.build_routes(deps)

    application.add_handler(TypeHandler(Update, handle_update))
    application.add_error_handler(handle_error)

    logger.info(f"Telegram bot application '{name}' initialized")
    return application


def get_bot_application(name: str) -> Optional[Application]:
    """Get or create the application of a configured bot; None if it has no token."""
    if name in _applications:
        return _applications[name]

    settings = get_settings()
    token = settings.bot_tokens().get(name)
    if not token or name not in BOT_MODULES:
        return None

    _applications[name] = build_application(name, token, settings)
    return _applications[name]


async def handle_telegram_update(name: str, update_data: dict) -> None:
    """
    Process an incoming webhook update for one bot.

    Called by the FastAPI webhook endpoint in the background.
    """
    try:
        app = get_bot_application(name)
        if app is None:
            logger.warning(f"Update for unknown bot '{name}' ignored")
            return

        update = Update.de_json(update_data, app.bot)

        if update:
            await app.process_update(update)
        else:
            logger.warning("Received invalid update data")

    except Exception as e:
        logger.error(f"Failed to process update: {e}", exc_info=True)


async def initialize_bots() -> list[str]:
    """Initialize every configured bot (call on startup)."""
    names = []
    for name in get_settings().bot_tokens():
        app = get_bot_application(name)
        if app is None:
            continue
        await app.initialize()
        names.append(name)
        logger.info(f"Bot '{name}' initialized successfully")
    return names


async def shutdown_bots() -> None:
    """Shutdown all bot applications (call on shutdown)."""
    for name, app in list(_applications.items()):
        await app.shutdown()
        await app.bot_data["deps"].http.aclose()
        logger.info(f"Bot '{name}' shut down")
    _applications.clear()

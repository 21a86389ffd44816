"""
Run one bot in long-polling mode.

    python -m relaybot.polling music
"""

import argparse

from telegram import Update

from relaybot.config import get_settings
from relaybot.logging_config import bot_logger as logger, setup_logging
from relaybot.telegram_bot.bot import BOT_MODULES, get_bot_application


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a relay bot with long polling")
    parser.add_argument("bot", choices=sorted(BOT_MODULES), help="bot to run")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level)

    application = get_bot_application(args.bot)
    if application is None:
        logger.error(f"No token configured for bot '{args.bot}'")
        return 1

    logger.info(f"Starting bot '{args.bot}' in polling mode")
    application.run_polling(allowed_updates=Update.ALL_TYPES)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

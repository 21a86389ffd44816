"""
Logging configuration for the bots.

Every module logs under the ``relaybot`` namespace so a single handler on
that logger covers the webhook app, the bot handlers and the job services.
"""

import logging
import os
import sys

ROOT_LOGGER_NAME = "relaybot"
LOG_FORMAT = "[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str | None = None) -> logging.Logger:
    """Attach a stdout handler to the relaybot logger, replacing any previous one."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level or os.getenv("LOG_LEVEL", "INFO").upper())
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    # Keep uvicorn's root handlers from printing our records twice
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger under the relaybot namespace."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


bot_logger = setup_logging()

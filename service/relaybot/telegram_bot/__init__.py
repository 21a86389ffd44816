"""
Telegram bots of the relay service.

ARCHITECTURE: Thin command layers over one shared orchestration core.
- Each bot parses its own small command grammar
- Remote work goes through services (token broker, submitter, poller, dispatcher)
- Every update is classified once and routed by kind
"""

from .bot import get_bot_application, handle_telegram_update, initialize_bots, shutdown_bots

__all__ = [
    "get_bot_application",
    "handle_telegram_update",
    "initialize_bots",
    "shutdown_bots",
]

import asyncio
from fastapi import FastAPI, Request, Header, HTTPException

from relaybot.config import get_settings
from relaybot.logging_config import bot_logger as logger
from relaybot.telegram_bot.bot import (
    BOT_MODULES,
    get_bot_application,
    handle_telegram_update,
    initialize_bots,
    shutdown_bots,
)

app = FastAPI(
    title="Relay Bots",
    description="Telegram bots in front of the audio, YouTube and file sharing microservices",
    version="0.1.0"
)

# Keep references to in-flight update tasks
_update_tasks: set[asyncio.Task] = set()


# Lifecycle events
@app.on_event("startup")
async def startup_event():
    """Initialize bots on startup."""
    logger.info("[STARTUP] Initializing Telegram bots...")
    names = await initialize_bots()
    logger.info(f"[STARTUP] Bots ready: {', '.join(names) or 'none'}")


@app.on_event("shutdown")
async def shutdown_event():
    """Shutdown bots on application shutdown."""
    logger.info("[SHUTDOWN] Shutting down Telegram bots...")
    await shutdown_bots()
    logger.info("[SHUTDOWN] Bots stopped")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    settings = get_settings()
    return {
        "status": "ok",
        "environment": settings.environment,
        "bots": sorted(settings.bot_tokens()),
        "version": "0.1.0"
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Relay Bots",
        "bots": sorted(BOT_MODULES),
    }


# Telegram webhook endpoint
@app.post("/telegram/{bot_name}/webhook")
async def telegram_webhook(
    bot_name: str,
    request: Request,
    x_telegram_bot_api_secret_token: str = Header(None)
):
    """
    Webhook endpoint for Telegram updates.

    Telegram sends updates of bot <bot_name> here when messages arrive.
    """
    settings = get_settings()

    # Verify secret token if configured
    if settings.telegram_webhook_secret:
        if x_telegram_bot_api_secret_token != settings.telegram_webhook_secret:
            raise HTTPException(status_code=403, detail="Invalid secret token")

    if get_bot_application(bot_name) is None:
        raise HTTPException(status_code=404, detail="Unknown bot")

    # Parse update data
    update_data = await request.json()

    # Handle update in background (fire-and-forget for fast 200 OK)
    task = asyncio.create_task(handle_telegram_update(bot_name, update_data))
    _update_tasks.add(task)
    task.add_done_callback(_update_tasks.discard)

    return {"ok": True}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

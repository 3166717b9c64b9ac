"""FastAPI webhook receiver for the Telegram screening bot."""

from __future__ import annotations

import functools
import hmac
import logging
import os
import time
import uuid
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from psychodiag import settings
from psychodiag.bootstrap import build_bot
from psychodiag.bot import ScreeningBot
from psychodiag.channel.base import ChannelError
from psychodiag.logging_config import setup_logging
from psychodiag.models.updates import Update

load_dotenv()
setup_logging()

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=1)
def get_bot() -> ScreeningBot:
    """The process-wide bot; overridden via ``app.dependency_overrides`` in tests."""
    return build_bot()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Fail at startup on missing configuration, not on the first update.
    bot = get_bot()
    try:
        bot.register_commands()
    except ChannelError as e:
        logger.warning("Could not register bot commands: %s", e)
    yield
    bot.close()


app = FastAPI(title="Psychodiagnostic bot", version="0.1.0", lifespan=lifespan)


# ── Request logging middleware ────────────────────────────────────────────

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with method, path, and response time."""
    request_id = uuid.uuid4().hex[:8]
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s -> %s (%.0fms) [rid=%s]",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
        request_id,
    )
    response.headers["X-Request-ID"] = request_id
    return response


# ── Health check ──────────────────────────────────────────────────────────

@app.get("/health")
def health_check() -> JSONResponse:
    """Lightweight health probe for deployment platforms."""
    return JSONResponse({"status": "ok"})


def verify_secret(
    x_telegram_bot_api_secret_token: str | None = Header(default=None),
) -> None:
    """Reject webhook calls without the configured secret token."""
    expected = settings.TELEGRAM_WEBHOOK_SECRET
    if expected is None:
        return
    if not x_telegram_bot_api_secret_token or not hmac.compare_digest(
        x_telegram_bot_api_secret_token, expected
    ):
        raise HTTPException(status_code=403, detail="Invalid secret token.")


@app.post("/webhook", dependencies=[Depends(verify_secret)])
def webhook(update: Update, bot: ScreeningBot = Depends(get_bot)) -> JSONResponse:
    """Handle one Telegram update."""
    try:
        bot.handle_update(update)
    except Exception:
        # Telegram redelivers on any non-2xx reply, so failures are only logged.
        logger.exception("Failed to handle update %d", update.update_id)
        return JSONResponse({"ok": False})
    return JSONResponse({"ok": True})


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8080"))
    print(f"Starting webhook receiver on http://localhost:{port}")
    uvicorn.run(app, host="0.0.0.0", port=port)

# tradebot/api/routes/telegram.py
"""Telegram webhook: one update in, one dispatched core event."""

import hmac
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import ValidationError as PayloadError

from tradebot.core.config import settings
from tradebot.domain.dispatcher import Dispatcher
from tradebot.infrastructure.external.telegram_updates import parse_update

logger = logging.getLogger("api.telegram")

router = APIRouter(prefix="/telegram")


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.runtime.dispatcher


def _check_secret(received: str | None) -> None:
    expected = settings.TELEGRAM_WEBHOOK_SECRET
    if not expected:
        return
    if not received or not hmac.compare_digest(received, expected):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid webhook secret")


@router.post("/webhook")
async def webhook(
    request: Request,
    x_telegram_bot_api_secret_token: str | None = Header(default=None),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    _check_secret(x_telegram_bot_api_secret_token)

    body = await request.json()
    try:
        event = parse_update(body)
    except PayloadError:
        # acknowledge anyway so Telegram does not redeliver a payload we cannot read
        logger.warning("Ignoring malformed update: %.200s", body)
        return {"status": "ignored"}

    if event is None:
        return {"status": "ignored"}

    await dispatcher.dispatch(event)
    return {"status": "ok"}

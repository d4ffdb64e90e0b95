# tradebot/infrastructure/external/telegram_client.py
"""
Telegram Bot API client (the bot's outbound transport).

Every call is ``POST {api_base}/bot{token}/{method}`` with a JSON body; the
API answers ``{"ok": true, "result": ...}`` or ``{"ok": false, "description": ...}``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from tradebot.domain.ports import Markup

logger = logging.getLogger("telegram_client")

_TIMEOUT = 15
PARSE_MODE = "Markdown"


class TelegramAPIError(Exception):
    """Raised when the Bot API rejects a call or cannot be reached."""

    def __init__(self, method: str, description: str, status_code: int = 0):
        super().__init__(f"{method}: {description}")
        self.method = method
        self.description = description
        self.status_code = status_code


class TelegramClient:
    def __init__(
        self,
        token: str,
        api_base: str = "https://api.telegram.org",
        *,
        timeout: float = _TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not token:
            raise RuntimeError("TELEGRAM_BOT_TOKEN is not set")
        self.base = f"{api_base.rstrip('/')}/bot{token}"
        self.timeout = timeout
        self._transport = transport

    async def _call(self, method: str, payload: Dict[str, Any], *, timeout: float | None = None) -> Any:
        url = f"{self.base}/{method}"
        async with httpx.AsyncClient(timeout=timeout or self.timeout, transport=self._transport) as client:
            try:
                r = await client.post(url, json=payload)
                data = r.json()
            except httpx.HTTPError as exc:
                logger.error("Telegram %s transport error: %s", method, exc)
                raise TelegramAPIError(method, str(exc)) from exc
            except ValueError as exc:
                raise TelegramAPIError(method, "non-JSON response", r.status_code) from exc

        if not data.get("ok"):
            description = data.get("description", "unknown error")
            logger.warning("Telegram %s failed (%s): %s", method, r.status_code, description)
            raise TelegramAPIError(method, description, r.status_code)
        return data.get("result")

    # ----------------------------------------------------------------
    # Transport port
    # ----------------------------------------------------------------

    async def reply(self, user_id: str, text: str, markup: Optional[Markup] = None) -> None:
        payload: Dict[str, Any] = {"chat_id": user_id, "text": text, "parse_mode": PARSE_MODE}
        if markup:
            payload["reply_markup"] = markup
        await self._call("sendMessage", payload)

    async def edit_message(
        self, user_id: str, message_id: int, text: str, markup: Optional[Markup] = None
    ) -> None:
        payload: Dict[str, Any] = {
            "chat_id": user_id,
            "message_id": message_id,
            "text": text,
            "parse_mode": PARSE_MODE,
        }
        if markup:
            payload["reply_markup"] = markup
        try:
            await self._call("editMessageText", payload)
        except TelegramAPIError as exc:
            if "message is not modified" in exc.description:
                return
            # the original message may be too old to edit; fall back to a new one
            logger.info("Edit failed for user %s, sending new message: %s", user_id, exc.description)
            await self.reply(user_id, text, markup)

    async def acknowledge(self, callback_id: str, text: Optional[str] = None) -> None:
        payload: Dict[str, Any] = {"callback_query_id": callback_id}
        if text:
            payload["text"] = text
        await self._call("answerCallbackQuery", payload)

    async def set_commands(self, commands: Sequence[Tuple[str, str]]) -> None:
        await self._call(
            "setMyCommands",
            {"commands": [{"command": name, "description": description} for name, description in commands]},
        )

    # ----------------------------------------------------------------
    # Long polling
    # ----------------------------------------------------------------

    async def get_updates(self, offset: Optional[int] = None, poll_timeout: int = 30) -> List[Dict[str, Any]]:
        payload: Dict[str, Any] = {
            "timeout": poll_timeout,
            "allowed_updates": ["message", "callback_query"],
        }
        if offset is not None:
            payload["offset"] = offset
        return await self._call("getUpdates", payload, timeout=poll_timeout + self.timeout) or []

    async def delete_webhook(self) -> None:
        await self._call("deleteWebhook", {"drop_pending_updates": False})

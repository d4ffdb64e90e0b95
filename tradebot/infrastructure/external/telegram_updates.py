# tradebot/infrastructure/external/telegram_updates.py
"""Telegram ``Update`` payloads and their conversion into core events.

The bot serves private chats only: replies go to the sender's id, which
equals the chat id there.  Group, supergroup and channel updates are ignored.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from tradebot.domain.classifier import (
    COMMAND_PREFIX,
    CallbackEvent,
    CommandEvent,
    Event,
    TextEvent,
    parse_command_text,
)

PRIVATE_CHAT = "private"


class TelegramUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    is_bot: bool = False
    username: Optional[str] = None


class TelegramChat(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    type: str = PRIVATE_CHAT

    @property
    def is_private(self) -> bool:
        return self.type == PRIVATE_CHAT


class TelegramMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message_id: int
    chat: TelegramChat
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")
    text: Optional[str] = None


class CallbackQuery(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    from_user: TelegramUser = Field(alias="from")
    data: Optional[str] = None
    message: Optional[TelegramMessage] = None


class Update(BaseModel):
    model_config = ConfigDict(extra="ignore")

    update_id: int
    message: Optional[TelegramMessage] = None
    callback_query: Optional[CallbackQuery] = None


def to_event(update: Update) -> Optional[Event]:
    """Map an update onto a core event; returns None for updates the bot ignores."""
    query = update.callback_query
    if query is not None:
        if query.from_user.is_bot or query.data is None:
            return None
        if query.message is not None and not query.message.chat.is_private:
            return None
        return CallbackEvent(
            user_id=str(query.from_user.id),
            token=query.data,
            callback_id=query.id,
            message_id=query.message.message_id if query.message else None,
        )

    message = update.message
    if message is None or message.text is None:
        return None
    if not message.chat.is_private:
        return None
    sender = message.from_user
    if sender is not None and sender.is_bot:
        return None
    user_id = str(sender.id if sender is not None else message.chat.id)

    text = message.text.strip()
    if text.startswith(COMMAND_PREFIX):
        name, args = parse_command_text(text)
        if name:
            return CommandEvent(user_id=user_id, name=name, args=args)
    return TextEvent(user_id=user_id, content=message.text, message_id=message.message_id)


def parse_update(payload: dict) -> Optional[Event]:
    return to_event(Update.model_validate(payload))

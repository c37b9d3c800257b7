"""Pyrogram client setup and the thin Telegram I/O layer."""

import logging
from dataclasses import dataclass
from typing import Optional

from pyrogram import Client
from pyrogram.enums import ChatType, ParseMode
from pyrogram.types import Message

from .config import Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InboundMessage:
    """What the bot needs to know about an incoming Telegram message."""
    chat_id: int
    sender: Optional[str]
    text: str
    message_id: int
    private: bool = False


def to_inbound(message: Message) -> InboundMessage:
    """Convert a pyrogram message. Senders without a username count as absent."""
    user = message.from_user
    return InboundMessage(
        chat_id=message.chat.id,
        sender=user.username if user and user.username else None,
        # Captions never carry commands; the message still earns XP
        text=message.text or "",
        message_id=message.id,
        private=message.chat.type == ChatType.PRIVATE,
    )


class Messenger:
    """Outbound messages. Link previews are always disabled."""

    def __init__(self, client: Client):
        self.client = client

    async def send(
        self,
        chat_id: int,
        text: str,
        reply_to: Optional[int] = None,
        parse_mode: ParseMode = ParseMode.HTML,
    ) -> None:
        """Send a message, threaded to `reply_to` when given."""
        await self.client.send_message(
            chat_id,
            text,
            parse_mode=parse_mode,
            disable_web_page_preview=True,
            reply_to_message_id=reply_to,
        )


def create_client(config: Config) -> Client:
    """Create the Pyrogram client."""
    return Client(
        config.session_name,
        api_id=config.api_id,
        api_hash=config.api_hash,
        bot_token=config.bot_token,
    )

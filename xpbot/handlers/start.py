"""Start command handler: help text for private chats."""

import logging

from pyrogram.enums import ParseMode
from pyrogram.errors import RPCError

from ..client import InboundMessage
from ..context import BotContext

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Hi, I'm XP Bot. Add me to a group and I will track how much everyone talks.\n"
    "Every message earns 1 XP.\n\n"
    "Commands:\n"
    "/xp - your XP, level and rank\n"
    "/xp @username - someone else's\n"
    "/ranks - the top of the leaderboard\n"
    "/givexp @username 123 - give or take XP (admins only)"
)


async def show_help(ctx: BotContext, message: InboundMessage) -> None:
    """Reply with the help text. Only private chats get it."""
    if not message.private:
        return
    try:
        await ctx.messenger.send(
            message.chat_id, HELP_TEXT,
            reply_to=message.message_id,
            parse_mode=ParseMode.DISABLED,
        )
    except RPCError as e:
        logger.error(f"Failed to send help to {message.chat_id}: {type(e).__name__}: {e}")
        return
    logger.info(f"User {message.sender} requested help")

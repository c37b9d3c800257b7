"""XP handlers: /xp, /givexp, /ranks and passive XP for every message."""

import html
import logging
import re
from typing import Optional, Union

from pyrogram.enums import ParseMode
from pyrogram.errors import RPCError

from ..client import InboundMessage
from ..context import BotContext
from ..errors import ScoreNotFound, StoreError
from ..router import GiveXP, GiveXPUsage

logger = logging.getLogger(__name__)

GIVEXP_USAGE = "Usage: `/givexp @username 123`"

MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}

_AMOUNT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MAX = 2 ** 63 - 1


def format_rank(position: int) -> str:
    """Medal for the podium, `#n` for everyone else."""
    return MEDALS.get(position, f"#{position}")


def parse_amount(text: str) -> Optional[int]:
    """Parse a signed base-10 64-bit integer, or return None."""
    if not _AMOUNT_RE.fullmatch(text):
        return None
    value = int(text)
    if not -_INT64_MAX - 1 <= value <= _INT64_MAX:
        return None
    return value


async def print_xp(
    ctx: BotContext,
    chat_id: int,
    username: str,
    reply_to: Optional[int] = None,
) -> None:
    """Post a user's level title, XP and rank.

    Users without a score get no message at all.
    """
    try:
        xp, rank, total = await ctx.store.score_rank_total(chat_id, username)
    except ScoreNotFound:
        logger.debug(f"No XP for {username} in chat {chat_id}")
        return
    except StoreError as e:
        logger.error(f"Failed to retrieve XP: {type(e).__name__}: {e}")
        return

    level = ctx.levels.resolve(xp)
    text = level.format_title(username, xp, rank, total)
    try:
        await ctx.messenger.send(chat_id, text, reply_to=reply_to, parse_mode=ParseMode.HTML)
    except RPCError as e:
        logger.error(f"Failed to reply with XP: {type(e).__name__}: {e}")


async def query_xp(ctx: BotContext, message: InboundMessage, target: Optional[str]) -> None:
    """`/xp [username]`: the sender's XP unless someone else is named."""
    username = target or message.sender
    if not username:
        return
    await print_xp(ctx, message.chat_id, username, reply_to=message.message_id)


async def _reply_markdown(ctx: BotContext, message: InboundMessage, text: str) -> None:
    try:
        await ctx.messenger.send(
            message.chat_id, text,
            reply_to=message.message_id,
            parse_mode=ParseMode.MARKDOWN,
        )
    except RPCError as e:
        logger.error(f"Failed to reply in chat {message.chat_id}: {type(e).__name__}: {e}")


async def give_xp(
    ctx: BotContext,
    message: InboundMessage,
    command: Union[GiveXP, GiveXPUsage],
) -> None:
    """`/givexp <username> <amount>`, admins only. Negative amounts remove XP."""
    if not ctx.config.is_admin(message.sender):
        logger.info(f"Non-admin {message.sender} tried /givexp in chat {message.chat_id}")
        await _reply_markdown(ctx, message, ctx.config.not_an_admin)
        return

    if isinstance(command, GiveXPUsage):
        await _reply_markdown(ctx, message, GIVEXP_USAGE)
        return

    amount = parse_amount(command.amount)
    if amount is None:
        # Unparseable amounts are dropped without a reply
        logger.warning(f"Ignoring /givexp with invalid amount {command.amount!r} from {message.sender}")
        return

    try:
        await ctx.store.increment(message.chat_id, command.target, amount)
    except StoreError as e:
        logger.error(f"Failed to give XP: {type(e).__name__}: {e}")
        return
    logger.info(f"Admin {message.sender} gave {amount} XP to {command.target} in chat {message.chat_id}")

    await print_xp(ctx, message.chat_id, command.target, reply_to=message.message_id)


async def show_ranks(ctx: BotContext, message: InboundMessage) -> None:
    """`/ranks`: the chat leaderboard, posted as a fresh message."""
    try:
        entries = await ctx.store.top(message.chat_id, ctx.config.ranks_count)
    except StoreError as e:
        logger.error(f"Failed to display ranks: {type(e).__name__}: {e}")
        return
    if not entries:
        return

    lines = []
    for position, (username, xp) in enumerate(entries, start=1):
        title = ctx.levels.resolve(xp).title
        lines.append(
            f"{format_rank(position)} <b>{html.escape(username)}</b> –⁠ {title} ({xp} XP)"
        )

    try:
        await ctx.messenger.send(message.chat_id, "\n".join(lines), parse_mode=ParseMode.HTML)
    except RPCError as e:
        logger.error(f"Failed to display ranks: {type(e).__name__}: {e}")


async def increment_xp(ctx: BotContext, message: InboundMessage) -> None:
    """Passive +1 XP for the sender; announce the level when it changes.

    Concurrent messages from one user may each see a level change; every one
    of them announces.
    """
    username = message.sender
    if not username:
        return
    if message.private and not ctx.config.track_private_chats:
        return

    try:
        if not await ctx.store.acquire_cooldown(message.chat_id, username, ctx.config.rate_limit):
            return
        new_score = await ctx.store.increment(message.chat_id, username, 1)
    except StoreError as e:
        logger.error(f"Failed to increment XP: {type(e).__name__}: {e}")
        return

    old_level = ctx.levels.resolve(new_score - 1)
    new_level = ctx.levels.resolve(new_score)
    if old_level is not new_level:
        logger.info(
            f"{username} moved from level {old_level.level} to {new_level.level} "
            f"in chat {message.chat_id}"
        )
        await print_xp(ctx, message.chat_id, username)

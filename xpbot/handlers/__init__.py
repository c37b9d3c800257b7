"""Bot message handlers and per-message dispatch."""

import asyncio
import logging
from typing import List

from pyrogram import Client, filters
from pyrogram.types import Message

from ..client import InboundMessage, to_inbound
from ..context import BotContext
from ..router import GiveXP, GiveXPUsage, NotACommand, Ranks, Start, XPQuery, classify
from .start import show_help
from .xp import give_xp, increment_xp, query_xp, show_ranks

logger = logging.getLogger(__name__)


def dispatch(ctx: BotContext, message: InboundMessage) -> List[asyncio.Task]:
    """Spawn the handler tasks for one message.

    The matching command handler (if any) and the passive XP increment run
    as separate tasks with no ordering between them.
    """
    if ctx.supervisor.closed:
        return []

    command = classify(message.text)
    tag = f"{message.chat_id}:{message.message_id}"
    tasks = []

    if isinstance(command, XPQuery):
        tasks.append(ctx.supervisor.spawn(query_xp(ctx, message, command.target), name=f"xp:{tag}"))
    elif isinstance(command, (GiveXP, GiveXPUsage)):
        tasks.append(ctx.supervisor.spawn(give_xp(ctx, message, command), name=f"givexp:{tag}"))
    elif isinstance(command, Ranks):
        tasks.append(ctx.supervisor.spawn(show_ranks(ctx, message), name=f"ranks:{tag}"))
    elif isinstance(command, Start):
        tasks.append(ctx.supervisor.spawn(show_help(ctx, message), name=f"start:{tag}"))
    elif not isinstance(command, NotACommand):
        logger.warning(f"Unhandled command {command!r}")

    if message.sender:
        tasks.append(ctx.supervisor.spawn(increment_xp(ctx, message), name=f"passive:{tag}"))

    return tasks


def register_all_handlers(app: Client, ctx: BotContext) -> None:
    """Register the catch-all message handler with the app."""

    @app.on_message(filters.incoming)
    async def on_message(client: Client, message: Message):
        dispatch(ctx, to_inbound(message))

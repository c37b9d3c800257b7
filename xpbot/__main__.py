"""Bot entry point."""

import asyncio
import logging
import signal
import sys

from pyrogram.types import BotCommand

from .client import Messenger, create_client
from .config import load_config
from .context import BotContext
from .errors import StoreError
from .handlers import register_all_handlers
from .store import init_store

# Bot commands for the Telegram menu
BOT_COMMANDS = [
    BotCommand("xp", "Your XP, level and rank"),
    BotCommand("ranks", "Chat leaderboard"),
    BotCommand("givexp", "Give XP to a user (admins)"),
]

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    # Pyrogram is chatty at INFO
    logging.getLogger("pyrogram").setLevel(logging.WARNING)


async def wait_for_stop_signal() -> None:
    """Block until Ctrl+C or SIGTERM."""
    stop_event = asyncio.Event()

    def _signal_handler(*_):
        logger.info("Stop signal received. Shutting down...")
        stop_event.set()

    loop = asyncio.get_running_loop()
    if sys.platform != "win32":
        loop.add_signal_handler(signal.SIGINT, _signal_handler)
        loop.add_signal_handler(signal.SIGTERM, _signal_handler)
    else:
        signal.signal(signal.SIGINT, _signal_handler)
        signal.signal(signal.SIGTERM, _signal_handler)

    await stop_event.wait()


async def init_bot() -> int:
    """Initialize and run the bot until a stop signal arrives."""
    config = load_config()
    setup_logging(config.log_level)
    logger.info(f"Loaded {len(config.levels)} levels and {len(config.admins)} admins")

    # Redis must answer before we accept any traffic
    try:
        store = await init_store(config)
    except StoreError as e:
        logger.critical(f"Failed to ping Redis: {e}")
        return 1

    app = create_client(config)
    ctx = BotContext(config=config, store=store, messenger=Messenger(app))
    register_all_handlers(app, ctx)

    attempt = 1
    while True:
        try:
            await app.start()
            bot_info = await app.get_me()
            logger.info(
                f"Bot '{bot_info.first_name}' (@{bot_info.username}) started"
                + (f" after {attempt} attempts" if attempt > 1 else "")
            )

            await app.set_bot_commands(BOT_COMMANDS)
            logger.info("Bot commands menu set")
            break
        except Exception as e:
            logger.error(f"Bot start failed: {type(e).__name__}: {e} | Attempt {attempt}")
            attempt += 1
            await asyncio.sleep(2)

    logger.info("Streaming messages")
    await wait_for_stop_signal()

    # Cleanup: let in-flight replies finish while the client can still send
    ctx.supervisor.close()
    await ctx.supervisor.join()
    if ctx.supervisor.failed:
        logger.warning(f"{ctx.supervisor.failed} handler tasks failed during this run")
    if app.is_connected:
        await app.stop()
    await store.close()
    logger.info("Bot stopped cleanly.")
    return 0


def main() -> int:
    """Main entry point."""
    try:
        return asyncio.run(init_bot())
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())

"""XP Bot - per-chat experience points, levels and leaderboards for Telegram groups."""

__version__ = "0.1.0"

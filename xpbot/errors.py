"""Exceptions raised by the bot core."""


class XPBotError(Exception):
    """Base class for all bot errors."""


class ConfigError(XPBotError):
    """Invalid or incomplete configuration. Fatal at startup."""


class StoreError(XPBotError):
    """The score store failed or timed out."""


class ScoreNotFound(XPBotError):
    """The user has no score in this chat."""

    def __init__(self, chat_id: int, username: str):
        super().__init__(f"No score for {username!r} in chat {chat_id}")
        self.chat_id = chat_id
        self.username = username

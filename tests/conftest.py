"""
Shared fixtures: an in-memory score store, configs and message builders.

The in-memory store mirrors the ScoreStore interface with Redis sorted-set
semantics (descending order, ties broken by reverse lexicographic member).
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from xpbot.client import InboundMessage, Messenger
from xpbot.config import parse_config
from xpbot.context import BotContext
from xpbot.errors import ScoreNotFound
from xpbot.supervisor import TaskSupervisor

ENV = {
    "API_ID": "12345",
    "API_HASH": "hash",
    "BOT_TOKEN": "123:abc",
    "REDIS_URL": "redis://localhost:6379/0",
}


def make_levels(*thresholds: int) -> list[dict]:
    """Levels numbered from 1 with a plain-text template."""
    return [
        {
            "level": i,
            "xp": xp,
            "title": f"Title{i}",
            "format": "{username} L{level} {xp}XP #{rank}/{total}",
        }
        for i, xp in enumerate(thresholds, start=1)
    ]


def make_config(levels=None, admins=("admin",), **extra):
    data = {
        "levels": levels if levels is not None else make_levels(0, 100, 500),
        "admins": list(admins),
        "not_an_admin": "You are not an admin",
    }
    data.update(extra)
    return parse_config(data, ENV)


class InMemoryScoreStore:
    """Dict-backed stand-in for ScoreStore."""

    def __init__(self):
        self.sets: dict[int, dict[str, int]] = {}
        self.cooldowns: set[tuple[int, str]] = set()
        self.increment_calls: list[tuple[int, str, int]] = []

    def _ordered(self, chat_id: int) -> list[tuple[str, int]]:
        members = self.sets.get(chat_id, {})
        return sorted(members.items(), key=lambda kv: (kv[1], kv[0]), reverse=True)

    async def increment(self, chat_id: int, username: str, delta: int) -> int:
        self.increment_calls.append((chat_id, username, delta))
        members = self.sets.setdefault(chat_id, {})
        members[username] = members.get(username, 0) + delta
        return members[username]

    async def score_rank_total(self, chat_id: int, username: str) -> tuple[int, int, int]:
        members = self.sets.get(chat_id, {})
        if username not in members:
            raise ScoreNotFound(chat_id, username)
        ordered = self._ordered(chat_id)
        rank = [name for name, _ in ordered].index(username) + 1
        return members[username], rank, len(members)

    async def top(self, chat_id: int, n: int) -> list[tuple[str, int]]:
        return self._ordered(chat_id)[:n]

    async def acquire_cooldown(self, chat_id: int, username: str, seconds: int) -> bool:
        if seconds <= 0:
            return True
        if (chat_id, username) in self.cooldowns:
            return False
        self.cooldowns.add((chat_id, username))
        return True


@pytest.fixture
def store() -> InMemoryScoreStore:
    return InMemoryScoreStore()


@pytest.fixture
def messenger():
    m = MagicMock(spec=Messenger)
    m.send = AsyncMock()
    return m


@pytest.fixture
def make_ctx(store, messenger):
    """Build a BotContext around the in-memory store and a mock messenger."""

    def _make(**config_kwargs) -> BotContext:
        return BotContext(
            config=make_config(**config_kwargs),
            store=store,
            messenger=messenger,
            supervisor=TaskSupervisor(),
        )

    return _make


def msg(text: str = "hello", sender: str | None = "alice", chat_id: int = -100,
        message_id: int = 1, private: bool = False) -> InboundMessage:
    return InboundMessage(
        chat_id=chat_id,
        sender=sender,
        text=text,
        message_id=message_id,
        private=private,
    )

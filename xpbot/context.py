"""Shared dependencies handed to every handler."""

from dataclasses import dataclass, field

from .client import Messenger
from .config import Config
from .levels import LevelTable
from .store import ScoreStore
from .supervisor import TaskSupervisor


@dataclass(frozen=True)
class BotContext:
    """Everything a handler may touch. Built once at startup, never mutated."""
    config: Config
    store: ScoreStore
    messenger: Messenger
    supervisor: TaskSupervisor = field(default_factory=TaskSupervisor)

    @property
    def levels(self) -> LevelTable:
        return self.config.levels

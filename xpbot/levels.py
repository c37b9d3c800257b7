"""Level system: XP thresholds mapped to titles.

Levels come from the config file, lowest threshold first. A user sits on the
first level whose threshold is still above their XP; the last level is the
ceiling for everyone past the final threshold.

Example with thresholds [0, 100, 500]: 50 XP resolves to the 100 level,
1000 XP to the 500 level.
"""

import html
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from .errors import ConfigError


@dataclass(frozen=True)
class Level:
    """One configured tier."""
    level: int
    xp: int
    title: str
    format: str

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Level":
        """Build a level from one entry of the config `levels` list."""
        try:
            level = cls(
                level=int(raw["level"]),
                xp=int(raw["xp"]),
                title=str(raw["title"]),
                format=str(raw["format"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid level entry {raw!r}: {type(e).__name__}: {e}") from e
        level.check_format()
        return level

    def check_format(self) -> None:
        """Render the template once so unknown fields fail at startup.

        Raises:
            ConfigError: if the template references fields that don't exist
        """
        try:
            self.format_title("user", 0, 1, 1)
        except (KeyError, IndexError, ValueError, AttributeError) as e:
            raise ConfigError(
                f"Invalid format for level {self.level} ({self.format!r}): {type(e).__name__}: {e}"
            ) from e

    def format_title(self, username: str, xp: int, rank: int, total: int) -> str:
        """Render the level template.

        Values are available positionally ({0} username, {1} xp, {2} level,
        {3} rank, {4} total) and by name ({username}, {xp}, {level}, {rank},
        {total}). The username is HTML-escaped since replies use HTML mode.
        """
        name = html.escape(username)
        return self.format.format(
            name, xp, self.level, rank, total,
            username=name, xp=xp, level=self.level, rank=rank, total=total,
        )


class LevelTable:
    """Ordered, immutable list of levels shared by all chats."""

    def __init__(self, levels: Sequence[Level]):
        if not levels:
            raise ConfigError("No XP levels defined")
        for prev, cur in zip(levels, levels[1:]):
            if cur.xp < prev.xp:
                raise ConfigError(
                    f"Levels must be in ascending XP order: "
                    f"level {cur.level} ({cur.xp} XP) follows level {prev.level} ({prev.xp} XP)"
                )
        self._levels: List[Level] = list(levels)

    def __len__(self) -> int:
        return len(self._levels)

    def __iter__(self):
        return iter(self._levels)

    def resolve(self, xp: int) -> Level:
        """Return the level for a given XP total."""
        for level in self._levels:
            if xp < level.xp:
                return level
        return self._levels[-1]
